# aggregator/collector.py

import logging
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Tuple
from urllib.parse import urlparse

from aggregator.quota import ProviderBucket, Allocation, allocate_quotas, initial_quota
from generator.vless import get_vless_config_list
from merger.mixer import mix_config
from models.config_model import ProxyConfig
from models.run_parameters import RunParameters
from parser.parser import SubscriptionParser
from scraper.fetcher import fetch_all_proxy_sources
from settings.loader import resolve_run_parameters
from settings.store import SettingsStore
from utils.helpers import (
    get_multiple_random_elements, muddle_domain, pick_random, remove_duplicate_configs,
)
from validator.validator import ConfigValidator

# 获取当前模块的日志记录器
logger = logging.getLogger(__name__)

FetchFunc = Callable[[List[str]], Awaitable[List[Tuple[str, Optional[str]]]]]


@dataclass
class ProviderReport:
    """单个订阅源在本次运行中的统计，用于观察配额的实际去向。"""
    url: str
    fetched: bool = False
    attempted: int = 0
    decoded: int = 0
    derived_supply: int = 0
    derived_quota: int = 0
    derived_sampled: int = 0
    original_supply: int = 0
    original_quota: int = 0
    original_sampled: int = 0


@dataclass
class CollectionResult:
    configs: List[ProxyConfig] = field(default_factory=list)
    providers: List[ProviderReport] = field(default_factory=list)
    derived_leftover: int = 0
    original_leftover: int = 0
    from_defaults: bool = False


def provider_label(url: str) -> str:
    """合并配置名称中使用的订阅源标签。"""
    return urlparse(url.strip()).hostname or url.strip()


class ConfigCollector:
    """
    从多个订阅源收集配置：抓取、解码、按配额抽样、合并、富化并去重。
    """
    def __init__(self, store: SettingsStore, fetch: FetchFunc = fetch_all_proxy_sources,
                 parser: Optional[SubscriptionParser] = None, validator: Optional[ConfigValidator] = None,
                 rng: Optional[random.Random] = None):
        self.logger = logging.getLogger(__name__)
        self.store = store
        self.fetch = fetch
        self.validator = validator or ConfigValidator()
        self.parser = parser or SubscriptionParser(self.validator)
        self.rng = rng or random.Random()

    def _sample(self, allocation: Allocation) -> List[List[ProxyConfig]]:
        return [
            get_multiple_random_elements(bucket.candidates, bucket.quota, self.rng)
            for bucket in allocation.buckets
        ]

    def _merge_candidates(self, candidates: List[ProxyConfig], hostname: str, address: str, url: str) -> List[ProxyConfig]:
        label = provider_label(url)
        merged = []
        for conf in candidates:
            mixed = mix_config(conf, hostname, address, label)
            # 只保留带 merged 标记且有名称的结果
            if mixed is not None and mixed.merged and mixed.name:
                merged.append(mixed)
        return merged

    def _enrich(self, configs: List[ProxyConfig], params: RunParameters) -> List[ProxyConfig]:
        """为每个配置独立随机分配 ALPN 和指纹。"""
        if params.alpn_choices:
            for conf in configs:
                conf.alpn = pick_random(params.alpn_choices, self.rng)
        if params.fingerprint_choices:
            for conf in configs:
                conf.fp = pick_random(params.fingerprint_choices, self.rng)
        return configs

    async def collect(self, request_url: str) -> CollectionResult:
        """
        执行一次完整的收集。
        Args:
            request_url (str): 本服务被访问的 URL，其域名用于合并配置和 VLESS 配置。
        Returns:
            CollectionResult: 最终配置列表和各订阅源的统计。
        """
        hostname = urlparse(request_url).hostname or request_url
        params = await resolve_run_parameters(self.store, hostname)
        result = CollectionResult(from_defaults=params.from_defaults)

        quota = initial_quota(params.shared_max_total, len(params.provider_urls))
        self.logger.info(f"共享预算 {params.shared_max_total}，每个订阅源初始配额 {quota}。")

        # --- 步骤 1: 抓取并解码所有订阅源 ---
        fetched = await self.fetch(params.provider_urls) if params.provider_urls else []
        derived_sources: List[Tuple[ProviderReport, List[ProxyConfig]]] = []
        original_sources: List[Tuple[ProviderReport, List[ProxyConfig]]] = []
        for url, content in fetched:
            report = ProviderReport(url=url)
            result.providers.append(report)
            if content is None:
                continue # 抓取失败的订阅源直接跳过，不创建配额桶
            report.fetched = True
            configs, report.attempted = self.parser.parse_raw_content(content, url)
            report.decoded = len(configs)
            self.logger.info(f"从 {url} 解析到 {len(configs)}/{report.attempted} 个有效配置。")
            if params.include_derived:
                derived_sources.append((report, [c for c in configs if c.type == 'vmess']))
            if params.include_original:
                original_sources.append((report, [c for c in configs if c.type in params.wanted_protocols]))

        clean_hosts = params.clean_host_candidates or [muddle_domain(hostname, self.rng)]
        final_configs: List[ProxyConfig] = []

        # --- 步骤 2: 合并配置路径 ---
        if params.include_derived:
            address = pick_random(clean_hosts, self.rng)
            buckets = []
            for report, candidates in derived_sources:
                merged = self._merge_candidates(candidates, hostname, address, report.url)
                report.derived_supply = len(merged)
                buckets.append(ProviderBucket(report.url, quota, tuple(merged)))
            allocation = allocate_quotas(buckets)
            result.derived_leftover = allocation.leftover
            for (report, _), bucket, sampled in zip(derived_sources, allocation.buckets, self._sample(allocation)):
                report.derived_quota = bucket.quota
                report.derived_sampled = len(sampled)
                final_configs.extend(sampled)

        # --- 步骤 3: 原始配置路径 ---
        if params.include_original:
            buckets = [ProviderBucket(report.url, quota, tuple(candidates)) for report, candidates in original_sources]
            for report, candidates in original_sources:
                report.original_supply = len(candidates)
            allocation = allocate_quotas(buckets)
            result.original_leftover = allocation.leftover
            for (report, _), bucket, sampled in zip(original_sources, allocation.buckets, self._sample(allocation)):
                report.original_quota = bucket.quota
                report.original_sampled = len(sampled)
                final_configs.extend(sampled)

        # --- 步骤 4: 用户自带的配置和生成的 VLESS 配置 ---
        for raw in params.user_supplied_raw:
            conf = self.parser.decode_config(raw)
            if conf is not None:
                final_configs.append(conf)
            else:
                self.logger.debug(f"无法解析用户配置: {raw[:50]}...")

        if "vless" in params.wanted_protocols:
            vless_configs = await get_vless_config_list(
                hostname, clean_hosts, params.max_derived_from_vless, self.store, self.rng)
            final_configs = list(vless_configs) + final_configs

        # --- 步骤 5: 校验、富化、去重 ---
        final_configs = list(filter(self.validator, final_configs))
        final_configs = self._enrich(final_configs, params)
        result.configs = remove_duplicate_configs(final_configs)
        self.logger.info(f"收集完成，共输出 {len(result.configs)} 个配置。")
        return result


async def get_config_list(request_url: str, store: SettingsStore, **kwargs) -> List[ProxyConfig]:
    """
    便捷函数：只返回最终的配置列表。
    """
    collector = ConfigCollector(store, **kwargs)
    result = await collector.collect(request_url)
    return result.configs
