# settings/loader.py

import logging
from typing import List, Optional

import config # 绝对导入 config 模块
from models.run_parameters import RunParameters
from settings.store import SettingsStore, SettingsUnavailable
from utils.helpers import muddle_domain

# 获取当前模块的日志记录器
logger = logging.getLogger(__name__)


def split_lines(value: Optional[str]) -> List[str]:
    """按行拆分多值设置，去掉空行。"""
    if not value:
        return []
    return [line.strip() for line in value.split("\n") if line.strip()]


def is_yes(value: Optional[str], default: str = "yes") -> bool:
    return (value or default).strip().lower() == "yes"


def default_run_parameters(hostname: str) -> RunParameters:
    """
    设置不可用时使用的内置参数。
    """
    return RunParameters(
        max_total=config.DEFAULT_MAX_CONFIGS,
        wanted_protocols=list(config.DEFAULT_PROTOCOLS),
        provider_urls=list(config.DEFAULT_PROVIDERS),
        alpn_choices=list(config.DEFAULT_ALPN_LIST),
        fingerprint_choices=list(config.DEFAULT_FINGERPRINTS),
        include_original=True,
        include_derived=True,
        clean_host_candidates=[muddle_domain(hostname)],
        user_supplied_raw=[],
        from_defaults=True,
    )


async def read_run_parameters(store: SettingsStore) -> RunParameters:
    """
    从设置后端读取全部参数。
    Raises:
        SettingsUnavailable: 后端不可用、缺少 MaxConfigs 或 MaxConfigs 不是正整数。
    """
    max_configs_raw = await store.get("MaxConfigs")
    if max_configs_raw is None:
        raise SettingsUnavailable("缺少 MaxConfigs 设置。")
    try:
        max_total = int(max_configs_raw.strip())
    except ValueError as e:
        raise SettingsUnavailable(f"MaxConfigs 不是整数: {max_configs_raw!r}") from e
    if max_total <= 0:
        raise SettingsUnavailable(f"MaxConfigs 必须为正整数: {max_total}")

    protocols = split_lines(await store.get("Protocols"))
    return RunParameters(
        max_total=max_total,
        wanted_protocols=protocols,
        provider_urls=split_lines(await store.get("Providers")),
        alpn_choices=split_lines(await store.get("ALPNs")),
        fingerprint_choices=split_lines(await store.get("FingerPrints")),
        include_original=is_yes(await store.get("IncludeOriginalConfigs")),
        # 合并配置只能由 vmess 配置生成
        include_derived=is_yes(await store.get("IncludeMergedConfigs")) and "vmess" in protocols,
        clean_host_candidates=split_lines(await store.get("CleanDomainIPs")),
        user_supplied_raw=split_lines(await store.get("Configs")),
        from_defaults=False,
    )


async def resolve_run_parameters(store: SettingsStore, hostname: str) -> RunParameters:
    """
    读取运行参数；只要读取过程中出现任何错误，就整体使用内置默认值。
    Args:
        store (SettingsStore): 设置来源。
        hostname (str): 本服务的域名，用于生成默认的合并目标。
    Returns:
        RunParameters: 运行参数。
    """
    try:
        params = await read_run_parameters(store)
    except SettingsUnavailable as e:
        logger.warning(f"设置不可用，使用内置默认值: {e}")
        return default_run_parameters(hostname)
    except Exception as e:
        logger.error(f"读取设置时发生未知错误，使用内置默认值: {e}")
        return default_run_parameters(hostname)
    logger.info(f"已读取设置: 最多 {params.max_total} 个配置，{len(params.provider_urls)} 个订阅源。")
    return params
