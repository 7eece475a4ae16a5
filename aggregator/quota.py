# aggregator/quota.py

import logging
import math
from dataclasses import dataclass, replace
from typing import Sequence, Tuple

import config # 绝对导入 config 模块
from models.config_model import ProxyConfig

# 获取当前模块的日志记录器
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderBucket:
    """一个订阅源在某条路径 (原始 / 合并) 上的配额和候选配置。"""
    url: str
    quota: int
    candidates: Tuple[ProxyConfig, ...] = ()

    @property
    def supply(self) -> int:
        return len(self.candidates)


@dataclass(frozen=True)
class Allocation:
    """配额分配结果；leftover 是最后一轮之后仍未分出去的配额。"""
    buckets: Tuple[ProviderBucket, ...]
    leftover: int

    @property
    def total_quota(self) -> int:
        return sum(bucket.quota for bucket in self.buckets)

    @property
    def realized(self) -> int:
        """抽样后实际能得到的配置数。"""
        return sum(min(bucket.quota, bucket.supply) for bucket in self.buckets)


def initial_quota(shared_max_total: int, provider_count: int) -> int:
    """每个订阅源的初始配额；没有订阅源时为 0。"""
    if provider_count <= 0:
        return 0
    return shared_max_total // provider_count


def redistribute(buckets: Sequence[ProviderBucket], remaining: int) -> Tuple[Tuple[ProviderBucket, ...], int]:
    """
    执行一轮配额重分配。
    配额超过供给的订阅源把差额放回 remaining，配额降为供给；
    配额低于供给的订阅源在 remaining > 0 时吸收 ceil(remaining / 3)。
    吸收量不会按供给截断，多出的部分在抽样时自然失效。
    Args:
        buckets (Sequence[ProviderBucket]): 当前各订阅源。
        remaining (int): 上一轮留下的待分配配额。
    Returns:
        Tuple[Tuple[ProviderBucket, ...], int]: 新的订阅源列表和剩余配额。
    """
    updated = []
    for bucket in buckets:
        if bucket.quota > bucket.supply:
            remaining += bucket.quota - bucket.supply
            bucket = replace(bucket, quota=bucket.supply)
        elif bucket.quota < bucket.supply and remaining > 0:
            step = math.ceil(remaining / config.ALLOCATION_ABSORB_DIVISOR)
            bucket = replace(bucket, quota=bucket.quota + step)
            remaining -= step
        updated.append(bucket)
    return tuple(updated), remaining


def allocate_quotas(buckets: Sequence[ProviderBucket], passes: int = config.ALLOCATION_PASSES) -> Allocation:
    """
    固定执行 passes 轮重分配，不检查是否收敛；最后剩余的配额被丢弃。
    Args:
        buckets (Sequence[ProviderBucket]): 初始配额相同的订阅源列表。
        passes (int): 轮数。
    Returns:
        Allocation: 最终配额和剩余配额。
    """
    current = tuple(buckets)
    remaining = 0
    for _ in range(passes):
        current, remaining = redistribute(current, remaining)
    if remaining:
        logger.info(f"配额重分配 {passes} 轮后仍剩余 {remaining} 个未分配，将被丢弃。")
    return Allocation(buckets=current, leftover=remaining)
