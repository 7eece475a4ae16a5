# models/run_parameters.py

import math
from dataclasses import dataclass, field
from typing import List

import config


@dataclass(frozen=True)
class RunParameters:
    """
    一次收集运行所需的全部参数，由 settings/loader.py 一次性生成。
    """
    max_total: int
    wanted_protocols: List[str] = field(default_factory=list)
    provider_urls: List[str] = field(default_factory=list)
    alpn_choices: List[str] = field(default_factory=list)
    fingerprint_choices: List[str] = field(default_factory=list)
    include_original: bool = True
    include_derived: bool = True
    clean_host_candidates: List[str] = field(default_factory=list)
    user_supplied_raw: List[str] = field(default_factory=list)
    from_defaults: bool = False

    @property
    def max_derived_from_vless(self) -> int:
        """生成的 VLESS 配置上限，按未减半的总数计算。"""
        return math.ceil(self.max_total / config.VLESS_SHARE_DIVISOR)

    @property
    def shared_max_total(self) -> int:
        """两条路径同时开启时平分总预算。"""
        if self.include_original and self.include_derived:
            return self.max_total // 2
        return self.max_total
