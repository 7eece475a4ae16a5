# generator/vless.py

import logging
import random
import uuid
from typing import List, Optional

import config # 绝对导入 config 模块
from models.config_model import VlessConfig
from settings.store import SettingsStore, SettingsUnavailable
from utils.helpers import pick_random

# 获取当前模块的日志记录器
logger = logging.getLogger(__name__)


async def resolve_vless_uuid(hostname: str, store: SettingsStore) -> str:
    """
    读取 UUID 设置；没有配置或设置不可用时，用域名生成一个稳定的 UUID。
    """
    try:
        value = await store.get("UUID")
    except SettingsUnavailable as e:
        logger.debug(f"读取 UUID 设置失败，使用域名派生的 UUID: {e}")
        value = None
    if value and value.strip():
        return value.strip()
    return str(uuid.uuid5(uuid.NAMESPACE_DNS, hostname.lower()))


async def get_vless_config_list(hostname: str, addresses: List[str], max_count: int,
                                store: SettingsStore, rng: Optional[random.Random] = None) -> List[VlessConfig]:
    """
    生成指向本服务的 VLESS 配置，不参与配额分配。
    Args:
        hostname (str): 本服务的域名，用作 SNI 和 Host。
        addresses (List[str]): 候选的干净 IP 或域名。
        max_count (int): 生成数量。
        store (SettingsStore): 设置来源。
        rng (Optional[random.Random]): 随机数生成器。
    Returns:
        List[VlessConfig]: 生成的配置。
    """
    if max_count <= 0 or not addresses:
        return []
    vless_uuid = await resolve_vless_uuid(hostname, store)
    configs = []
    for index in range(1, max_count + 1):
        configs.append(VlessConfig(
            server=pick_random(addresses, rng),
            port=pick_random(config.VLESS_TLS_PORTS, rng),
            uuid=vless_uuid,
            name=f"{hostname}-vless-{index}",
            network='ws',
            tls=True,
            sni=hostname,
            host=hostname,
            path=config.VLESS_WS_PATH,
        ))
    logger.info(f"生成了 {len(configs)} 个 VLESS 配置。")
    return configs
