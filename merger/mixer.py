# merger/mixer.py

import ipaddress
import logging
from typing import Optional

import config # 绝对导入 config 模块
from models.config_model import ProxyConfig, VmessConfig

# 获取当前模块的日志记录器
logger = logging.getLogger(__name__)


def _is_ip(value: str) -> bool:
    try:
        ipaddress.ip_address(value.strip('[]'))
        return True
    except ValueError:
        return False


def mix_config(conf: ProxyConfig, hostname: str, address: str, provider: str) -> Optional[VmessConfig]:
    """
    基于一个 vmess+ws+tls 配置生成经由本服务中转的合并配置。
    新配置连接 address:443，Host/SNI 为本服务域名，原始目标写入 path。
    Args:
        conf (ProxyConfig): 原始配置。
        hostname (str): 本服务的域名。
        address (str): 干净的 IP 或域名，作为新配置的连接地址。
        provider (str): 订阅源标签，附加在名称后面。
    Returns:
        Optional[VmessConfig]: 合并后的配置；原始配置不适合合并时返回 None。
    """
    if not isinstance(conf, VmessConfig):
        return None
    if not conf.tls or conf.network != 'ws':
        return None

    target = conf.sni or conf.host or conf.server
    if not target or _is_ip(target):
        return None
    if target.lower() == hostname.lower() or (conf.server or '').lower() == hostname.lower():
        return None

    path = conf.path or ''
    if path and not path.startswith('/'):
        path = '/' + path

    merged = VmessConfig(
        server=address,
        port=config.MERGED_PORT,
        uuid=conf.uuid,
        alter_id=conf.alter_id,
        cipher=conf.cipher,
        name=f"{conf.name or target}-{provider}" if provider else (conf.name or target),
        network='ws',
        tls=True,
        sni=hostname,
        host=hostname,
        path=f"/{target}:{conf.port}{path}",
        alpn=conf.alpn,
        fp=conf.fp,
        merged=True,
    )
    logger.debug(f"合并配置 {conf.name} -> {merged.server}{merged.path}")
    return merged
