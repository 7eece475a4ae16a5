# validator/validator.py

import logging

import config # 绝对导入 config 模块
from models.config_model import ProxyConfig, CONFIG_TYPES

# 获取当前模块的日志记录器
logger = logging.getLogger(__name__)


class ConfigValidator:
    """
    纯函数式的配置校验器：只检查字段是否完整合理，不做任何网络连接。
    """
    def __init__(self):
        # 实例化时初始化日志记录器
        self.logger = logging.getLogger(__name__)

    def _check_endpoint(self, conf: ProxyConfig) -> bool:
        server = conf.server
        if not isinstance(server, str) or not server.strip():
            return False
        if '*' in server or ' ' in server: # 通配符或带空格的地址无法连接
            return False
        port = conf.port
        if isinstance(port, bool) or not isinstance(port, int):
            return False
        return 0 < port < 65536

    def _check_credential(self, conf: ProxyConfig) -> bool:
        if conf.type == 'ss':
            return bool(getattr(conf, 'cipher', None)) and bool(getattr(conf, 'password', None))
        return bool(conf.credential())

    def validate(self, conf: ProxyConfig) -> bool:
        """
        校验单个配置。
        Args:
            conf (ProxyConfig): 待校验的配置。
        Returns:
            bool: 配置可用返回 True，否则返回 False。从不抛出异常。
        """
        if not isinstance(conf, ProxyConfig) or conf.type not in CONFIG_TYPES:
            return False
        if not self._check_endpoint(conf):
            self.logger.debug(f"丢弃地址或端口无效的配置: {conf!r}")
            return False
        if not self._check_credential(conf):
            self.logger.debug(f"丢弃缺少凭据的配置: {conf!r}")
            return False
        if conf.network not in config.SUPPORTED_NETWORKS:
            self.logger.debug(f"丢弃不支持的传输协议 {conf.network}: {conf!r}")
            return False
        return True

    def __call__(self, conf: ProxyConfig) -> bool:
        return self.validate(conf)
