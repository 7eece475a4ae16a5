# parser/parser.py

import binascii
import json # vmess 链接的内容是 JSON
import logging
import re
import yaml
from typing import List, Dict, Any, Optional, Tuple
from urllib.parse import urlparse, unquote, parse_qs

import config # 绝对导入 config 模块
from models.config_model import (
    ProxyConfig, VmessConfig, VlessConfig, TrojanConfig, ShadowsocksConfig,
)
from utils.helpers import is_base64, b64decode_text
from validator.validator import ConfigValidator

# 获取当前模块的日志记录器
logger = logging.getLogger(__name__)

# 匹配以受支持协议开头的行，不区分大小写
SCHEME_PATTERN = re.compile(r'^(%s)://' % '|'.join(config.SUPPORTED_SCHEMES), re.IGNORECASE)


def _first(params: Dict[str, List[str]], *names: str) -> Optional[str]:
    """返回查询参数中第一个非空的值。"""
    for name in names:
        values = params.get(name)
        if values and values[0]:
            return values[0]
    return None


def _to_text(value: Any) -> Optional[str]:
    """YAML/JSON 中未加引号的数字会被读成 int，统一转成字符串；非标量视为缺失。"""
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value) or None


def _to_port(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class SubscriptionParser:
    """
    将订阅内容解码为标准化的 ProxyConfig 列表：先尝试 Clash YAML，再尝试 (base64) 链接列表。
    """
    def __init__(self, validator: Optional[ConfigValidator] = None):
        # 实例化时初始化日志记录器
        self.logger = logging.getLogger(__name__)
        self.validator = validator or ConfigValidator()

    # ---------- 单条链接解析 ----------

    def _parse_vmess(self, link: str) -> Optional[ProxyConfig]:
        """
        解析 VMess 代理链接 (vmess://base64(JSON))。
        """
        try:
            data = json.loads(b64decode_text(link[len('vmess://'):]))
            network = data.get('net') or 'tcp'
            path = data.get('path') or None
            return VmessConfig(
                server=_to_text(data.get('add')),
                port=_to_port(data.get('port')),
                uuid=_to_text(data.get('id')),
                alter_id=_to_port(data.get('aid', 0)) or 0,
                cipher=_to_text(data.get('scy')) or 'auto',
                name=_to_text(data.get('ps')),
                network=_to_text(network),
                tls=data.get('tls', '') == 'tls',
                sni=_to_text(data.get('sni')),
                host=_to_text(data.get('host')),
                path=_to_text(path),
                alpn=_to_text(data.get('alpn')),
                fp=_to_text(data.get('fp')),
            )
        except (binascii.Error, UnicodeDecodeError, ValueError, AttributeError) as e:
            self.logger.debug(f"解析 VMess 链接失败: {link[:50]}... - 错误: {e}")
            return None

    def _parse_url_style(self, link: str) -> Tuple[Any, Dict[str, List[str]], Dict[str, Any]]:
        """
        vless:// 与 trojan:// 共用的 URL 解析：返回 (parsed_url, 查询参数, 公共字段)。
        """
        parsed_url = urlparse(link)
        params = parse_qs(parsed_url.query)
        network = _first(params, 'type') or 'tcp'
        path = _first(params, 'serviceName') if network == 'grpc' else _first(params, 'path')
        common = {
            'name': unquote(parsed_url.fragment) if parsed_url.fragment else None,
            'network': network,
            'sni': _first(params, 'sni', 'peer'),
            'host': _first(params, 'host'),
            'path': path,
            'alpn': _first(params, 'alpn'),
            'fp': _first(params, 'fp'),
        }
        return parsed_url, params, common

    def _parse_vless(self, link: str) -> Optional[ProxyConfig]:
        """
        解析 VLESS 代理链接 (vless://uuid@server:port?params#name)。
        """
        try:
            parsed_url, params, common = self._parse_url_style(link)
            return VlessConfig(
                server=parsed_url.hostname,
                port=parsed_url.port,
                uuid=unquote(parsed_url.username) if parsed_url.username else None,
                flow=_first(params, 'flow'),
                encryption=_first(params, 'encryption') or 'none',
                tls=_first(params, 'security') in ('tls', 'reality'),
                **common,
            )
        except ValueError as e:
            self.logger.debug(f"解析 VLESS 链接失败: {link[:50]}... - 错误: {e}")
            return None

    def _parse_trojan(self, link: str) -> Optional[ProxyConfig]:
        """
        解析 Trojan 代理链接，密码在用户名部分。
        """
        try:
            parsed_url, params, common = self._parse_url_style(link)
            return TrojanConfig(
                server=parsed_url.hostname,
                port=parsed_url.port,
                password=unquote(parsed_url.username) if parsed_url.username else None,
                tls=_first(params, 'security') != 'none',
                **common,
            )
        except ValueError as e:
            self.logger.debug(f"解析 Trojan 链接失败: {link[:50]}... - 错误: {e}")
            return None

    def _parse_ss(self, link: str) -> Optional[ProxyConfig]:
        """
        解析 Shadowsocks 链接，兼容 SIP002 (ss://base64(method:password)@server:port#name)
        和旧格式 (ss://base64(method:password@server:port)#name)。
        """
        try:
            body, _, fragment = link[len('ss://'):].partition('#')
            body = body.split('?', 1)[0].rstrip('/')
            name = unquote(fragment) if fragment else None

            if '@' in body:
                creds, server_info = body.rsplit('@', 1)
                creds = unquote(creds)
                if ':' not in creds:
                    creds = b64decode_text(creds)
            else:
                creds, server_info = b64decode_text(body).rsplit('@', 1)

            method, password = creds.split(':', 1) # 分割加密方法和密码
            parsed_server = urlparse(f"//{server_info}")
            return ShadowsocksConfig(
                server=parsed_server.hostname,
                port=parsed_server.port,
                cipher=method,
                password=password,
                name=name,
            )
        except (binascii.Error, UnicodeDecodeError, ValueError) as e:
            self.logger.debug(f"解析 SS 链接失败: {link[:50]}... - 错误: {e}")
            return None

    def decode_config(self, link: str) -> Optional[ProxyConfig]:
        """
        按协议前缀解析单条分享链接。格式错误时返回 None，不会抛出异常。
        Args:
            link (str): 分享链接。
        Returns:
            Optional[ProxyConfig]: 解析出的配置。
        """
        link = link.strip()
        scheme, sep, rest = link.partition('://')
        if not sep:
            return None
        # 协议前缀不区分大小写，统一成小写再分派
        link = f"{scheme.lower()}://{rest}"
        scheme = scheme.lower()
        if scheme == 'vmess':
            return self._parse_vmess(link)
        elif scheme == 'vless':
            return self._parse_vless(link)
        elif scheme == 'trojan':
            return self._parse_trojan(link)
        elif scheme == 'ss':
            return self._parse_ss(link)
        return None

    # ---------- Clash YAML 节点 ----------

    def _from_clash(self, p_data: Dict[str, Any]) -> Optional[ProxyConfig]:
        """
        将单个 Clash 代理节点转换为 ProxyConfig。
        """
        proxy_type = p_data.get('type')
        network = _to_text(p_data.get('network')) or 'tcp'
        ws_opts = p_data.get('ws-opts') or {}
        grpc_opts = p_data.get('grpc-opts') or {}
        headers = ws_opts.get('headers') or {}
        alpn = p_data.get('alpn')
        if isinstance(alpn, list):
            alpn = ','.join(str(item) for item in alpn)

        common = {
            'name': _to_text(p_data.get('name')),
            'network': network,
            'tls': bool(p_data.get('tls')),
            'sni': _to_text(p_data.get('servername') or p_data.get('sni')),
            'host': _to_text(headers.get('Host') or (p_data.get('ws-headers') or {}).get('Host')),
            'path': _to_text(grpc_opts.get('grpc-service-name') if network == 'grpc'
                             else (ws_opts.get('path') or p_data.get('ws-path'))),
            'alpn': _to_text(alpn),
            'fp': _to_text(p_data.get('client-fingerprint')),
        }
        server = _to_text(p_data.get('server'))
        port = _to_port(p_data.get('port'))

        if proxy_type == 'vmess':
            return VmessConfig(server, port, uuid=_to_text(p_data.get('uuid')),
                               alter_id=_to_port(p_data.get('alterId', 0)) or 0,
                               cipher=_to_text(p_data.get('cipher')) or 'auto', **common)
        elif proxy_type == 'vless':
            return VlessConfig(server, port, uuid=_to_text(p_data.get('uuid')),
                               flow=_to_text(p_data.get('flow')), **common)
        elif proxy_type == 'trojan':
            common['tls'] = True # Trojan 协议强制使用 TLS
            return TrojanConfig(server, port, password=_to_text(p_data.get('password')), **common)
        elif proxy_type == 'ss':
            return ShadowsocksConfig(server, port, cipher=_to_text(p_data.get('cipher')),
                                     password=_to_text(p_data.get('password')), name=common['name'])
        self.logger.debug(f"跳过不支持的 Clash 节点类型: {proxy_type}")
        return None

    def _parse_yaml_nodes(self, content: str) -> Optional[List[Dict[str, Any]]]:
        """
        尝试将内容解析为包含非空 proxies 列表的 YAML 文档。
        Returns:
            Optional[List[Dict[str, Any]]]: proxies 列表；不是这种格式时返回 None。
        """
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            self.logger.debug(f"内容不是合法的 YAML: {e}")
            return None
        if not isinstance(data, dict):
            return None
        proxies = data.get('proxies')
        if not isinstance(proxies, list) or not proxies:
            return None
        return proxies

    # ---------- 整段内容 ----------

    def parse_raw_content(self, content: str, source_url: str) -> Tuple[List[ProxyConfig], int]:
        """
        将从订阅源抓取的原始内容解析为通过校验的配置列表。
        Args:
            content (str): 原始内容字符串。
            source_url (str): 订阅来源 URL (用于日志记录)。
        Returns:
            Tuple[List[ProxyConfig], int]: (有效配置列表, 尝试解析的条目数)。
        """
        # 先尝试 YAML (Clash 配置)；只要 proxies 非空就不再尝试链接列表
        proxies_from_yaml = self._parse_yaml_nodes(content)
        if proxies_from_yaml is not None:
            self.logger.debug(f"{source_url} 内容按 YAML 解析。")
            configs = []
            for p_data in proxies_from_yaml:
                try:
                    conf = self._from_clash(p_data)
                except (AttributeError, TypeError) as e:
                    self.logger.debug(f"跳过格式错误的 YAML 节点: {p_data} - 错误: {e}")
                    continue
                if conf is not None and self.validator.validate(conf):
                    configs.append(conf)
            return configs, len(proxies_from_yaml)

        # 整段内容是 base64 时先解码
        if is_base64(content):
            self.logger.debug(f"{source_url} 内容按 base64 解码。")
            content = b64decode_text(content)

        lines = [line.strip() for line in content.split('\n')]
        lines = [line for line in lines if SCHEME_PATTERN.match(line)]
        configs = []
        for line in lines:
            conf = self.decode_config(line)
            if conf is not None and self.validator.validate(conf):
                configs.append(conf)
            else:
                self.logger.debug(f"未能解析行: {line[:50]}... (来自 {source_url})")
        return configs, len(lines)
