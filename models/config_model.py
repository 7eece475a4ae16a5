# models/config_model.py

import base64
import hashlib # 用于生成唯一哈希键
import json
from typing import Dict, Any, Optional, Type
from urllib.parse import quote, urlencode


def _format_host(server: str) -> str:
    """IPv6 地址在链接中需要用方括号包裹。"""
    if ':' in server and not server.startswith('['):
        return f"[{server}]"
    return server


class ProxyConfig:
    """
    代表一个标准化的代理配置，是 vmess / vless / trojan / ss 四种协议的公共基类。
    alpn 和 fp 是所有协议共享的 TLS 附加字段，会被富化步骤覆盖。
    """
    type: str = ""

    def __init__(self, server: Optional[str], port: Optional[int], name: Optional[str] = None,
                 network: str = 'tcp', tls: bool = False, sni: Optional[str] = None,
                 host: Optional[str] = None, path: Optional[str] = None,
                 alpn: Optional[str] = None, fp: Optional[str] = None, merged: bool = False):
        """
        Args:
            server (Optional[str]): 服务器地址。
            port (Optional[int]): 服务器端口。
            name (Optional[str]): 代理名称/标签。
            network (str): 传输协议 (tcp, ws, grpc ...)。
            tls (bool): 是否启用 TLS。
            sni (Optional[str]): TLS 服务器名称指示。
            host (Optional[str]): ws/http 的 Host 头。
            path (Optional[str]): ws 路径或 gRPC 服务名。
            alpn (Optional[str]): ALPN，多个值以逗号分隔。
            fp (Optional[str]): TLS 客户端指纹。
            merged (bool): 是否由合并器生成。
        """
        self.server = server
        self.port = port
        self.name = name
        self.network = network or 'tcp'
        self.tls = tls
        self.sni = sni
        self.host = host
        self.path = path
        self.alpn = alpn
        self.fp = fp
        self.merged = merged

    def credential(self) -> Optional[str]:
        """返回协议的身份凭据 (UUID 或密码)。"""
        return None

    def generate_key(self) -> str:
        """
        为配置生成一个唯一的键，用于去重。
        Returns:
            str: 由协议类型、名称、服务器、端口和凭据组成的 SHA256 哈希。
        """
        key_parts = [self.type, self.name, self.server, self.port, self.credential()]
        unique_string = ':'.join('' if part is None else str(part) for part in key_parts)
        return hashlib.sha256(unique_string.encode('utf-8')).hexdigest()

    def to_uri(self) -> str:
        raise NotImplementedError

    def _tls_params(self) -> Dict[str, str]:
        params = {}
        if self.sni: params['sni'] = self.sni
        if self.alpn: params['alpn'] = self.alpn
        if self.fp: params['fp'] = self.fp
        return params

    def _transport_params(self) -> Dict[str, str]:
        params = {'type': self.network}
        if self.host: params['host'] = self.host
        if self.network == 'grpc':
            if self.path: params['serviceName'] = self.path
        elif self.path:
            params['path'] = self.path
        return params

    def to_clash(self) -> Dict[str, Any]:
        """
        转换为 Clash 代理节点的字典格式。
        """
        clash_proxy = {
            'name': self.name or f"{self.type}-{self.server}:{self.port}",
            'type': self.type,
            'server': self.server,
            'port': self.port,
        }
        if self.network != 'tcp':
            clash_proxy['network'] = self.network
        if self.tls:
            clash_proxy['tls'] = True
            if self.sni: clash_proxy['servername'] = self.sni
            if self.alpn: clash_proxy['alpn'] = self.alpn.split(',')
            if self.fp: clash_proxy['client-fingerprint'] = self.fp
        if self.network == 'ws':
            ws_opts = {'path': self.path or '/'}
            if self.host: ws_opts['headers'] = {'Host': self.host}
            clash_proxy['ws-opts'] = ws_opts
        elif self.network == 'grpc' and self.path:
            clash_proxy['grpc-opts'] = {'grpc-service-name': self.path}
        return clash_proxy

    def __repr__(self):
        return (f"{self.__class__.__name__}(name='{self.name}', server='{self.server}', "
                f"port={self.port}, network='{self.network}', tls={self.tls})")


class VmessConfig(ProxyConfig):
    type = 'vmess'

    def __init__(self, server, port, uuid: Optional[str] = None, alter_id: int = 0,
                 cipher: str = 'auto', **kwargs):
        super().__init__(server, port, **kwargs)
        self.uuid = uuid
        self.alter_id = alter_id
        self.cipher = cipher or 'auto'

    def credential(self) -> Optional[str]:
        return self.uuid

    def to_uri(self) -> str:
        # vmess 链接是 base64 编码的 JSON
        data = {
            'v': '2',
            'ps': self.name or '',
            'add': self.server,
            'port': str(self.port),
            'id': self.uuid,
            'aid': str(self.alter_id),
            'scy': self.cipher,
            'net': self.network,
            'type': 'none',
            'host': self.host or '',
            'path': self.path or '',
            'tls': 'tls' if self.tls else '',
            'sni': self.sni or '',
        }
        if self.alpn: data['alpn'] = self.alpn
        if self.fp: data['fp'] = self.fp
        encoded = base64.b64encode(json.dumps(data, ensure_ascii=False).encode('utf-8')).decode()
        return f"vmess://{encoded}"

    def to_clash(self) -> Dict[str, Any]:
        clash_proxy = super().to_clash()
        clash_proxy['uuid'] = self.uuid
        clash_proxy['alterId'] = self.alter_id
        clash_proxy['cipher'] = self.cipher
        return clash_proxy


class VlessConfig(ProxyConfig):
    type = 'vless'

    def __init__(self, server, port, uuid: Optional[str] = None, flow: Optional[str] = None,
                 encryption: str = 'none', **kwargs):
        super().__init__(server, port, **kwargs)
        self.uuid = uuid
        self.flow = flow
        self.encryption = encryption or 'none'

    def credential(self) -> Optional[str]:
        return self.uuid

    def to_uri(self) -> str:
        params = {'encryption': self.encryption, 'security': 'tls' if self.tls else 'none'}
        params.update(self._transport_params())
        if self.tls: params.update(self._tls_params())
        if self.flow: params['flow'] = self.flow
        return (f"vless://{self.uuid}@{_format_host(self.server)}:{self.port}"
                f"?{urlencode(params, quote_via=quote)}#{quote(self.name or '')}")

    def to_clash(self) -> Dict[str, Any]:
        clash_proxy = super().to_clash()
        clash_proxy['uuid'] = self.uuid
        if self.flow: clash_proxy['flow'] = self.flow
        return clash_proxy


class TrojanConfig(ProxyConfig):
    type = 'trojan'

    def __init__(self, server, port, password: Optional[str] = None, **kwargs):
        kwargs.setdefault('tls', True) # Trojan 协议强制使用 TLS
        super().__init__(server, port, **kwargs)
        self.password = password

    def credential(self) -> Optional[str]:
        return self.password

    def to_uri(self) -> str:
        params = {'security': 'tls' if self.tls else 'none'}
        params.update(self._transport_params())
        if self.tls: params.update(self._tls_params())
        return (f"trojan://{quote(self.password or '', safe='')}@{_format_host(self.server)}:{self.port}"
                f"?{urlencode(params, quote_via=quote)}#{quote(self.name or '')}")

    def to_clash(self) -> Dict[str, Any]:
        clash_proxy = super().to_clash()
        clash_proxy['password'] = self.password
        # Clash 的 trojan 使用 sni 而不是 servername
        if 'servername' in clash_proxy:
            clash_proxy['sni'] = clash_proxy.pop('servername')
        clash_proxy.pop('tls', None)
        return clash_proxy


class ShadowsocksConfig(ProxyConfig):
    type = 'ss'

    def __init__(self, server, port, cipher: Optional[str] = None, password: Optional[str] = None, **kwargs):
        super().__init__(server, port, **kwargs)
        self.cipher = cipher
        self.password = password

    def credential(self) -> Optional[str]:
        return self.password

    def to_uri(self) -> str:
        # SS 链接的 base64 编码部分是 method:password
        encoded_creds = base64.urlsafe_b64encode(f"{self.cipher}:{self.password}".encode('utf-8')).decode().rstrip('=')
        return f"ss://{encoded_creds}@{_format_host(self.server)}:{self.port}#{quote(self.name or '')}"

    def to_clash(self) -> Dict[str, Any]:
        return {
            'name': self.name or f"ss-{self.server}:{self.port}",
            'type': 'ss',
            'server': self.server,
            'port': self.port,
            'cipher': self.cipher,
            'password': self.password,
        }


CONFIG_TYPES: Dict[str, Type[ProxyConfig]] = {
    'vmess': VmessConfig,
    'vless': VlessConfig,
    'trojan': TrojanConfig,
    'ss': ShadowsocksConfig,
}
