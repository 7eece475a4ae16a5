import base64
import json

import pytest


def build_vmess_link(name="vm", server="vm.example.com", port=443, uuid="11111111-2222-3333-4444-555555555555",
                     net="ws", tls="tls", host="", path="/ray", sni=""):
    data = {
        "v": "2", "ps": name, "add": server, "port": str(port), "id": uuid, "aid": "0",
        "net": net, "type": "none", "host": host, "path": path, "tls": tls, "sni": sni,
    }
    return "vmess://" + base64.b64encode(json.dumps(data).encode()).decode()


def build_trojan_link(name="tr", server="tr.example.com", port=443, password="secret"):
    return f"trojan://{password}@{server}:{port}?security=tls&sni={server}#{name}"


@pytest.fixture
def vmess_link():
    return build_vmess_link


@pytest.fixture
def trojan_link():
    return build_trojan_link


@pytest.fixture
def make_fetch():
    """构造一个假的抓取函数：contents 中没有的 URL 视为抓取失败。"""
    def factory(contents):
        calls = []

        async def fake_fetch(urls):
            calls.append(list(urls))
            return [(url, contents.get(url)) for url in urls]

        fake_fetch.calls = calls
        return fake_fetch
    return factory
