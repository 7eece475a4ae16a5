from merger.mixer import mix_config
from models.config_model import VmessConfig, TrojanConfig


def ws_vmess(**overrides):
    fields = dict(uuid="u", name="origin", network="ws", tls=True, host="cdn.example.com", path="/ray")
    fields.update(overrides)
    return VmessConfig("vm.example.com", 2096, **fields)


def test_merges_vmess_ws_tls():
    merged = mix_config(ws_vmess(), "worker.example.dev", "104.16.1.1", "prov.example")

    assert merged.merged is True
    assert merged.server == "104.16.1.1"
    assert merged.port == 443
    assert merged.host == merged.sni == "worker.example.dev"
    assert merged.path == "/cdn.example.com:2096/ray"
    assert merged.name == "origin-prov.example"
    assert merged.uuid == "u"


def test_prefers_sni_as_target_and_normalizes_path():
    merged = mix_config(ws_vmess(sni="real.example.com", path="ray"), "worker.example.dev", "1.1.1.1", "p")

    assert merged.path == "/real.example.com:2096/ray"


def test_original_record_is_untouched():
    origin = ws_vmess()
    mix_config(origin, "worker.example.dev", "1.1.1.1", "p")

    assert origin.server == "vm.example.com"
    assert origin.merged is False


def test_rejects_unsuitable_records():
    hostname = "worker.example.dev"

    assert mix_config(ws_vmess(tls=False), hostname, "1.1.1.1", "p") is None
    assert mix_config(ws_vmess(network="tcp"), hostname, "1.1.1.1", "p") is None
    assert mix_config(ws_vmess(host="9.9.9.9"), hostname, "1.1.1.1", "p") is None
    assert mix_config(ws_vmess(host="WORKER.example.dev"), hostname, "1.1.1.1", "p") is None
    assert mix_config(TrojanConfig("tr.example.com", 443, password="p"), hostname, "1.1.1.1", "p") is None
