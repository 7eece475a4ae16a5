import pytest

from models.config_model import VmessConfig, VlessConfig, TrojanConfig, ShadowsocksConfig
from validator.validator import ConfigValidator


@pytest.fixture
def validator():
    return ConfigValidator()


def test_accepts_complete_configs(validator):
    assert validator.validate(VmessConfig("vm.example.com", 443, uuid="u", network="ws", tls=True))
    assert validator.validate(VlessConfig("1.2.3.4", 8443, uuid="u"))
    assert validator.validate(TrojanConfig("tr.example.com", 443, password="p"))
    assert validator.validate(ShadowsocksConfig("5.6.7.8", 8388, cipher="aes-256-gcm", password="p"))


@pytest.mark.parametrize("conf", [
    VmessConfig("vm.example.com", 443),
    VlessConfig("", 443, uuid="u"),
    VlessConfig(None, 443, uuid="u"),
    TrojanConfig("*.example.com", 443, password="p"),
    TrojanConfig("tr.example.com", 70000, password="p"),
    TrojanConfig("tr.example.com", None, password="p"),
    TrojanConfig("tr.example.com", True, password="p"),
    ShadowsocksConfig("5.6.7.8", 8388, password="p"),
    VmessConfig("vm.example.com", 443, uuid="u", network="kcp"),
])
def test_rejects_incomplete_configs(validator, conf):
    assert validator.validate(conf) is False


def test_rejects_foreign_objects(validator):
    assert validator.validate({"type": "vmess"}) is False
    assert validator.validate(None) is False


def test_validator_is_callable_as_filter(validator):
    configs = [TrojanConfig("tr.example.com", 443, password="p"), TrojanConfig("tr.example.com", 443)]

    assert len(list(filter(validator, configs))) == 1
