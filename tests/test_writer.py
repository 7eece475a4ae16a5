import base64

import yaml

import config
from models.config_model import TrojanConfig, ShadowsocksConfig
from output.writer import (
    configs_to_clash_dict, write_configs_to_base64, write_configs_to_clash_yaml, write_configs_to_plain_text,
)


def sample_configs():
    return [
        TrojanConfig("tr.example.com", 443, password="p", name="node"),
        TrojanConfig("tr2.example.com", 443, password="p", name="node"),
        ShadowsocksConfig("1.2.3.4", 8388, cipher="aes-256-gcm", password="p", name="ss"),
    ]


def test_plain_and_base64_subscriptions(tmp_path):
    configs = sample_configs()

    write_configs_to_plain_text(configs, str(tmp_path))
    write_configs_to_base64(configs, str(tmp_path))

    plain = (tmp_path / config.PLAIN_TEXT_OUTPUT_FILENAME).read_text(encoding="utf-8")
    encoded = (tmp_path / config.BASE64_OUTPUT_FILENAME).read_text(encoding="utf-8")
    assert plain.splitlines() == [conf.to_uri() for conf in configs]
    assert base64.b64decode(encoded).decode("utf-8") == plain


def test_clash_names_are_unique():
    clash = configs_to_clash_dict(sample_configs())

    names = [p["name"] for p in clash["proxies"]]
    assert names == ["node", "node-1", "ss"]
    assert clash["proxy-groups"][0]["proxies"] == ["DIRECT"] + names


def test_clash_suffix_skips_names_already_taken():
    configs = [
        TrojanConfig(f"t{i}.example.com", 443, password="p", name=name)
        for i, name in enumerate(["a", "a-1", "a", "a"])
    ]

    names = [p["name"] for p in configs_to_clash_dict(configs)["proxies"]]

    assert names == ["a", "a-1", "a-2", "a-3"]


def test_clash_yaml_file(tmp_path):
    write_configs_to_clash_yaml(sample_configs(), str(tmp_path))

    with open(tmp_path / config.CLASH_OUTPUT_FILENAME, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    assert len(data["proxies"]) == 3
    assert data["rules"] == ["MATCH,Proxy"]
