import asyncio
import random
import uuid

import config
from generator.vless import get_vless_config_list
from settings.store import MemorySettingsStore, SettingsStore, SettingsUnavailable


class BrokenStore(SettingsStore):
    async def get(self, name):
        raise SettingsUnavailable("down")


def test_generates_requested_number_of_configs():
    store = MemorySettingsStore({"UUID": "aaaaaaaa-bbbb-cccc-dddd-eeeeeeeeeeee"})

    configs = asyncio.run(get_vless_config_list(
        "worker.example.dev", ["1.1.1.1", "2.2.2.2"], 4, store, random.Random(0)))

    assert len(configs) == 4
    assert [c.name for c in configs] == [f"worker.example.dev-vless-{i}" for i in range(1, 5)]
    for conf in configs:
        assert conf.type == "vless"
        assert conf.uuid == "aaaaaaaa-bbbb-cccc-dddd-eeeeeeeeeeee"
        assert conf.server in ("1.1.1.1", "2.2.2.2")
        assert conf.port in config.VLESS_TLS_PORTS
        assert conf.sni == conf.host == "worker.example.dev"
        assert conf.tls is True


def test_uuid_falls_back_to_hostname_derived_value():
    expected = str(uuid.uuid5(uuid.NAMESPACE_DNS, "worker.example.dev"))

    from_missing = asyncio.run(get_vless_config_list("worker.example.dev", ["1.1.1.1"], 1, MemorySettingsStore()))
    from_broken = asyncio.run(get_vless_config_list("Worker.Example.dev", ["1.1.1.1"], 1, BrokenStore()))

    assert from_missing[0].uuid == expected
    assert from_broken[0].uuid == expected


def test_no_configs_without_addresses_or_budget():
    store = MemorySettingsStore()

    assert asyncio.run(get_vless_config_list("w.example.dev", [], 3, store)) == []
    assert asyncio.run(get_vless_config_list("w.example.dev", ["1.1.1.1"], 0, store)) == []
