from __future__ import annotations

import pytest

from chain_exporter.config import DEFAULT_NEO_RPC, DEFAULT_ONTOLOGY_RPC, Settings


def test_defaults():
    settings = Settings.from_env({})
    assert settings.neo_rpc_url == DEFAULT_NEO_RPC == "http://127.0.0.1:10332"
    assert settings.ontology_rpc_url == DEFAULT_ONTOLOGY_RPC == "http://127.0.0.1:40336"
    assert settings.ontology_subsystem == "testnet"
    assert settings.rpc_timeout == 3.0


def test_from_env():
    settings = Settings.from_env({
        "NEORPC_URL": "http://neo:10332",
        "ONTOLOGY_RPC_URL": "http://ont:20336",
        "CHAIN_EXPORTER_RPC_TIMEOUT": "1.5",
    })
    assert settings.neo_rpc_url == "http://neo:10332"
    assert settings.ontology_rpc_url == "http://ont:20336"
    assert settings.rpc_timeout == 1.5


def test_overrides_skip_none():
    settings = Settings().with_overrides(neo_rpc_url=None, rpc_timeout=0.25)
    assert settings.neo_rpc_url == DEFAULT_NEO_RPC
    assert settings.rpc_timeout == 0.25


@pytest.mark.parametrize("value", ["0", "-1", "soon"])
def test_invalid_timeout(value):
    with pytest.raises(ValueError):
        Settings.from_env({"CHAIN_EXPORTER_RPC_TIMEOUT": value})


@pytest.mark.parametrize("value", ["main-net", "1net", ""])
def test_invalid_ontology_subsystem(value):
    with pytest.raises(ValueError):
        Settings.from_env({"ONTOLOGY_SUBSYSTEM": value})
    with pytest.raises(ValueError):
        Settings().with_overrides(ontology_subsystem=value)
