from __future__ import annotations
import json
from unittest.mock import patch

import pytest

from chain_exporter.collectors import OntologyCollector
from chain_exporter.rpc import build_payload
from chain_exporter.types import RpcResultError, RpcStatusError, RpcTimeoutError

URL = "http://127.0.0.1:40336"


def _update(collector):
    samples = []
    result = collector.update(samples.append)
    return result, samples


def _ok(result):
    return {"desc": "SUCCESS", "error": 0, "id": "1", "jsonrpc": "2.0", "result": result}


def test_ontology_height_with_version(rpc_stub):
    rpc_stub.route("getblockcount", _ok(777))
    rpc_stub.route("getversion", _ok("v1.2.0"))
    result, samples = _update(OntologyCollector(rpc_stub.url))
    assert result.ok
    assert len(samples) == 1
    assert samples[0].name == "node_testnet_height"
    assert samples[0].value == 777.0
    assert samples[0].labels == {"version": "v1.2.0"}
    assert rpc_stub.requests == [build_payload("getblockcount", "1"), build_payload("getversion", "1")]


def test_ontology_http_500_emits_sentinel_pair(rpc_stub):
    rpc_stub.route("getblockcount", "fail", status=500)
    result, samples = _update(OntologyCollector(rpc_stub.url))
    assert isinstance(result.error, RpcStatusError)
    assert [(s.value, s.labels) for s in samples] == [(0.0, {"version": "0.0"})]
    # version is not asked for once the height is gone
    assert [json.loads(r)["method"] for r in rpc_stub.requests] == ["getblockcount"]


def test_ontology_version_failure_emits_full_sentinel(rpc_stub):
    rpc_stub.route("getblockcount", _ok(777))
    rpc_stub.route("getversion", "{broken")
    result, samples = _update(OntologyCollector(rpc_stub.url))
    assert result.status == "sentinel"
    assert [(s.value, s.label_values) for s in samples] == [(0.0, ("0.0",))]


def test_ontology_node_error_member(rpc_stub):
    rpc_stub.route("getblockcount", {"desc": "INTERNAL ERROR", "error": 42001, "id": "1", "jsonrpc": "2.0", "result": ""})
    result, samples = _update(OntologyCollector(rpc_stub.url))
    assert isinstance(result.error, RpcResultError)
    assert [s.value for s in samples] == [0.0]


def _mock_jsonrpc(url, method, timeout=3.0, request_id=1):
    if method == "getblockcount":
        return _ok(500), None
    return None, RpcTimeoutError(method, url, timeout)


@patch("chain_exporter.collectors.ontology.jsonrpc_call", side_effect=_mock_jsonrpc)
def test_ontology_version_timeout(mock_rpc):
    result, samples = _update(OntologyCollector(URL))
    assert isinstance(result.error, RpcTimeoutError)
    assert len(samples) == 1
    assert samples[0].label_values == ("0.0",)
    assert samples[0].value == 0.0
    assert mock_rpc.call_count == 2


def test_ontology_custom_subsystem():
    collector = OntologyCollector(URL, subsystem="mainnet")
    assert collector.height.fq_name == "node_mainnet_height"
    assert collector.height.help == "ontology mainnet blockchain consensus node height"


def test_ontology_rejects_invalid_subsystem():
    with pytest.raises(ValueError):
        OntologyCollector(URL, subsystem="main-net")
