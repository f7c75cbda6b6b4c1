from __future__ import annotations
import logging
from typing import Optional, Tuple

from ..config import DEFAULT_ONTOLOGY_SUBSYSTEM, Settings
from ..metrics import MetricDescriptor, ValueKind
from ..rpc import DEFAULT_TIMEOUT, jsonrpc_call, extract_str, extract_uint
from ..types import RpcError, UpdateResult
from .collector_base import NAMESPACE, Collector, Emit, check_rpc_url

ONTOLOGY_COLLECTOR_VERSION = "0.1.0"

# Ontology nodes echo a string id.
REQUEST_ID = "1"


def _get_block_count(url: str, timeout: float) -> Tuple[Optional[int], Optional[RpcError]]:
    envelope, err = jsonrpc_call(url, "getblockcount", timeout=timeout, request_id=REQUEST_ID)
    if err is not None:
        return None, err
    return extract_uint(envelope, "getblockcount", url, "result")


def _get_version(url: str, timeout: float) -> Tuple[Optional[str], Optional[RpcError]]:
    envelope, err = jsonrpc_call(url, "getversion", timeout=timeout, request_id=REQUEST_ID)
    if err is not None:
        return None, err
    return extract_str(envelope, "getversion", url, "result")


class OntologyCollector(Collector):
    """Reports an ontology node's block height labelled with its version."""

    NAME = "ontology"
    VERSION = ONTOLOGY_COLLECTOR_VERSION

    def __init__(self, rpc_url: str, logger: Optional[logging.Logger] = None,
                 timeout: float = DEFAULT_TIMEOUT, subsystem: str = DEFAULT_ONTOLOGY_SUBSYSTEM):
        super().__init__(logger)
        self.rpc_url = check_rpc_url(rpc_url)
        self.timeout = timeout
        self.height = MetricDescriptor(
            NAMESPACE, subsystem, "height",
            f"ontology {subsystem} blockchain consensus node height",
            label_names=("version",),
            value_kind=ValueKind.GAUGE,
        )

    @classmethod
    def create(cls, logger: logging.Logger, settings: Settings) -> "OntologyCollector":
        return cls(
            settings.ontology_rpc_url,
            logger=logger,
            timeout=settings.rpc_timeout,
            subsystem=settings.ontology_subsystem,
        )

    def update(self, emit: Emit) -> UpdateResult:
        height, err = _get_block_count(self.rpc_url, self.timeout)
        if err is not None:
            self.logger.error(f"can not get ontology height from rpc {self.rpc_url}: {err}",
                              extra={"rpc": self.rpc_url})
            return self.emit_sentinel(emit, self.height, err)

        # A height without its version label would break the label set,
        # so a failed version lookup falls back to the full sentinel.
        version, err = _get_version(self.rpc_url, self.timeout)
        if err is not None:
            self.logger.error(f"can not get ontology version from rpc {self.rpc_url}: {err}",
                              extra={"rpc": self.rpc_url})
            return self.emit_sentinel(emit, self.height, err)

        self.logger.debug(f"ontology node collector rpc={self.rpc_url} height={height} version={version}")
        emit(self.height.build(height, version))
        return UpdateResult.success(self.NAME)
