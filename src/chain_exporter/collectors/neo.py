from __future__ import annotations
import logging
from typing import Optional, Tuple

from ..config import Settings
from ..metrics import MetricDescriptor, ValueKind
from ..rpc import DEFAULT_TIMEOUT, jsonrpc_call, extract_uint
from ..types import RpcError, UpdateResult
from .collector_base import NAMESPACE, Collector, Emit, check_rpc_url

NEO_COLLECTOR_VERSION = "0.1.0"


def _get_state_height(url: str, timeout: float) -> Tuple[Optional[int], Optional[RpcError]]:
    envelope, err = jsonrpc_call(url, "getstateheight", timeout=timeout)
    if err is not None:
        return None, err
    return extract_uint(envelope, "getstateheight", url, "result", "localrootindex")


class NeoCollector(Collector):
    """Reports the state root height of a neo node."""

    NAME = "neo"
    VERSION = NEO_COLLECTOR_VERSION

    def __init__(self, rpc_url: str, logger: Optional[logging.Logger] = None,
                 timeout: float = DEFAULT_TIMEOUT):
        super().__init__(logger)
        self.rpc_url = check_rpc_url(rpc_url)
        self.timeout = timeout
        self.height = MetricDescriptor(
            NAMESPACE, "neo", "height",
            "neo node block height",
            value_kind=ValueKind.GAUGE,
        )

    @classmethod
    def create(cls, logger: logging.Logger, settings: Settings) -> "NeoCollector":
        return cls(settings.neo_rpc_url, logger=logger, timeout=settings.rpc_timeout)

    def update(self, emit: Emit) -> UpdateResult:
        height, err = _get_state_height(self.rpc_url, self.timeout)
        if err is not None:
            self.logger.error(f"can not get valid neo height from rpc {self.rpc_url}: {err}",
                              extra={"rpc": self.rpc_url})
            return self.emit_sentinel(emit, self.height, err)

        self.logger.debug(f"neo node collector rpc={self.rpc_url} height={height}")
        emit(self.height.build(height))
        return UpdateResult.success(self.NAME)
