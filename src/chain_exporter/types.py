"""Shared type and exception definitions for the exporter."""
from dataclasses import dataclass
from typing import Optional


class CollectorError(Exception):
    """Base exception for collector errors."""
    pass


class CollectorSetupError(CollectorError):
    """Raised when a collector factory cannot build its collector."""
    pass


class DuplicateCollectorError(CollectorError):
    """Raised when two collectors are registered under the same name."""
    pass


class RegistryFrozenError(CollectorError):
    """Raised when registering after collectors were instantiated."""
    pass


class RpcError(CollectorError):
    """Base exception for a failed JSON-RPC call."""

    def __init__(self, method: str, url: str, message: str):
        self.method = method
        self.url = url
        super().__init__(f"rpc {method} {message} (url={url})")


class RpcRequestError(RpcError):
    """The request could not be constructed."""
    pass


class RpcTransportError(RpcError):
    """The request could not be delivered or answered."""
    pass


class RpcTimeoutError(RpcTransportError):
    """The remote did not answer within the deadline."""

    def __init__(self, method: str, url: str, timeout: float):
        self.timeout = timeout
        super().__init__(method, url, f"timeout after {timeout}s")


class RpcStatusError(RpcTransportError):
    """The remote answered with a non-2xx HTTP status."""

    def __init__(self, method: str, url: str, status: int, reason: str = ""):
        self.status = status
        super().__init__(method, url, f"HTTP {status} {reason}".rstrip())


class RpcDecodeError(RpcError):
    """The body was not a JSON object."""
    pass


class RpcResultError(RpcError):
    """The envelope carried an error or lacked the expected field."""
    pass


SUCCESS = "success"
SENTINEL = "sentinel"
FAILED = "failed"


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of one collector update.

    ``success``: the real sample was emitted.
    ``sentinel``: a fallback sample was emitted because of ``error``.
    ``failed``: the collector raised and emitted nothing usable.
    """
    collector_name: str
    status: str = SUCCESS
    error: Optional[Exception] = None

    @classmethod
    def success(cls, collector_name: str) -> "UpdateResult":
        return cls(collector_name=collector_name, status=SUCCESS)

    @classmethod
    def sentinel(cls, collector_name: str, error: Exception) -> "UpdateResult":
        return cls(collector_name=collector_name, status=SENTINEL, error=error)

    @classmethod
    def failed(cls, collector_name: str, error: Exception) -> "UpdateResult":
        return cls(collector_name=collector_name, status=FAILED, error=error)

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS
