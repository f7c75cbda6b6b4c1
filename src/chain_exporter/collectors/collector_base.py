"""Base class for collectors."""
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional
from urllib.parse import urlparse

from ..config import Settings
from ..metrics import MetricDescriptor, Sample
from ..types import CollectorSetupError, UpdateResult

Emit = Callable[[Sample], None]

NAMESPACE = "node"

# Pushed when a node call fails so alert rules can fire on the value
# instead of on a missing series.
BAD_HEIGHT = 0.0
BAD_VERSION = "0.0"


def check_rpc_url(url: str) -> str:
    parsed = urlparse(url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise CollectorSetupError(f"invalid rpc url {url!r}, expected http(s)://host[:port]")
    return url


class Collector(ABC):
    """Base class for all collectors.

    A collector queries one remote service on every scrape. It keeps its
    configuration between scrapes and nothing else.
    """

    # These should be overridden by subclasses
    NAME: str
    VERSION: str = "0.0.0"

    def __init__(self, logger: Optional[logging.Logger] = None):
        if not getattr(self, "NAME", None):
            raise NotImplementedError("Subclasses must define NAME")
        self.logger = logger or logging.getLogger(type(self).__module__)

    @classmethod
    @abstractmethod
    def create(cls, logger: logging.Logger, settings: Settings) -> "Collector":
        """Factory used by the registry."""

    @abstractmethod
    def update(self, emit: Emit) -> UpdateResult:
        """Query the remote and pass every sample to ``emit``.

        Remote failures never raise: the collector emits its sentinel
        sample and returns the error inside the result.
        """

    def emit_sentinel(self, emit: Emit, descriptor: MetricDescriptor, error: Exception) -> UpdateResult:
        labels = (BAD_VERSION,) * len(descriptor.label_names)
        emit(descriptor.build(BAD_HEIGHT, *labels))
        return UpdateResult.sentinel(self.NAME, error)
