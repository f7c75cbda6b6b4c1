"""Collectors probing blockchain node RPC endpoints.

This package provides the collector base class and one implementation per
remote service.
"""
# Base classes
from .collector_base import (
    BAD_HEIGHT,
    BAD_VERSION,
    Collector,
    Emit,
)

from .neo import NeoCollector
from .ontology import OntologyCollector

# What this package exports
__all__ = [
    # Base classes
    "BAD_HEIGHT",
    "BAD_VERSION",
    "Collector",
    "Emit",

    # Concrete collectors
    "NeoCollector",
    "OntologyCollector",
]
