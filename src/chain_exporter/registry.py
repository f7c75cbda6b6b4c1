"""Name -> factory registry of collectors.

The registry is filled once at startup by explicit ``register`` calls and
frozen by the first ``instantiate``.
"""
from __future__ import annotations

import functools
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Iterator, Mapping, Optional, Tuple, Type

from .collectors import Collector, NeoCollector, OntologyCollector
from .config import Settings
from .types import CollectorSetupError, DuplicateCollectorError, RegistryFrozenError

Factory = Callable[[logging.Logger], Collector]

DEFAULT_ENABLED = True
DEFAULT_DISABLED = False

# Registration order is scrape order.
BUILTIN_COLLECTORS: Tuple[Tuple[str, bool, Type[Collector]], ...] = (
    (NeoCollector.NAME, DEFAULT_ENABLED, NeoCollector),
    (OntologyCollector.NAME, DEFAULT_ENABLED, OntologyCollector),
)


@dataclass(frozen=True)
class RegistryEntry:
    name: str
    enabled_by_default: bool
    factory: Factory


class Registry:
    """Registry of collector factories."""

    def __init__(self) -> None:
        self._entries: "OrderedDict[str, RegistryEntry]" = OrderedDict()
        self._frozen = False

    def register(self, name: str, enabled_by_default: bool, factory: Factory) -> RegistryEntry:
        if self._frozen:
            raise RegistryFrozenError(f"cannot register collector '{name}' after collectors were instantiated")
        if name in self._entries:
            raise DuplicateCollectorError(f"collector '{name}' is already registered")
        entry = RegistryEntry(name=name, enabled_by_default=enabled_by_default, factory=factory)
        self._entries[name] = entry
        return entry

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RegistryEntry]:
        return iter(self._entries.values())

    def names(self) -> Tuple[str, ...]:
        return tuple(self._entries)

    def get(self, name: str) -> RegistryEntry:
        if name not in self._entries:
            raise KeyError(f"Collector '{name}' not found. Available: {', '.join(self._entries) or '(none)'}")
        return self._entries[name]

    def is_enabled(self, name: str, overrides: Optional[Mapping[str, bool]] = None,
                   disable_defaults: bool = False) -> bool:
        entry = self.get(name)
        if overrides and overrides.get(name) is not None:
            return bool(overrides[name])
        return entry.enabled_by_default and not disable_defaults

    def instantiate(self, logger: logging.Logger, overrides: Optional[Mapping[str, bool]] = None,
                    disable_defaults: bool = False) -> "OrderedDict[str, Collector]":
        """Build every enabled collector, in registration order."""
        for name in overrides or {}:
            self.get(name)
        self._frozen = True

        collectors: "OrderedDict[str, Collector]" = OrderedDict()
        for entry in self:
            if not self.is_enabled(entry.name, overrides, disable_defaults):
                logger.debug(f"collector {entry.name} disabled")
                continue
            try:
                collectors[entry.name] = entry.factory(logger.getChild(entry.name))
            except Exception as e:
                raise CollectorSetupError(f"couldn't create collector '{entry.name}': {e}") from e
            logger.info(f"enabled collector {entry.name}")
        return collectors


def register_builtin_collectors(registry: Registry, settings: Settings) -> Registry:
    for name, enabled, collector_cls in BUILTIN_COLLECTORS:
        registry.register(name, enabled, functools.partial(collector_cls.create, settings=settings))
    return registry


def default_registry(settings: Optional[Settings] = None) -> Registry:
    return register_builtin_collectors(Registry(), settings or Settings.from_env())
