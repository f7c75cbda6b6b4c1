"""Runtime settings for the built-in collectors."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from .metrics import METRIC_NAME_RE
from .rpc import DEFAULT_TIMEOUT

NEO_RPC_ENV = "NEORPC_URL"
DEFAULT_NEO_RPC = "http://127.0.0.1:10332"

ONTOLOGY_RPC_ENV = "ONTOLOGY_RPC_URL"
DEFAULT_ONTOLOGY_RPC = "http://127.0.0.1:40336"
ONTOLOGY_SUBSYSTEM_ENV = "ONTOLOGY_SUBSYSTEM"
DEFAULT_ONTOLOGY_SUBSYSTEM = "testnet"

RPC_TIMEOUT_ENV = "CHAIN_EXPORTER_RPC_TIMEOUT"


def parse_timeout(value) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"rpc timeout must be a number of seconds, got {value!r}")
    if timeout <= 0:
        raise ValueError(f"rpc timeout must be positive, got {timeout}")
    return timeout


@dataclass(frozen=True)
class Settings:
    neo_rpc_url: str = DEFAULT_NEO_RPC
    ontology_rpc_url: str = DEFAULT_ONTOLOGY_RPC
    ontology_subsystem: str = DEFAULT_ONTOLOGY_SUBSYSTEM
    rpc_timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self):
        object.__setattr__(self, "rpc_timeout", parse_timeout(self.rpc_timeout))
        if not METRIC_NAME_RE.fullmatch(self.ontology_subsystem or ""):
            raise ValueError(
                f"ontology subsystem must match {METRIC_NAME_RE.pattern}, got {self.ontology_subsystem!r}"
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            neo_rpc_url=env.get(NEO_RPC_ENV, DEFAULT_NEO_RPC),
            ontology_rpc_url=env.get(ONTOLOGY_RPC_ENV, DEFAULT_ONTOLOGY_RPC),
            ontology_subsystem=env.get(ONTOLOGY_SUBSYSTEM_ENV, DEFAULT_ONTOLOGY_SUBSYSTEM),
            rpc_timeout=env.get(RPC_TIMEOUT_ENV, DEFAULT_TIMEOUT),
        )

    def with_overrides(self, **values) -> "Settings":
        """Copy with every non-None value applied, e.g. from parsed CLI flags."""
        return replace(self, **{k: v for k, v in values.items() if v is not None})
