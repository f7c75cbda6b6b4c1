"""Metric descriptors and the samples built from them."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple

METRIC_NAME_RE = re.compile(r"[a-zA-Z_:][a-zA-Z0-9_:]*")


class ValueKind(str, Enum):
    COUNTER = "counter"
    GAUGE = "gauge"


class LabelCardinalityError(Exception):
    """A sample was built with the wrong number of label values.

    This is a bug in the calling collector, not a remote failure.
    """
    pass


def build_fq_name(namespace: str, subsystem: str, name: str) -> str:
    return "_".join(part for part in (namespace, subsystem, name) if part)


@dataclass(frozen=True)
class MetricDescriptor:
    namespace: str
    subsystem: str
    name: str
    help: str
    label_names: Tuple[str, ...] = ()
    value_kind: ValueKind = ValueKind.GAUGE
    fq_name: str = field(init=False)

    def __post_init__(self):
        if not self.name:
            raise ValueError("metric name must not be empty")
        label_names = tuple(self.label_names)
        if len(set(label_names)) != len(label_names):
            raise ValueError(f"duplicate label names for {self.name}: {label_names}")
        object.__setattr__(self, "label_names", label_names)
        object.__setattr__(self, "value_kind", ValueKind(self.value_kind))
        fq_name = build_fq_name(self.namespace, self.subsystem, self.name)
        if not METRIC_NAME_RE.fullmatch(fq_name):
            raise ValueError(f"invalid metric name {fq_name!r}")
        object.__setattr__(self, "fq_name", fq_name)

    def build(self, value: float, *label_values: str) -> "Sample":
        """Bind ``value`` and positional label values into a sample."""
        if len(label_values) != len(self.label_names):
            raise LabelCardinalityError(
                f"{self.fq_name}: expected {len(self.label_names)} label values "
                f"{list(self.label_names)}, got {len(label_values)}"
            )
        return Sample(
            descriptor=self,
            value=float(value),
            label_values=tuple(str(v) for v in label_values),
        )


@dataclass(frozen=True)
class Sample:
    descriptor: MetricDescriptor
    value: float
    label_values: Tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return self.descriptor.fq_name

    @property
    def labels(self) -> Dict[str, str]:
        return dict(zip(self.descriptor.label_names, self.label_values))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.descriptor.value_kind.value,
            "labels": self.labels,
            "value": self.value,
        }

