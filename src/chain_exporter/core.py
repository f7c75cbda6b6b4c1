from __future__ import annotations
import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping

import jsonschema

from . import __version__
from .collectors import Collector
from .collectors.collector_base import NAMESPACE
from .metrics import LabelCardinalityError, MetricDescriptor, Sample, ValueKind
from .types import UpdateResult

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

SCRAPE_SUCCESS = MetricDescriptor(
    NAMESPACE, "scrape", "collector_success",
    "Whether a collector succeeded.",
    label_names=("collector",),
    value_kind=ValueKind.GAUGE,
)
SCRAPE_DURATION = MetricDescriptor(
    NAMESPACE, "scrape", "collector_duration_seconds",
    "Duration of a collector scrape.",
    label_names=("collector",),
    value_kind=ValueKind.GAUGE,
)


def now_iso_tz() -> str:
    return datetime.now(timezone.utc).astimezone().isoformat(timespec="seconds")


@dataclass
class CollectorRun:
    """One collector's part of a scrape."""
    name: str
    result: UpdateResult
    samples: List[Sample] = field(default_factory=list)
    duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "meta": {
                "collector_name": self.name,
                "status": self.result.status,
                "errors": [str(self.result.error)] if self.result.error is not None else [],
                "duration_seconds": self.duration_seconds,
            },
            "samples": [s.to_dict() for s in self.samples],
        }


@dataclass
class ScrapeReport:
    collection_time: str
    runs: Dict[str, CollectorRun] = field(default_factory=dict)

    def health_samples(self) -> List[Sample]:
        samples: List[Sample] = []
        for name, run in self.runs.items():
            samples.append(SCRAPE_DURATION.build(run.duration_seconds, name))
            samples.append(SCRAPE_SUCCESS.build(1.0 if run.result.ok else 0.0, name))
        return samples

    def samples(self) -> List[Sample]:
        """Collector samples in collector order, then health samples."""
        out: List[Sample] = []
        for run in self.runs.values():
            out.extend(run.samples)
        out.extend(self.health_samples())
        return out

    def failures(self) -> Dict[str, UpdateResult]:
        return {name: run.result for name, run in self.runs.items() if not run.result.ok}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exporter": {
                "exporter_version": __version__,
                "collection_time": self.collection_time,
                "collectors_used": list(self.runs),
            },
            "collectors": {name: run.to_dict() for name, run in self.runs.items()},
            "health": [s.to_dict() for s in self.health_samples()],
        }


def run_collector(name: str, collector: Collector) -> CollectorRun:
    """Run a single collector, buffering what it emits.

    A collector that raises is recorded as failed; only a label
    cardinality bug propagates.
    """
    samples: List[Sample] = []
    start = time.monotonic()
    try:
        result = collector.update(samples.append)
    except LabelCardinalityError:
        raise
    except Exception as e:
        logger.error(f"collector {name} failed: {e!r}", exc_info=True)
        result = UpdateResult.failed(name, e)
    duration = time.monotonic() - start

    if result.ok:
        logger.debug(f"collector {name} succeeded in {duration:.3f}s")
    else:
        logger.warning(f"collector {name} {result.status} after {duration:.3f}s: {result.error}")
    return CollectorRun(name=name, result=result, samples=samples, duration_seconds=duration)


def scrape(collectors: Mapping[str, Collector], parallel: bool = False) -> ScrapeReport:
    """Run every collector once and gather their samples."""
    report = ScrapeReport(collection_time=now_iso_tz())
    if parallel and len(collectors) > 1:
        with ThreadPoolExecutor(max_workers=len(collectors), thread_name_prefix="collector") as pool:
            futures = {name: pool.submit(run_collector, name, c) for name, c in collectors.items()}
            for name, future in futures.items():
                report.runs[name] = future.result()
    else:
        for name, c in collectors.items():
            report.runs[name] = run_collector(name, c)
    return report


def validate_output(instance: Dict, schema_path: str) -> None:
    with open(schema_path, "r", encoding="utf-8") as f:
        schema = json.load(f)
    jsonschema.validate(instance=instance, schema=schema)


def bundled_schema_path() -> str:
    import importlib.resources as ir
    with ir.as_file(ir.files(__package__) / "data" / "scrape_report.schema.json") as p:
        return str(p)
