"""Expose scrapes through prometheus_client."""
from __future__ import annotations

from collections import OrderedDict
from typing import Iterable, Iterator, List, Mapping

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric

from .collectors import Collector
from .core import scrape
from .metrics import MetricDescriptor, Sample, ValueKind


def _family(descriptor: MetricDescriptor) -> Metric:
    labels = list(descriptor.label_names)
    if descriptor.value_kind is ValueKind.COUNTER:
        return CounterMetricFamily(descriptor.fq_name, descriptor.help, labels=labels)
    return GaugeMetricFamily(descriptor.fq_name, descriptor.help, labels=labels)


def to_metric_families(samples: Iterable[Sample]) -> List[Metric]:
    """Group samples into one metric family per descriptor, first seen first."""
    families: "OrderedDict[MetricDescriptor, Metric]" = OrderedDict()
    for sample in samples:
        family = families.get(sample.descriptor)
        if family is None:
            family = families[sample.descriptor] = _family(sample.descriptor)
        family.add_metric(list(sample.label_values), sample.value)
    return list(families.values())


class ScrapeCollector:
    """prometheus_client custom collector running a fresh scrape per collect()."""

    def __init__(self, collectors: Mapping[str, Collector], parallel: bool = False):
        self.collectors = collectors
        self.parallel = parallel

    def describe(self) -> List[Metric]:
        # Empty so registering does not trigger a scrape.
        return []

    def collect(self) -> Iterator[Metric]:
        report = scrape(self.collectors, parallel=self.parallel)
        yield from to_metric_families(report.samples())


def render(collectors: Mapping[str, Collector], parallel: bool = False) -> bytes:
    registry = CollectorRegistry(auto_describe=False)
    registry.register(ScrapeCollector(collectors, parallel=parallel))
    return generate_latest(registry)
