"""Application of assembled metrics to a scrape-local Prometheus registry."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Tuple

from prometheus_client import CollectorRegistry, Counter, Gauge

from exporter_runtime.config import MODULE_LABEL, MetricType
from exporter_runtime.errors import (
    IllegalCounterValueError,
    RegistrationConflictError,
    RegistrationError,
)
from exporter_runtime.scraper import AssembledMetric

logger = logging.getLogger(__name__)

_COLLECTOR_CLASSES = {
    MetricType.GAUGE: Gauge,
    MetricType.COUNTER: Counter,
}


class RegistryAdapter:
    """
    Creates one collector per (name, kind) on a registry and applies values.

    Gauges are set, so a repeated label combination keeps the last value.
    Counters accumulate and reject negative amounts before anything is
    mutated. An adapter and its registry serve a single scrape.
    """

    def __init__(self, registry: CollectorRegistry, module: str) -> None:
        """Initialize with the scrape's registry and the module being scraped."""
        self._registry = registry
        self._module = module
        self._collectors: Dict[Tuple[str, MetricType], Tuple[Gauge | Counter, Tuple[str, ...]]] = {}

    def apply(self, metric: AssembledMetric) -> None:
        """Apply one metric, registering its collector on first use."""
        labels = dict(metric.labels or {})
        labels[MODULE_LABEL] = self._module
        metric_type = MetricType(metric.metric_type)

        if metric_type is MetricType.COUNTER and metric.value < 0:
            raise IllegalCounterValueError(metric.name, metric_type.value, metric.value, labels)

        collector = self._collector(metric, metric_type, tuple(sorted(labels)))
        child = collector.labels(**labels)
        if metric_type is MetricType.GAUGE:
            child.set(metric.value)
        else:
            child.inc(metric.value)

    def _collector(
        self, metric: AssembledMetric, metric_type: MetricType, labelnames: Tuple[str, ...]
    ) -> Gauge | Counter:
        key = (metric.name, metric_type)
        existing = self._collectors.get(key)
        if existing is not None:
            collector, schema = existing
            if schema != labelnames:
                raise RegistrationConflictError(
                    f"failed to register metric {metric.name}: label names {list(labelnames)} "
                    f"do not match already registered {list(schema)}"
                )
            return collector

        try:
            collector = _COLLECTOR_CLASSES[metric_type](
                metric.name, metric.help, labelnames=labelnames, registry=None
            )
        except ValueError as exc:
            raise RegistrationError(f"failed to create metric {metric.name}: {exc}") from exc

        try:
            self._registry.register(collector)
        except ValueError as exc:
            raise RegistrationConflictError(f"failed to register metric {metric.name}: {exc}") from exc

        self._collectors[key] = (collector, labelnames)
        return collector


def register_metrics(registry: CollectorRegistry, module: str, metrics: Iterable[AssembledMetric]) -> None:
    """Apply ``metrics`` scraped for ``module`` to ``registry``."""
    adapter = RegistryAdapter(registry, module)
    count = 0
    for metric in metrics:
        adapter.apply(metric)
        count += 1
    logger.debug("registered %d metric(s) for module %s", count, module)
