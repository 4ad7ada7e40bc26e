"""Per-metric register reads for one module."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Dict, Iterable, List

from adapters.adapter_base.base_adapter import BaseAdapter
from exporter_runtime.config import MetricDef, MetricType
from exporter_runtime.decoder import decode
from exporter_runtime.dispatcher import register_address, resolve
from exporter_runtime.errors import MetricError

logger = logging.getLogger(__name__)

# Nothing is cached between metrics, so each request asks for the minimum
# covering the widest data type (float32 / int32 span 2 registers).
READ_QUANTITY = 2
# Coils and discrete inputs are read as one full 16-bit word so every
# bool bit offset (0-15) addresses a real point.
BIT_READ_QUANTITY = 16


@dataclass
class AssembledMetric:
    """A decoded value ready to be applied to a registry."""

    name: str
    help: str
    value: float
    metric_type: MetricType
    labels: Dict[str, str] = field(default_factory=dict)


def scrape_metrics(definitions: Iterable[MetricDef], client: BaseAdapter) -> List[AssembledMetric]:
    """
    Read and decode every definition through ``client``.

    The first failing definition aborts the whole module; its error is
    re-raised with the metric name and address attached.
    """
    metrics: List[AssembledMetric] = []
    for definition in definitions:
        try:
            metrics.append(scrape_metric(definition, client))
        except MetricError as exc:
            raise exc.bind(definition.name, definition.address)
    return metrics


def scrape_metric(definition: MetricDef, client: BaseAdapter) -> AssembledMetric:
    """Read, decode and assemble a single metric."""
    function = resolve(definition.address, definition.name)
    quantity = BIT_READ_QUANTITY if function.bits else READ_QUANTITY
    raw = function.read(client, register_address(definition.address), quantity)
    value = decode(definition.data_type, raw, definition.bit_offset)
    logger.debug("metric %s at %s decoded to %s", definition.name, definition.address, value)

    return AssembledMetric(
        name=definition.name,
        help=definition.help,
        labels=dict(definition.labels) if definition.labels is not None else {},
        value=value,
        metric_type=definition.metric_type,
    )
