"""Exporter configuration models and repository."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple
import json
import logging
import re

import jsonschema

from exporter_runtime.decoder import DataType
from exporter_runtime.dispatcher import resolve
from exporter_runtime.errors import AddressRangeError, ConfigError

logger = logging.getLogger(__name__)

METRIC_NAME_RE = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")
LABEL_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
MODULE_LABEL = "module"
COUNTER_SUFFIX = "_total"

DEFAULT_SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "exporter_config.schema.json"


class MetricType(str, Enum):
    """Prometheus metric kind a definition is exposed as."""

    GAUGE = "gauge"
    COUNTER = "counter"


@dataclass(frozen=True)
class MetricDef:
    """Definition of a single metric read from a Modbus address."""

    name: str
    help: str
    address: int
    data_type: DataType
    metric_type: MetricType
    labels: Dict[str, str] = field(default_factory=dict)
    bit_offset: Optional[int] = None


@dataclass(frozen=True)
class Module:
    """Named set of metric definitions scraped together."""

    name: str
    metrics: List[MetricDef]
    # milliseconds, 0 means the transport default
    timeout: int = 0


@dataclass(frozen=True)
class ExporterConfig:
    """Top-level configuration for the exporter."""

    modules: List[Module]

    def get_module(self, name: str) -> Optional[Module]:
        """Return the module called ``name`` or None."""
        for module in self.modules:
            if module.name == name:
                return module
        return None


class ConfigRepository:
    """
    Repository for loading configuration.

    Loads module definitions from a local JSON file, validates them against
    the bundled JSON Schema and then applies the checks a schema cannot express.
    """

    def __init__(self, path: str, schema_path: str | None = None) -> None:
        """Initialize with config file path and optional schema path."""
        self._path = Path(path)
        self._schema_path = DEFAULT_SCHEMA_PATH if schema_path is None else Path(schema_path)

    def load(self) -> ExporterConfig:
        """Load and validate exporter configuration."""
        if not self._path.exists():
            raise ConfigError(f"Config file not found: {self._path}")

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in config file: {exc}") from exc

        config = parse_config(raw, self._schema())
        logger.info("loaded %d module(s) from %s", len(config.modules), self._path)
        return config

    def _schema(self) -> dict:
        try:
            return json.loads(self._schema_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Unable to read config schema {self._schema_path}: {exc}") from exc


def parse_config(raw: dict, schema: dict | None = None) -> ExporterConfig:
    """Validate a decoded config document and build the config records."""
    if schema is None:
        schema = json.loads(DEFAULT_SCHEMA_PATH.read_text(encoding="utf-8"))

    try:
        jsonschema.validate(instance=raw, schema=schema)
    except jsonschema.ValidationError as exc:
        location = "/".join(str(part) for part in exc.absolute_path) or "<root>"
        raise ConfigError(f"Config schema validation failed at {location}: {exc.message}") from exc

    modules: List[Module] = []
    seen = set()
    for item in raw["modules"]:
        name = item["name"]
        if name in seen:
            raise ConfigError(f"Duplicate module name: {name}")
        seen.add(name)

        metrics = [_parse_metric(name, metric) for metric in item.get("metrics", [])]
        _check_exposed_names(name, metrics)
        modules.append(Module(name=name, timeout=int(item.get("timeout", 0)), metrics=metrics))

    return ExporterConfig(modules=modules)


def _parse_metric(module: str, item: dict) -> MetricDef:
    name = item["name"]
    where = f"module '{module}', metric '{name}'"

    if not METRIC_NAME_RE.match(name):
        raise ConfigError(f"{where}: invalid metric name")

    labels = dict(item.get("labels") or {})
    for key in labels:
        if not LABEL_NAME_RE.match(key) or key.startswith("__"):
            raise ConfigError(f"{where}: invalid label name '{key}'")
        if key == MODULE_LABEL:
            raise ConfigError(f"{where}: label '{MODULE_LABEL}' is reserved")

    address = int(item["address"])
    try:
        resolve(address, name)
    except AddressRangeError as exc:
        raise ConfigError(f"{where}: {exc.message}") from exc

    data_type = DataType(item["dataType"])
    bit_offset = item.get("bitOffset")
    if data_type is DataType.BOOL and bit_offset is None:
        raise ConfigError(f"{where}: bool data type requires 'bitOffset'")

    return MetricDef(
        name=name,
        help=item.get("help", ""),
        labels=labels,
        address=address,
        data_type=data_type,
        metric_type=MetricType(item.get("metricType", MetricType.GAUGE.value)),
        bit_offset=bit_offset,
    )


def exposed_names(name: str, metric_type: MetricType) -> Set[str]:
    """
    Series names a collector claims in a registry.

    A counter drops a trailing ``_total`` from its name and is exposed as
    ``<name>_total`` alongside ``<name>_created``; a gauge is exposed as is.
    """
    if metric_type is MetricType.GAUGE:
        return {name}
    base = name[: -len(COUNTER_SUFFIX)] if name.endswith(COUNTER_SUFFIX) else name
    return {base, base + COUNTER_SUFFIX, base + "_created"}


def _check_exposed_names(module: str, metrics: List[MetricDef]) -> None:
    """Reject metrics of one module whose collectors would claim the same series."""
    claimed: Dict[str, Tuple[str, MetricType]] = {}
    for metric in metrics:
        key = (metric.name, metric.metric_type)
        for series in sorted(exposed_names(metric.name, metric.metric_type)):
            owner = claimed.setdefault(series, key)
            if owner != key:
                raise ConfigError(
                    f"module '{module}', metric '{metric.name}' ({metric.metric_type.value}): "
                    f"exposed series '{series}' collides with metric '{owner[0]}' ({owner[1].value})"
                )
