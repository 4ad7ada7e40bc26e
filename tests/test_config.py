"""Tests for loading and validating exporter configuration."""

import json

import pytest

from exporter_runtime.config import ConfigRepository, MetricType, exposed_names, parse_config
from exporter_runtime.decoder import DataType
from exporter_runtime.errors import ConfigError


def document(**metric_overrides):
    metric = {
        "name": "tank_level",
        "help": "Tank level",
        "labels": {"tank": "a"},
        "address": 40001,
        "dataType": "float32",
        "metricType": "gauge",
    }
    metric.update(metric_overrides)
    return {"modules": [{"name": "plc", "timeout": 1000, "metrics": [metric]}]}


@pytest.fixture
def config_file(tmp_path):
    def _write(raw):
        path = tmp_path / "exporter.json"
        path.write_text(raw if isinstance(raw, str) else json.dumps(raw), encoding="utf-8")
        return str(path)

    return _write


class TestConfigRepository:
    def test_load(self, config_file):
        config = ConfigRepository(config_file(document())).load()

        module = config.get_module("plc")
        assert module.timeout == 1000
        (metric,) = module.metrics
        assert metric.name == "tank_level"
        assert metric.address == 40001
        assert metric.data_type is DataType.FLOAT32
        assert metric.metric_type is MetricType.GAUGE
        assert metric.labels == {"tank": "a"}
        assert metric.bit_offset is None

    def test_unknown_module_is_none(self, config_file):
        config = ConfigRepository(config_file(document())).load()

        assert config.get_module("other") is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            ConfigRepository(str(tmp_path / "absent.json")).load()

    def test_invalid_json(self, config_file):
        with pytest.raises(ConfigError, match="Invalid JSON"):
            ConfigRepository(config_file("{not json")).load()


class TestParseConfig:
    def test_defaults(self):
        raw = {"modules": [{"name": "m", "metrics": [{"name": "x", "address": 30001, "dataType": "int16"}]}]}

        module = parse_config(raw).get_module("m")

        assert module.timeout == 0
        assert module.metrics[0].metric_type is MetricType.GAUGE
        assert module.metrics[0].labels == {}
        assert module.metrics[0].help == ""

    def test_bool_with_bit_offset(self):
        metric = parse_config(document(dataType="bool", bitOffset=3)).modules[0].metrics[0]

        assert metric.data_type is DataType.BOOL
        assert metric.bit_offset == 3

    def test_bool_without_bit_offset(self):
        with pytest.raises(ConfigError, match="bitOffset"):
            parse_config(document(dataType="bool"))

    @pytest.mark.parametrize(
        "overrides",
        [
            {"dataType": "float64"},
            {"metricType": "histogram"},
            {"address": 50000},
            {"bitOffset": 16},
            {"unexpected": True},
        ],
    )
    def test_schema_violations(self, overrides):
        with pytest.raises(ConfigError, match="schema validation"):
            parse_config(document(**overrides))

    def test_address_outside_function_ranges(self):
        with pytest.raises(ConfigError, match="address"):
            parse_config(document(address=20001))

    def test_invalid_metric_name(self):
        with pytest.raises(ConfigError, match="invalid metric name"):
            parse_config(document(name="1-tank"))

    @pytest.mark.parametrize("label", ["bad-label", "__reserved"])
    def test_invalid_label_name(self, label):
        with pytest.raises(ConfigError, match="invalid label name"):
            parse_config(document(labels={label: "x"}))

    def test_module_label_reserved(self):
        with pytest.raises(ConfigError, match="reserved"):
            parse_config(document(labels={"module": "x"}))

    def test_duplicate_module(self):
        raw = document()
        raw["modules"].append(dict(raw["modules"][0]))

        with pytest.raises(ConfigError, match="Duplicate module"):
            parse_config(raw)


def test_example_config_loads():
    from pathlib import Path

    example = Path(__file__).resolve().parents[1] / "exporter.example.json"
    config = ConfigRepository(str(example)).load()

    assert [metric.data_type for metric in config.get_module("plc").metrics] == [
        DataType.FLOAT32,
        DataType.UINT16,
        DataType.BOOL,
    ]


def module_of(*metrics):
    return {
        "modules": [
            {
                "name": "meter",
                "metrics": [
                    {"name": name, "address": 40001 + index, "dataType": "uint16", "metricType": kind}
                    for index, (name, kind) in enumerate(metrics)
                ],
            }
        ]
    }


class TestExposedNames:
    def test_counter_series(self):
        assert exposed_names("energy", MetricType.COUNTER) == {"energy", "energy_total", "energy_created"}
        assert exposed_names("energy_total", MetricType.COUNTER) == exposed_names("energy", MetricType.COUNTER)

    def test_gauge_series(self):
        assert exposed_names("energy", MetricType.GAUGE) == {"energy"}

    @pytest.mark.parametrize(
        "metrics",
        [
            [("energy", "gauge"), ("energy_total", "counter")],
            [("energy", "gauge"), ("energy", "counter")],
            [("energy_created", "gauge"), ("energy", "counter")],
            [("energy_total", "gauge"), ("energy", "counter")],
            [("energy", "counter"), ("energy_total", "counter")],
        ],
    )
    def test_colliding_series_rejected(self, metrics):
        with pytest.raises(ConfigError, match="collides with metric"):
            parse_config(module_of(*metrics))

    @pytest.mark.parametrize(
        "metrics",
        [
            [("energy", "gauge"), ("energy", "gauge")],
            [("energy", "counter"), ("energy", "counter")],
            [("energy_kwh", "gauge"), ("energy", "counter")],
        ],
    )
    def test_distinct_series_accepted(self, metrics):
        assert len(parse_config(module_of(*metrics)).get_module("meter").metrics) == 2
