"""Shared fixtures: a fake protocol adapter and sample module definitions."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import pytest

from adapters.adapter_base.base_adapter import BaseAdapter
from exporter_runtime.config import ExporterConfig, MetricDef, MetricType, Module
from exporter_runtime.decoder import DataType
from exporter_runtime.errors import RegisterReadError, TargetConnectionError

DEFAULT_RESPONSE = b"\x00\x00\x00\x00"


class FakeAdapter(BaseAdapter):
    """In-memory adapter returning fixed bytes per (read method, address)."""

    def __init__(self, responses: Optional[Dict[Tuple[str, int], bytes]] = None, connect_ok: bool = True) -> None:
        self.responses = responses or {}
        self.connect_ok = connect_ok
        self.calls: List[Tuple[str, int, int]] = []
        self.connected = False
        self.closed = False

    def connect(self) -> None:
        if not self.connect_ok:
            raise TargetConnectionError("fake:502", reason="connection refused")
        self.connected = True

    def close(self) -> None:
        self.closed = True

    def _read(self, method: str, address: int, quantity: int) -> bytes:
        self.calls.append((method, address, quantity))
        response = self.responses.get((method, address), DEFAULT_RESPONSE)
        if isinstance(response, Exception):
            raise response
        return response

    def read_coils(self, address: int, quantity: int) -> bytes:
        return self._read("read_coils", address, quantity)

    def read_discrete_inputs(self, address: int, quantity: int) -> bytes:
        return self._read("read_discrete_inputs", address, quantity)

    def read_input_registers(self, address: int, quantity: int) -> bytes:
        return self._read("read_input_registers", address, quantity)

    def read_holding_registers(self, address: int, quantity: int) -> bytes:
        return self._read("read_holding_registers", address, quantity)


class FakeFactory:
    """Adapter factory handing out one prepared FakeAdapter per create()."""

    def __init__(self, adapter: FakeAdapter) -> None:
        self.adapter = adapter
        self.created: List[Tuple[str, int, int]] = []

    def create(self, target: str, sub_target: int, timeout_ms: int = 0) -> FakeAdapter:
        self.created.append((target, sub_target, timeout_ms))
        return self.adapter


def metric_def(
    name: str = "tank_level",
    address: int = 40001,
    data_type: DataType = DataType.FLOAT32,
    metric_type: MetricType = MetricType.GAUGE,
    labels: Optional[Dict[str, str]] = None,
    bit_offset: Optional[int] = None,
) -> MetricDef:
    return MetricDef(
        name=name,
        help=f"{name} help",
        address=address,
        data_type=data_type,
        metric_type=metric_type,
        labels=labels or {},
        bit_offset=bit_offset,
    )


@pytest.fixture
def plc_module():
    """Gauge float32 at 40001 and counter int16 at 30002."""
    return Module(
        name="plc",
        timeout=1500,
        metrics=[
            metric_def("tank_level", 40001, DataType.FLOAT32, MetricType.GAUGE, {"tank": "a"}),
            metric_def("pump_starts", 30002, DataType.INT16, MetricType.COUNTER),
        ],
    )


@pytest.fixture
def plc_adapter():
    return FakeAdapter(
        {
            ("read_holding_registers", 1): b"\x3f\xc0\x00\x00",
            ("read_input_registers", 2): b"\x00\x07\x00\x00",
        }
    )


@pytest.fixture
def plc_config(plc_module):
    return ExporterConfig(modules=[plc_module])


@pytest.fixture
def read_failure():
    return RegisterReadError("read_holding_registers at 5 returned exception response")
