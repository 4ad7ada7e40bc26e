"""Modbus TCP adapter implementation."""

from __future__ import annotations

import logging
from struct import pack
from typing import List, Sequence

from pymodbus.client import ModbusTcpClient
from pymodbus.exceptions import ModbusException

from adapters.adapter_base.base_adapter import BaseAdapter
from exporter_runtime.errors import RegisterReadError, TargetConnectionError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 502
# Used when a module does not configure a timeout.
DEFAULT_TIMEOUT_MS = 10000


class ModbusTcpAdapter(BaseAdapter):
    """
    Modbus TCP adapter implementation.

    Overrides BaseAdapter hooks for the pymodbus TCP client. Register reads
    come back as big-endian 16-bit words; coil and discrete input reads are
    packed into 16-bit words with point ``16 * k + i`` at bit ``i`` of word ``k``.
    """

    def __init__(self, target: str, sub_target: int = 1, timeout_ms: int = 0) -> None:
        """Initialize adapter for ``target`` (``host[:port]``) and device ``sub_target``."""
        self._target = target
        self._host, self._port = self._parse_target(target)
        self._device_id = sub_target
        self._timeout_s = (timeout_ms or DEFAULT_TIMEOUT_MS) / 1000
        self._client: ModbusTcpClient | None = None

    @property
    def timeout(self) -> float:
        """Effective timeout in seconds."""
        return self._timeout_s

    def connect(self) -> None:
        """Connect to Modbus TCP server."""
        self._client = ModbusTcpClient(host=self._host, port=self._port, timeout=self._timeout_s)
        try:
            connected = self._client.connect()
        except ModbusException as exc:
            raise TargetConnectionError(self._target, reason=str(exc)) from exc
        if not connected:
            raise TargetConnectionError(self._target)
        logger.debug("connected to %s:%s (device %s)", self._host, self._port, self._device_id)

    def close(self) -> None:
        """Close the TCP connection."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def read_coils(self, address: int, quantity: int) -> bytes:
        response = self._request("read_coils", address, quantity)
        return self._pack_bits(response.bits[:quantity])

    def read_discrete_inputs(self, address: int, quantity: int) -> bytes:
        response = self._request("read_discrete_inputs", address, quantity)
        return self._pack_bits(response.bits[:quantity])

    def read_input_registers(self, address: int, quantity: int) -> bytes:
        response = self._request("read_input_registers", address, quantity)
        return self._pack_registers(response.registers)

    def read_holding_registers(self, address: int, quantity: int) -> bytes:
        response = self._request("read_holding_registers", address, quantity)
        return self._pack_registers(response.registers)

    def _request(self, method: str, address: int, quantity: int):
        if self._client is None:
            raise RuntimeError("Modbus client not connected")

        try:
            response = getattr(self._client, method)(address, count=quantity, device_id=self._device_id)
        except ModbusException as exc:
            raise RegisterReadError(f"{method} at {address} failed: {exc}") from exc

        if response.isError():
            raise RegisterReadError(f"{method} at {address} returned {response}")
        return response

    @staticmethod
    def _parse_target(target: str) -> tuple[str, int]:
        """Parse host and port from a target string (host[:port] or [ipv6][:port])."""
        if target.startswith("["):
            host, _, rest = target[1:].partition("]")
            if not rest:
                return host, DEFAULT_PORT
            if not rest.startswith(":"):
                raise TargetConnectionError(target, reason="invalid bracketed address")
            port_str = rest[1:]
        elif target.count(":") == 1:
            host, _, port_str = target.partition(":")
        else:
            # no port, or a bare IPv6 literal
            return target, DEFAULT_PORT

        try:
            port = int(port_str)
        except ValueError as exc:
            raise TargetConnectionError(target, reason=f"invalid port '{port_str}'") from exc

        return host, port

    @staticmethod
    def _pack_registers(registers: Sequence[int]) -> bytes:
        """Encode 16-bit registers as big-endian bytes."""
        return pack(f">{len(registers)}H", *registers)

    @staticmethod
    def _pack_bits(bits: Sequence[bool]) -> bytes:
        """Pack bits into big-endian 16-bit words, least significant bit first."""
        words: List[int] = []
        for start in range(0, len(bits), 16):
            word = 0
            for index, bit in enumerate(bits[start:start + 16]):
                if bit:
                    word |= 1 << index
            words.append(word)
        return pack(f">{len(words)}H", *words)
