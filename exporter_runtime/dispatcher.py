"""Mapping of Modbus addresses to register read functions."""

from __future__ import annotations

from enum import Enum

from adapters.adapter_base.base_adapter import BaseAdapter
from exporter_runtime.errors import AddressRangeError

# The ten-thousands digit of a conventional Modbus address selects the
# function code, the remainder is the register offset.
ADDRESS_SPAN = 10000


class ReadFunction(Enum):
    """Register read operations, keyed by the leading address digit."""

    COILS = (0, "read_coils", True)
    DISCRETE_INPUTS = (1, "read_discrete_inputs", True)
    INPUT_REGISTERS = (3, "read_input_registers", False)
    HOLDING_REGISTERS = (4, "read_holding_registers", False)

    def __init__(self, digit: int, method: str, bits: bool) -> None:
        self.digit = digit
        self.method = method
        # single-bit points rather than 16-bit registers
        self.bits = bits

    def read(self, client: BaseAdapter, address: int, quantity: int) -> bytes:
        """Issue this read against ``client`` at ``address``."""
        return getattr(client, self.method)(address, quantity)


_BY_DIGIT = {function.digit: function for function in ReadFunction}


def resolve(address: int, metric: str | None = None) -> ReadFunction:
    """
    Return the read function serving ``address``.

    '0xxxx' reads coils, '1xxxx' discrete inputs, '3xxxx' input registers
    and '4xxxx' holding registers.
    """
    function = _BY_DIGIT.get(address // ADDRESS_SPAN) if address >= 0 else None
    if function is None:
        raise AddressRangeError(
            "metric address should be within the range of 00000 - 50000. "
            "'0xxxx' for read coil / digital output, '1xxxx' for read discrete inputs / digital input, "
            "'4xxxx' read holding registers / analog output, '3xxxx' read input registers / analog input",
            metric,
            address,
        )
    return function


def register_address(address: int) -> int:
    """Strip the function digit, leaving the protocol-level register offset."""
    return address % ADDRESS_SPAN
