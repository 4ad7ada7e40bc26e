"""Abstract base adapter class."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseAdapter(ABC):
    """
    Abstract base class for protocol clients.

    One adapter serves one scrape: connect → read registers → close.
    Every read takes a protocol-level register address and a quantity and
    returns the raw response bytes.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the target device."""

    @abstractmethod
    def close(self) -> None:
        """Release the connection."""

    @abstractmethod
    def read_coils(self, address: int, quantity: int) -> bytes:
        """Read coils / digital outputs (function code 1)."""

    @abstractmethod
    def read_discrete_inputs(self, address: int, quantity: int) -> bytes:
        """Read discrete inputs / digital inputs (function code 2)."""

    @abstractmethod
    def read_input_registers(self, address: int, quantity: int) -> bytes:
        """Read input registers / analog inputs (function code 4)."""

    @abstractmethod
    def read_holding_registers(self, address: int, quantity: int) -> bytes:
        """Read holding registers / analog outputs (function code 3)."""
