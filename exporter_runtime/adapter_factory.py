"""Factory for creating protocol adapters per scrape."""

from adapters.adapter_base.base_adapter import BaseAdapter
from adapters.adapter_modbus_tcp.modbus_tcp_adapter import ModbusTcpAdapter


class AdapterFactory:
    """
    Factory for creating adapters for a scrape target.

    Only Modbus TCP is supported. Each call returns a fresh, unconnected
    adapter, so concurrent scrapes never share a connection.
    """

    def create(self, target: str, sub_target: int, timeout_ms: int = 0) -> BaseAdapter:
        """Create an adapter for ``target`` addressing device ``sub_target``."""
        return ModbusTcpAdapter(target, sub_target=sub_target, timeout_ms=timeout_ms)
