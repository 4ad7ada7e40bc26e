"""Modbus exporter runtime package."""
