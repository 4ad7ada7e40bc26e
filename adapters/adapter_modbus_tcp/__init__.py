"""Modbus TCP adapter package."""
