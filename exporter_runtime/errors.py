"""Custom exceptions for the exporter runtime."""

from __future__ import annotations


class ExporterError(Exception):
    """Base class for every failure surfaced by the exporter."""


class ConfigError(ExporterError):
    """Raised when config is invalid or missing."""


class UnknownModuleError(ConfigError):
    """Raised when a scrape names a module absent from the config."""

    def __init__(self, module: str) -> None:
        super().__init__(f"failed to find '{module}' in config")
        self.module = module


class TargetConnectionError(ExporterError):
    """Raised when the protocol handshake with a target does not complete."""

    def __init__(self, target: str, module: str | None = None, reason: str | None = None) -> None:
        message = f"unable to connect with target {target}"
        if module is not None:
            message += f" via module {module}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.target = target
        self.module = module
        self.reason = reason


class MetricError(ExporterError):
    """
    Failure tied to a single metric definition.

    The scraper binds ``metric`` and ``address`` before re-raising so the
    message names the definition that failed.
    """

    def __init__(self, message: str, metric: str | None = None, address: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.metric = metric
        self.address = address

    def bind(self, metric: str, address: int) -> "MetricError":
        """Attach the failing metric's identity if not already set."""
        if self.metric is None:
            self.metric = metric
        if self.address is None:
            self.address = address
        return self

    def __str__(self) -> str:
        if self.metric is None:
            return self.message
        return f"metric '{self.metric}', address '{self.address}': {self.message}"


class AddressRangeError(MetricError):
    """Raised when a metric address has no matching read function."""


class RegisterReadError(MetricError):
    """Raised when a register read fails on the wire or the device rejects it."""


class MissingBitOffsetError(MetricError, ConfigError):
    """Raised when a bool metric is defined without a bit offset."""

    def __init__(self, metric: str | None = None, address: int | None = None) -> None:
        super().__init__("expected bit position on boolean data type", metric, address)


class DecodeError(MetricError):
    """Raised when raw register bytes cannot be turned into a value."""


class InsufficientRegistersError(DecodeError):
    """Raised when fewer bytes were returned than the data type needs."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"insufficient amount of registers provided: expected at least {expected} bytes, got {actual}"
        )
        self.expected = expected
        self.actual = actual


class UnsupportedDataTypeError(DecodeError):
    """Raised when the data type is not one the decoder knows."""

    def __init__(self, data_type: object) -> None:
        super().__init__(f"unsupported modbus data type '{data_type}'")
        self.data_type = data_type


class RegistrationError(ExporterError):
    """Raised when assembled metrics cannot be applied to a registry."""


class RegistrationConflictError(RegistrationError):
    """Raised when a collector clashes with one already registered."""


class IllegalCounterValueError(RegistrationError):
    """Raised when a counter would be decremented."""

    def __init__(self, name: str, metric_type: str, value: float, labels: dict[str, str]) -> None:
        super().__init__(
            f"metric '{name}', type '{metric_type}', value '{value}', labels '{labels}': "
            "counters can only be incremented by non-negative amounts"
        )
        self.name = name
        self.metric_type = metric_type
        self.value = value
        self.labels = labels


class ScrapeError(ExporterError):
    """Raised when a module scrape against a target fails."""

    def __init__(self, message: str, target: str, module: str) -> None:
        super().__init__(message)
        self.target = target
        self.module = module
