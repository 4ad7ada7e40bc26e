"""Modbus exporter entrypoint."""

from __future__ import annotations

import logging
import os

from prometheus_client import disable_created_metrics

from exporter_runtime.config import ConfigRepository
from exporter_runtime.errors import ConfigError
from exporter_runtime.exporter import Exporter
from exporter_runtime.health import HealthReporter
from exporter_runtime.http_server import ExporterServer

logger = logging.getLogger("modbus_exporter")

DEFAULT_LISTEN_HOST = "0.0.0.0"
DEFAULT_LISTEN_PORT = 9602


def configure_logging() -> None:
    """Configure root logging from LOG_LEVEL."""
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_server() -> ExporterServer:
    """Load config from the environment and bind the HTTP server."""
    config_path = os.getenv("EXPORTER_CONFIG")
    listen_host = os.getenv("LISTEN_HOST", DEFAULT_LISTEN_HOST)
    listen_port = os.getenv("LISTEN_PORT", str(DEFAULT_LISTEN_PORT))

    if not config_path:
        raise ConfigError("EXPORTER_CONFIG is required")

    try:
        listen_port_int = int(listen_port)
    except ValueError as exc:
        raise ConfigError(f"LISTEN_PORT must be an integer, got '{listen_port}'") from exc

    config = ConfigRepository(config_path).load()
    logger.info("modbus_exporter config loaded")

    return ExporterServer(listen_host, listen_port_int, Exporter(config), HealthReporter())


def main() -> None:
    """Application entrypoint for the Modbus exporter."""
    configure_logging()
    logger.info("modbus_exporter starting")
    # no <name>_created series on per-request registries
    disable_created_metrics()

    server = build_server()
    host, port = server.server_address[:2]
    logger.info("modbus_exporter listening on %s:%s", host, port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("modbus_exporter stopping")
    finally:
        server.server_close()


if __name__ == "__main__":
    main()
