"""HTTP endpoints: per-target scrapes, exporter metrics and health."""

from __future__ import annotations

from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
import json
import logging
import time
from typing import Dict, Optional, Tuple
from urllib.parse import parse_qs, urlsplit

from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, Counter, Histogram, generate_latest

from exporter_runtime.errors import ExporterError, UnknownModuleError
from exporter_runtime.exporter import Exporter
from exporter_runtime.health import AdapterState, HealthEvent, HealthReporter

logger = logging.getLogger(__name__)

SCRAPE_PATH = "/modbus"
METRICS_PATH = "/metrics"
HEALTH_PATHS = ("/health", "/health/live", "/health/ready")

SCRAPES = Counter(
    "modbus_exporter_scrapes",
    "Scrapes served by the exporter, by module and outcome.",
    ["module", "outcome"],
)
SCRAPE_DURATION = Histogram(
    "modbus_exporter_scrape_duration_seconds",
    "Duration of target scrapes.",
    ["module"],
)


class BadRequest(Exception):
    """Raised when scrape query parameters are missing or malformed."""


class ExporterHandler(BaseHTTPRequestHandler):
    """HTTP handler serving scrapes, exporter metrics and health JSON."""

    server: "ExporterServer"

    def do_GET(self) -> None:  # noqa: N802
        url = urlsplit(self.path)
        if url.path == SCRAPE_PATH:
            self._scrape(parse_qs(url.query))
        elif url.path == METRICS_PATH:
            self._send(200, generate_latest(REGISTRY), CONTENT_TYPE_LATEST)
        elif url.path in HEALTH_PATHS:
            body = json.dumps(self.server.health.snapshot()).encode("utf-8")
            self._send(200, body, "application/json")
        else:
            self._send_text(404, "not found")

    def _scrape(self, query: Dict[str, list]) -> None:
        try:
            target, module, sub_target = parse_scrape_query(query)
        except BadRequest as exc:
            self._send_text(400, str(exc))
            return

        component = f"{target}/{module}"
        start = time.perf_counter()
        try:
            registry = self.server.exporter.scrape(target, sub_target, module)
        except UnknownModuleError as exc:
            self._send_text(400, str(exc))
            return
        except ExporterError as exc:
            elapsed = time.perf_counter() - start
            logger.warning("scrape of %s failed: %s", component, exc)
            self._record(component, module, AdapterState.FAILED, elapsed, str(exc))
            self._send_text(500, str(exc))
            return
        except Exception as exc:
            elapsed = time.perf_counter() - start
            logger.exception("scrape of %s failed unexpectedly", component)
            self._record(component, module, AdapterState.FAILED, elapsed, f"internal error: {exc}")
            self._send_text(500, f"internal error: {exc}")
            return

        elapsed = time.perf_counter() - start
        self._record(component, module, AdapterState.HEALTHY, elapsed)
        self._send(200, generate_latest(registry), CONTENT_TYPE_LATEST)

    def _record(
        self, component: str, module: str, state: AdapterState, elapsed: float, error: Optional[str] = None
    ) -> None:
        outcome = "success" if state is AdapterState.HEALTHY else "failure"
        SCRAPES.labels(module=module, outcome=outcome).inc()
        SCRAPE_DURATION.labels(module=module).observe(elapsed)

        details: Dict[str, object] = {"duration_seconds": elapsed}
        if error is not None:
            details["error"] = error
        self.server.health.emit(HealthEvent(component=component, status=state, details=details))

    def _send_text(self, status: int, text: str) -> None:
        self._send(status, (text + "\n").encode("utf-8"), "text/plain; charset=utf-8")

    def _send(self, status: int, body: bytes, content_type: str) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: object) -> None:  # noqa: A002
        return


class ExporterServer(ThreadingHTTPServer):
    """Threaded HTTP server; every request scrapes on its own thread."""

    daemon_threads = True

    def __init__(self, host: str, port: int, exporter: Exporter, health: HealthReporter) -> None:
        self.exporter = exporter
        self.health = health
        super().__init__((host, port), ExporterHandler)


def parse_scrape_query(query: Dict[str, list]) -> Tuple[str, str, int]:
    """Extract ``target``, ``module`` and ``sub_target`` from a parsed query string."""
    values = {}
    for name in ("target", "module", "sub_target"):
        given = query.get(name)
        if not given or not given[0]:
            raise BadRequest(f"'{name}' parameter must be specified")
        values[name] = given[0]

    try:
        sub_target = int(values["sub_target"])
    except ValueError as exc:
        raise BadRequest(f"'sub_target' must be an integer, got '{values['sub_target']}'") from exc
    if not 0 <= sub_target <= 255:
        raise BadRequest(f"'sub_target' must be within 0-255, got {sub_target}")

    return values["target"], values["module"], sub_target
