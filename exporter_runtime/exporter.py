"""Scrape orchestration: one target, one module, one fresh registry."""

from __future__ import annotations

import logging

from prometheus_client import CollectorRegistry

from exporter_runtime.adapter_factory import AdapterFactory
from exporter_runtime.config import ExporterConfig
from exporter_runtime.errors import (
    MetricError,
    RegistrationError,
    ScrapeError,
    TargetConnectionError,
    UnknownModuleError,
)
from exporter_runtime.registry import register_metrics
from exporter_runtime.scraper import scrape_metrics

logger = logging.getLogger(__name__)


class Exporter:
    """
    Facade converting Modbus registers of remote targets into Prometheus metrics.

    Responsibilities:
    - Resolve the requested module from config
    - Open a connection to the target for the duration of one scrape
    - Scrape, decode and register the module's metrics on a new registry
    """

    def __init__(self, config: ExporterConfig, factory: AdapterFactory | None = None) -> None:
        """Initialize exporter with loaded config and an adapter factory."""
        self._config = config
        self._factory = factory or AdapterFactory()

    @property
    def config(self) -> ExporterConfig:
        return self._config

    def scrape(self, target: str, sub_target: int, module_name: str) -> CollectorRegistry:
        """
        Scrape ``target`` with the metrics of ``module_name``.

        Returns a registry holding only this scrape's metrics, renderable with
        ``prometheus_client.generate_latest``.

        Raises:
            UnknownModuleError: the module is not configured.
            TargetConnectionError: the target could not be reached.
            ScrapeError: reading, decoding or registering a metric failed;
                the underlying error is chained as ``__cause__``.
        """
        module = self._config.get_module(module_name)
        if module is None:
            raise UnknownModuleError(module_name)

        client = self._factory.create(target, sub_target, module.timeout)
        try:
            client.connect()
        except TargetConnectionError as exc:
            client.close()
            raise TargetConnectionError(target, module.name, exc.reason) from exc

        logger.debug("scraping %s (device %s) with module %s", target, sub_target, module.name)
        try:
            metrics = scrape_metrics(module.metrics, client)
        except MetricError as exc:
            raise ScrapeError(
                f"failed to scrape metrics for module '{module.name}': {exc}", target, module.name
            ) from exc
        finally:
            client.close()

        registry = CollectorRegistry()
        try:
            register_metrics(registry, module.name, metrics)
        except RegistrationError as exc:
            raise ScrapeError(
                f"failed to register metrics for module {module.name}: {exc}", target, module.name
            ) from exc

        return registry
