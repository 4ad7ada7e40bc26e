"""Tests for the environment-driven entrypoint."""

import json

import pytest

from exporter_runtime.errors import ConfigError
from exporter_runtime import main as main_module
from exporter_runtime.main import build_server


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "exporter.json"
    path.write_text(json.dumps({"modules": [{"name": "plc", "metrics": []}]}), encoding="utf-8")
    return str(path)


def test_config_is_required(monkeypatch):
    monkeypatch.delenv("EXPORTER_CONFIG", raising=False)

    with pytest.raises(ConfigError, match="EXPORTER_CONFIG"):
        build_server()


def test_port_must_be_integer(monkeypatch, config_path):
    monkeypatch.setenv("EXPORTER_CONFIG", config_path)
    monkeypatch.setenv("LISTEN_PORT", "http")

    with pytest.raises(ConfigError, match="LISTEN_PORT"):
        build_server()


def test_builds_server(monkeypatch, config_path):
    monkeypatch.setenv("EXPORTER_CONFIG", config_path)
    monkeypatch.setenv("LISTEN_HOST", "127.0.0.1")
    monkeypatch.setenv("LISTEN_PORT", "0")

    server = build_server()
    try:
        assert server.exporter.config.get_module("plc") is not None
    finally:
        server.server_close()


class StoppedServer:
    server_address = ("127.0.0.1", 0)

    def __init__(self):
        self.closed = False

    def serve_forever(self):
        raise KeyboardInterrupt

    def server_close(self):
        self.closed = True


def test_main_disables_created_series(monkeypatch):
    calls = []
    server = StoppedServer()
    monkeypatch.setattr(main_module, "disable_created_metrics", lambda: calls.append("disabled"))
    monkeypatch.setattr(main_module, "build_server", lambda: server)

    main_module.main()

    assert calls == ["disabled"]
    assert server.closed
