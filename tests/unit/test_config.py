"""
Unit tests for server configuration and route file loading.
"""

import json

import pytest

from mockserver.config import (
    ServerConfig,
    load_route_table,
    load_server_file,
    parse_server_data,
)
from mockserver.errors import ConfigFileOpenError, ConfigParsingError


class TestServerConfig:

    def test_defaults_are_valid(self):
        ServerConfig().validate()

    def test_port_zero_allowed(self):
        ServerConfig(port=0).validate()

    def test_workers_unbounded_by_default(self):
        config = ServerConfig(min_workers=8)

        assert config.max_workers is None
        config.validate()

    @pytest.mark.parametrize("kwargs", [
        {"port": 70000},
        {"port": -1},
        {"min_workers": 0},
        {"min_workers": 4, "max_workers": 2},
        {"timeout": 0},
        {"max_line_length": 10},
        {"max_headers": 0},
        {"error_mode": "ignore"},
        {"log_format": "xml"},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            ServerConfig(**kwargs).validate()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("MOCK_HOST", "0.0.0.0")
        monkeypatch.setenv("MOCK_PORT", "9000")
        monkeypatch.setenv("MOCK_WORKERS", "32")
        monkeypatch.setenv("MOCK_TIMEOUT", "2.5")
        monkeypatch.setenv("MOCK_ROUTES", "routes.json")
        monkeypatch.setenv("MOCK_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("MOCK_ERROR_MODE", "abort")

        config = ServerConfig.from_env()

        assert config.host == "0.0.0.0"
        assert config.port == 9000
        assert config.max_workers == 32
        assert config.timeout == 2.5
        assert config.routes_file == "routes.json"
        assert config.log_level == "DEBUG"
        assert config.error_mode == "abort"

    def test_from_env_defaults(self, monkeypatch):
        for name in ("MOCK_HOST", "MOCK_PORT", "MOCK_ERROR_MODE", "MOCK_WORKERS"):
            monkeypatch.delenv(name, raising=False)

        config = ServerConfig.from_env()

        assert config.host == "127.0.0.1"
        assert config.port == 8000
        assert config.max_workers is None
        assert config.error_mode == "respond"


class TestRouteFile:

    def write(self, tmp_path, data, name="routes.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    def test_list_form(self, tmp_path, route_data):
        server_file = load_server_file(self.write(tmp_path, route_data))

        assert len(server_file.routes) == len(route_data)
        assert server_file.host is None
        assert server_file.port is None

    def test_object_form(self, tmp_path, route_data):
        path = self.write(tmp_path, {"host": "0.0.0.0", "port": 9100, "data": route_data})
        server_file = load_server_file(path)

        assert server_file.host == "0.0.0.0"
        assert server_file.port == 9100
        assert server_file.routes.match("/hello") is not None

    def test_load_route_table(self, tmp_path, route_data):
        table = load_route_table(self.write(tmp_path, route_data))

        assert [e.path for e in table] == [d["path"] for d in route_data]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigFileOpenError):
            load_server_file(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("[{", encoding="utf-8")

        with pytest.raises(ConfigParsingError):
            load_server_file(path)

    @pytest.mark.parametrize("data", [
        "routes",
        {"routes": []},
        {"data": [], "port": "80"},
        {"data": [], "port": True},
        {"data": [], "host": 1},
    ])
    def test_invalid_shape(self, data):
        with pytest.raises(ConfigParsingError):
            parse_server_data(data)

    def test_invalid_route_in_file(self, tmp_path):
        path = self.write(tmp_path, [{"path": "/", "method": "GET"}])

        with pytest.raises(ConfigParsingError):
            load_server_file(path)
