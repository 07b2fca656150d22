"""Tests for configuration loading and validation."""

import pytest
import yaml

from concerto_provider.config import load_config
from concerto_provider.exceptions import ConfigError

CONNECTION = {
    "api_endpoint": "https://localhost:8443/",
    "cert": "/etc/concerto/api/cert.pem",
    "key": "/etc/concerto/api/private/key.pem",
}


def _write_config(tmp_path, data: dict) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(data))
    return str(path)


class TestLoadConfig:
    def test_minimal_valid_config(self, tmp_path):
        config = load_config(_write_config(tmp_path, {"connection": CONNECTION}))
        assert config.connection.api_endpoint == "https://localhost:8443/"
        assert config.connection.timeout == 30
        assert config.connection.verify_ssl is True
        assert config.connection.ca_cert is None
        assert config.logging.format == "json"

    def test_missing_file_raises(self):
        with pytest.raises(ConfigError, match="not found"):
            load_config("/nonexistent/file.yaml")

    def test_missing_endpoint_raises(self, tmp_path):
        data = {"connection": {"cert": "c.pem", "key": "k.pem"}}
        with pytest.raises(ConfigError, match="api_endpoint"):
            load_config(_write_config(tmp_path, data))

    def test_endpoint_must_be_http(self, tmp_path):
        data = {"connection": {**CONNECTION, "api_endpoint": "ftp://example.com"}}
        with pytest.raises(ConfigError, match="http"):
            load_config(_write_config(tmp_path, data))

    def test_cert_and_key_required(self, tmp_path):
        data = {"connection": {"api_endpoint": "https://localhost:8443", "cert": "c.pem"}}
        with pytest.raises(ConfigError, match="cert and connection.key"):
            load_config(_write_config(tmp_path, data))

    @pytest.mark.parametrize("timeout", [0, -1, "soon"])
    def test_invalid_timeout(self, tmp_path, timeout):
        data = {"connection": {**CONNECTION, "timeout": timeout}}
        with pytest.raises(ConfigError, match="timeout"):
            load_config(_write_config(tmp_path, data))

    def test_env_var_interpolation(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CONCERTO_ENDPOINT", "https://concerto.example.com")
        data = {"connection": {**CONNECTION, "api_endpoint": "${CONCERTO_ENDPOINT}"}}
        config = load_config(_write_config(tmp_path, data))
        assert config.connection.api_endpoint == "https://concerto.example.com"

    def test_env_var_missing_raises(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SURELY_MISSING_VAR", raising=False)
        data = {"connection": {**CONNECTION, "cert": "${SURELY_MISSING_VAR}"}}
        with pytest.raises(ConfigError, match="SURELY_MISSING_VAR"):
            load_config(_write_config(tmp_path, data))

    def test_full_config(self, tmp_path):
        data = {
            "connection": {**CONNECTION, "ca_cert": "/etc/concerto/ca.pem", "verify_ssl": False, "timeout": 10},
            "logging": {"level": "DEBUG", "format": "text"},
            "unknown_section": {"ignored": True},
        }
        config = load_config(_write_config(tmp_path, data))
        assert config.connection.ca_cert == "/etc/concerto/ca.pem"
        assert config.connection.verify_ssl is False
        assert config.connection.timeout == 10
        assert config.logging.level == "DEBUG"
        assert config.logging.format == "text"

    def test_invalid_logging_format(self, tmp_path):
        data = {"connection": CONNECTION, "logging": {"format": "xml"}}
        with pytest.raises(ConfigError, match="format"):
            load_config(_write_config(tmp_path, data))

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("just a string")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(str(path))

    def test_non_mapping_section(self, tmp_path):
        with pytest.raises(ConfigError, match="connection"):
            load_config(_write_config(tmp_path, {"connection": ["a", "b"]}))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("connection: [unclosed")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(str(path))
