"""
Unit tests for configuration system.
"""

import os
import tempfile
import pytest
from courier.config.settings import RequestDefaults
from courier.core.errors import ConfigurationError


class TestRequestDefaults:
    """Tests for RequestDefaults."""

    def test_default_values(self):
        config = RequestDefaults()
        assert config.connect_timeout == 0
        assert config.read_timeout == 0
        assert config.max_buffer_size == 1024 * 1024
        assert config.body_format == "json"
        assert config.async_process is False
        assert config.proxy_host is None

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("COURIER_CONNECT_TIMEOUT", "5000")
        monkeypatch.setenv("COURIER_READ_TIMEOUT", "7000")
        monkeypatch.setenv("COURIER_BODY_FORMAT", " FORM ")
        monkeypatch.setenv("COURIER_ASYNC_PROCESS", "yes")
        monkeypatch.setenv("COURIER_PROXY_HOST", "proxy.local")
        monkeypatch.setenv("COURIER_PROXY_PORT", "3128")
        monkeypatch.setenv("COURIER_PROXY_USER", "user")

        config = RequestDefaults.from_env()
        assert config.connect_timeout == 5000
        assert config.read_timeout == 7000
        assert config.body_format == "form"
        assert config.async_process is True
        assert config.proxy_host == "proxy.local"
        assert config.proxy_port == 3128
        assert config.proxy_username == "user"

    def test_from_env_false_values(self, monkeypatch):
        monkeypatch.setenv("COURIER_LOGGING", "off")
        assert RequestDefaults.from_env().logging_enabled is False

    def test_from_yaml_file(self):
        # Create a temporary YAML file
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            f.write("""
connect_timeout: 2000
body_format: form
max_buffer_size: 4096
""")
            yaml_file = f.name

        try:
            config = RequestDefaults.from_file(yaml_file)
            assert config.connect_timeout == 2000
            assert config.body_format == "form"
            assert config.max_buffer_size == 4096
        finally:
            os.unlink(yaml_file)

    def test_from_json_file(self):
        # Create a temporary JSON file
        with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            f.write("""{
    "read_timeout": 3000,
    "async_process": true
}""")
            json_file = f.name

        try:
            config = RequestDefaults.from_file(json_file)
            assert config.read_timeout == 3000
            assert config.async_process is True
        finally:
            os.unlink(json_file)

    def test_from_file_not_found(self):
        with pytest.raises(FileNotFoundError):
            RequestDefaults.from_file("/nonexistent/config.yaml")

    def test_from_file_unsupported_format(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("connect_timeout=1")

        with pytest.raises(ValueError, match="Unsupported config file format"):
            RequestDefaults.from_file(str(path))

    def test_load_file_overrides_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("COURIER_CONNECT_TIMEOUT", "5000")
        monkeypatch.setenv("COURIER_READ_TIMEOUT", "6000")
        path = tmp_path / "courier.yaml"
        path.write_text("connect_timeout: 100\n")

        config = RequestDefaults.load(str(path))
        assert config.connect_timeout == 100
        assert config.read_timeout == 6000

    def test_load_without_file(self, monkeypatch):
        monkeypatch.setenv("COURIER_READ_TIMEOUT", "6000")
        assert RequestDefaults.load().read_timeout == 6000

    def test_validate_success(self):
        config = RequestDefaults(proxy_host="proxy.local", proxy_port=8080)
        config.validate()  # Should not raise

    def test_validate_negative_timeout(self):
        config = RequestDefaults(read_timeout=-1)
        with pytest.raises(ConfigurationError, match="timeouts must not be negative"):
            config.validate()

    def test_validate_invalid_buffer_size(self):
        config = RequestDefaults(max_buffer_size=0)
        with pytest.raises(ConfigurationError, match="max_buffer_size must be positive"):
            config.validate()

    def test_validate_invalid_body_format(self):
        config = RequestDefaults(body_format="xml")
        with pytest.raises(ConfigurationError, match="body_format must be one of"):
            config.validate()

    def test_validate_port_without_host(self):
        config = RequestDefaults(proxy_port=8080)
        with pytest.raises(ConfigurationError, match="proxy_port requires proxy_host"):
            config.validate()

    def test_validate_host_with_bad_port(self):
        config = RequestDefaults(proxy_host="proxy.local", proxy_port=70000)
        with pytest.raises(ConfigurationError, match="proxy_port must be between"):
            config.validate()
