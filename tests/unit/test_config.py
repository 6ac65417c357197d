"""
Unit tests for server configuration.
"""

from pathlib import Path

import pytest

from helloserver.config import ServerConfig, DEFAULT_PAGES_DIR


class TestDefaults:
    """Tests for default values."""

    def test_reference_address(self):
        """Test the default loopback address."""
        config = ServerConfig()

        assert config.host == "127.0.0.1"
        assert config.port == 7878

    def test_reference_buffer(self):
        """Test the default fixed buffer size and page names."""
        config = ServerConfig()

        assert config.buffer_size == 1024
        assert config.index_file == "index.html"
        assert config.not_found_file == "404.html"
        assert config.legacy is False

    def test_defaults_validate(self):
        """Test that the defaults are valid."""
        ServerConfig().validate()


class TestProperties:
    """Tests for derived properties."""

    def test_pages_dir_default(self):
        """Test that no document root means the bundled pages."""
        assert ServerConfig().pages_dir == DEFAULT_PAGES_DIR

    def test_pages_dir_custom(self, tmp_path: Path):
        """Test an explicit document root."""
        assert ServerConfig(document_root=str(tmp_path)).pages_dir == tmp_path

    def test_is_serial(self):
        """Test when connections are served on the accept thread."""
        assert not ServerConfig().is_serial
        assert ServerConfig(legacy=True).is_serial
        assert ServerConfig(min_workers=0, max_workers=0).is_serial


class TestValidate:
    """Tests for validate()."""

    @pytest.mark.parametrize("overrides, message", [
        ({"port": -1}, "Invalid port"),
        ({"port": 65536}, "Invalid port"),
        ({"backlog": 0}, "backlog"),
        ({"min_workers": -1}, "min_workers"),
        ({"min_workers": 8, "max_workers": 4}, "max_workers"),
        ({"min_workers": 0, "max_workers": 4}, "min_workers"),
        ({"buffer_size": 8}, "buffer_size"),
        ({"buffer_size": 4096, "max_header_size": 1024}, "max_header_size"),
        ({"timeout": 0}, "timeout"),
        ({"timeout": -5.0}, "timeout"),
        ({"log_level": "LOUD"}, "log level"),
        ({"index_file": ""}, "index_file"),
    ])
    def test_invalid_values(self, overrides: dict, message: str):
        """Test that bad values are rejected at startup."""
        with pytest.raises(ValueError, match=message):
            ServerConfig(**overrides).validate()

    def test_port_zero_allowed(self):
        """Test that port 0 (OS-assigned) is accepted."""
        ServerConfig(port=0).validate()

    def test_no_timeout_allowed(self):
        """Test that timeout=None (block forever) is accepted."""
        ServerConfig(timeout=None).validate()

    def test_serial_without_workers(self):
        """Test that a disabled pool needs no workers."""
        ServerConfig(min_workers=0, max_workers=0).validate()


class TestFromEnv:
    """Tests for from_env()."""

    def test_defaults_without_env(self, monkeypatch):
        """Test that an empty environment gives the defaults."""
        for name in ("HTTP_HOST", "HTTP_PORT", "HTTP_WORKERS", "HTTP_TIMEOUT",
                     "HTTP_DOCUMENT_ROOT", "HTTP_LEGACY", "HTTP_LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

        config = ServerConfig.from_env()

        assert config.host == "127.0.0.1"
        assert config.port == 7878
        assert config.max_workers == 16
        assert config.timeout == 30.0
        assert config.document_root is None
        assert config.legacy is False
        assert config.log_level == "INFO"

    def test_values_from_env(self, monkeypatch, tmp_path: Path):
        """Test reading every supported variable."""
        monkeypatch.setenv("HTTP_HOST", "0.0.0.0")
        monkeypatch.setenv("HTTP_PORT", "8081")
        monkeypatch.setenv("HTTP_WORKERS", "2")
        monkeypatch.setenv("HTTP_TIMEOUT", "0")
        monkeypatch.setenv("HTTP_DOCUMENT_ROOT", str(tmp_path))
        monkeypatch.setenv("HTTP_LEGACY", "yes")
        monkeypatch.setenv("HTTP_LOG_LEVEL", "debug")

        config = ServerConfig.from_env()

        assert config.host == "0.0.0.0"
        assert config.port == 8081
        assert config.min_workers == 2
        assert config.max_workers == 2
        assert config.timeout is None
        assert config.document_root == str(tmp_path)
        assert config.legacy is True
        assert config.log_level == "DEBUG"
        config.validate()

    @pytest.mark.parametrize("value, expected", [
        ("1", True), ("true", True), ("ON", True),
        ("0", False), ("no", False), ("", False),
    ])
    def test_legacy_flag(self, monkeypatch, value: str, expected: bool):
        """Test the accepted spellings of the legacy flag."""
        monkeypatch.setenv("HTTP_LEGACY", value)
        assert ServerConfig.from_env().legacy is expected

    def test_bad_number(self, monkeypatch):
        """Test that a non-numeric port is reported."""
        monkeypatch.setenv("HTTP_PORT", "eighty")

        with pytest.raises(ValueError):
            ServerConfig.from_env()
