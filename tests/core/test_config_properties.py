"""
Property-based tests for OASTWatch configuration management.
"""

import pytest
from hypothesis import given, strategies as st
from pydantic import ValidationError

from oastwatch.core import config as config_module
from oastwatch.core.config import (
    DEFAULT_SERVERS,
    ClientConfig,
    LoggingConfig,
    OASTWatchConfig,
    client_options,
    load_config,
    reload_config,
)

hostnames = st.from_regex(r"^[a-z][a-z0-9-]{0,20}(\.[a-z][a-z0-9-]{0,10}){1,3}$", fullmatch=True)


class TestClientConfig:
    """Tests for the per-client configuration model."""

    def test_defaults(self):
        config = ClientConfig()
        assert config.server is None
        assert config.timeout == 30
        assert config.token is None
        assert config.verify_ssl is True

    @given(timeout=st.integers(min_value=1, max_value=3600))
    def test_positive_timeouts_accepted(self, timeout: int):
        assert ClientConfig(timeout=timeout).timeout == timeout

    @given(timeout=st.integers(max_value=0))
    def test_non_positive_timeouts_rejected(self, timeout: int):
        with pytest.raises(ValidationError):
            ClientConfig(timeout=timeout)

    def test_none_timeout_means_default(self):
        assert ClientConfig.from_options({"timeout": None}).timeout == 30

    def test_unknown_keys_ignored(self):
        config = ClientConfig.from_options({"server": "oast.example", "color": "blue"})
        assert config.server == "oast.example"
        assert not hasattr(config, "color")

    def test_frozen(self):
        config = ClientConfig(server="oast.example")
        with pytest.raises(ValidationError):
            config.timeout = 5

    @given(host=hostnames)
    def test_bare_host_uses_https(self, host: str):
        config = ClientConfig(server=host)
        assert config.base_url == f"https://{host}"
        assert config.domain == host

    def test_full_url_keeps_scheme_and_port(self):
        config = ClientConfig(server="http://127.0.0.1:8080/")
        assert config.server == "http://127.0.0.1:8080"
        assert config.base_url == "http://127.0.0.1:8080"
        assert config.domain == "127.0.0.1"

    def test_blank_server_means_default(self):
        assert ClientConfig(server="  ").server is None

    def test_with_server_fills_default(self):
        config = ClientConfig().with_server()
        assert config.server in DEFAULT_SERVERS

    def test_with_server_keeps_explicit(self):
        config = ClientConfig(server="oast.example")
        assert config.with_server() is config

    def test_base_url_requires_server(self):
        with pytest.raises(ValueError):
            ClientConfig().base_url

    def test_from_options_passthrough(self):
        config = ClientConfig(server="oast.example")
        assert ClientConfig.from_options(config) is config
        assert ClientConfig.from_options(None) == ClientConfig()


class TestLoggingConfig:
    """Tests for logging configuration."""

    @given(level=st.sampled_from(["debug", "Info", "WARNING", "error", "critical"]))
    def test_level_normalized(self, level: str):
        assert LoggingConfig(level=level).level == level.upper()

    def test_invalid_level(self):
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")


class TestSettings:
    """Tests for environment-backed settings."""

    @pytest.fixture(autouse=True)
    def reset_global(self, monkeypatch):
        monkeypatch.setattr(config_module, "_config", None)

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("OASTWATCH_CLIENT__SERVER", "oast.example")
        monkeypatch.setenv("OASTWATCH_CLIENT__TIMEOUT", "12")
        monkeypatch.setenv("OASTWATCH_POLL_INTERVAL", "2.5")

        config = OASTWatchConfig()

        assert config.client.server == "oast.example"
        assert config.client.timeout == 12
        assert config.poll_interval == 2.5

    def test_invalid_poll_interval(self):
        with pytest.raises(ValidationError):
            OASTWatchConfig(poll_interval=0)

    def test_env_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / "oastwatch.env"
        env_file.write_text("OASTWATCH_CLIENT__TOKEN=abc123\n")

        config = load_config(env_file)

        assert config.client.token == "abc123"

    def test_client_options_merge(self, monkeypatch):
        monkeypatch.setenv("OASTWATCH_CLIENT__SERVER", "oast.example")
        reload_config()

        options = client_options(timeout=5, token=None)

        assert options["server"] == "oast.example"
        assert options["timeout"] == 5
        assert options["token"] is None
