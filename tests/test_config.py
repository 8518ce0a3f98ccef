"""
Tests for configuration loading and the command-line entry point.
"""

import dataclasses
import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from nexar_mcp import main as main_module
from nexar_mcp.config import Config, load_config
from nexar_mcp.errors import ConfigurationError

CREDENTIALS = {"NEXAR_CLIENT_ID": "id", "NEXAR_CLIENT_SECRET": "secret"}


class TestLoadConfig:
    """Environment parsing."""

    def test_defaults(self):
        config = load_config(CREDENTIALS, use_dotenv=False)

        assert config == Config(client_id="id", client_secret="secret", port=8080, is_production=False)
        assert config.host == "localhost"

    def test_production(self):
        config = load_config({**CREDENTIALS, "PORT": "9090", "ENVIRONMENT": "production"}, use_dotenv=False)

        assert config.port == 9090
        assert config.is_production is True
        assert config.host == "0.0.0.0"

    @pytest.mark.parametrize("missing", ["NEXAR_CLIENT_ID", "NEXAR_CLIENT_SECRET"])
    def test_missing_credential(self, missing):
        env = dict(CREDENTIALS)
        env[missing] = ""
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(env, use_dotenv=False)
        assert missing in str(exc_info.value)

    def test_bad_port(self):
        with pytest.raises(ConfigurationError):
            load_config({**CREDENTIALS, "PORT": "eighty"}, use_dotenv=False)

    def test_config_is_immutable(self):
        config = load_config(CREDENTIALS, use_dotenv=False)
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.port = 1


class TestMain:
    """CLI wiring; the server itself is replaced."""

    @pytest.fixture
    def calls(self, monkeypatch):
        recorded = []
        monkeypatch.setattr(main_module, "run_server", lambda config, transport: recorded.append((config, transport)))
        monkeypatch.setattr(main_module, "configure_logging", lambda production: None)
        return recorded

    def test_missing_credentials_exit_code(self, monkeypatch, calls, capsys):
        def fail():
            raise ConfigurationError("NEXAR_CLIENT_ID environment variable is required")

        monkeypatch.setattr(main_module, "load_config", fail)

        assert main_module.main([]) == 1
        assert calls == []
        assert "NEXAR_CLIENT_ID" in capsys.readouterr().err

    def test_default_transport_is_stdio(self, monkeypatch, calls):
        monkeypatch.setattr(main_module, "load_config", lambda: Config("id", "secret"))

        assert main_module.main([]) == 0
        config, transport = calls[0]
        assert transport == "stdio"
        assert config.port == 8080

    def test_http_overrides(self, monkeypatch, calls):
        monkeypatch.setattr(main_module, "load_config", lambda: Config("id", "secret"))

        main_module.main(["--transport", "http", "--port", "9000", "--production"])
        config, transport = calls[0]
        assert transport == "http"
        assert config.port == 9000
        assert config.is_production is True
        assert config.host == "0.0.0.0"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
