"""
Environment-based configuration.

Values are read from the process environment after loading a ``.env`` file
from the working directory, if one exists.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

DEFAULT_PORT = 8080


@dataclass(frozen=True)
class Config:
    """Immutable server configuration."""
    client_id: str
    client_secret: str
    port: int = DEFAULT_PORT
    is_production: bool = False

    @property
    def host(self) -> str:
        """Bind address: every interface in production, loopback otherwise."""
        return "0.0.0.0" if self.is_production else "localhost"


def load_config(
    environ: Optional[Mapping[str, str]] = None,
    use_dotenv: bool = True,
) -> Config:
    """
    Build a Config from environment variables.

    Args:
        environ: Mapping to read from (default: os.environ)
        use_dotenv: Whether to load a .env file first

    Returns:
        The loaded Config

    Raises:
        ConfigurationError: If a credential is missing or PORT is not an integer
    """
    if use_dotenv:
        load_dotenv()
    env = os.environ if environ is None else environ

    client_id = env.get("NEXAR_CLIENT_ID")
    client_secret = env.get("NEXAR_CLIENT_SECRET")

    if not client_id:
        raise ConfigurationError("NEXAR_CLIENT_ID environment variable is required")
    if not client_secret:
        raise ConfigurationError("NEXAR_CLIENT_SECRET environment variable is required")

    raw_port = env.get("PORT") or str(DEFAULT_PORT)
    try:
        port = int(raw_port)
    except ValueError:
        raise ConfigurationError(f"PORT must be an integer, got {raw_port!r}") from None

    is_production = env.get("ENVIRONMENT", "").lower() == "production"

    return Config(
        client_id=client_id,
        client_secret=client_secret,
        port=port,
        is_production=is_production,
    )
