"""
ClientConfig: Immutable client configuration.

This module contains ONLY static configuration that doesn't change while the
client is in use. The one piece of mutable session state, the bearer token,
lives in credentials.py.

Design principles:
- Frozen dataclasses prevent accidental mutation
- Configuration loaded once at startup
- Environment variables override config file values
"""

import json
import os
from dataclasses import dataclass

from logging_utils import get_logger

logger = get_logger(__name__)

ENV_BASE_URL = "RGXR_BASE_URL"
ENV_TOKEN_PATH = "RGXR_TOKEN_PATH"
ENV_VERBOSE = "RGXR_VERBOSE"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ClientConfig:
    """
    Complete immutable client configuration.

    base_url is prefixed to every endpoint path. The empty default leaves
    paths relative, which only works when the Transport is given an
    httpx.Client with its own base_url; most real uses set it.
    """
    base_url: str = ""
    token_path: str | None = None
    verbose: bool = False

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Create ClientConfig from environment variables."""
        return cls(
            base_url=os.environ.get(ENV_BASE_URL, ""),
            token_path=os.environ.get(ENV_TOKEN_PATH) or None,
            verbose=os.environ.get(ENV_VERBOSE, "").lower() in _TRUTHY,
        )


def default_token_path() -> str:
    """Location of the durable token store when none is configured."""
    return os.path.join(os.path.expanduser("~"), ".rgxr", "session.json")


def load_config(config_path: str | None = None) -> ClientConfig:
    """
    Load configuration from a JSON file and environment variables.

    Priority: Environment variables > Config file > Defaults

    Args:
        config_path: Path to JSON config file. If None, only the environment
            and defaults are used.

    Returns:
        Immutable ClientConfig instance.
    """
    config_data = {}
    if config_path is not None:
        if os.path.exists(config_path):
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    config_data = json.load(f)
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to load config from {config_path}: {e}")
        else:
            logger.warning(f"Config file not found: {config_path}")

    if not isinstance(config_data, dict):
        logger.warning(f"Ignoring config file {config_path}: expected a JSON object")
        config_data = {}

    base_url = os.environ.get(ENV_BASE_URL) or config_data.get("base_url", "")
    token_path = os.environ.get(ENV_TOKEN_PATH) or config_data.get("token_path")

    if ENV_VERBOSE in os.environ:
        verbose = os.environ[ENV_VERBOSE].lower() in _TRUTHY
    else:
        verbose = bool(config_data.get("verbose", False))

    return ClientConfig(
        base_url=base_url.rstrip("/"),
        token_path=token_path,
        verbose=verbose,
    )
