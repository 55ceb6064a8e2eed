"""
Configuration management for jsonrpc-do

This module provides global defaults for new sessions.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_URL = "ws://127.0.0.1:8546"
DEFAULT_TIMEOUT = 1.0


@dataclass
class SessionConfig:
    """Session defaults."""

    url: str = DEFAULT_URL
    timeout: float = DEFAULT_TIMEOUT
    """Connection-establishment timeout in seconds. Calls have no timeout."""


def _get_env(key: str) -> str | None:
    """Get environment variable value."""
    return os.environ.get(key)


def _parse_timeout(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"JSONRPC_DO_TIMEOUT must be a number, got {value!r}") from None


def _env_timeout() -> float | None:
    """Timeout from the environment, or None if unset or unusable."""
    value = _get_env("JSONRPC_DO_TIMEOUT")
    try:
        timeout = _parse_timeout(value)
        if timeout is None or timeout > 0:
            return timeout
    except ValueError:
        pass
    logger.warning("Ignoring JSONRPC_DO_TIMEOUT=%r, using %s seconds", value, DEFAULT_TIMEOUT)
    return None


# Global configuration
_global_config: dict[str, str | float | None] = {
    "url": _get_env("JSONRPC_DO_URL"),
    "timeout": _env_timeout(),
}


def configure(
    *,
    url: str | None = None,
    timeout: float | None = None,
) -> None:
    """
    Configure session defaults.

    Args:
        url: Endpoint used by connect() when no URL is given
            (default: ws://127.0.0.1:8546)
        timeout: Connect timeout in seconds (default: 1.0)

    Example::

        from jsonrpc_do import configure

        configure(url="wss://node.example.org", timeout=5.0)
    """
    if url is not None:
        _global_config["url"] = url
    if timeout is not None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        _global_config["timeout"] = float(timeout)


def get_config() -> SessionConfig:
    """
    Get current session defaults.

    Example::

        from jsonrpc_do import get_config

        print(get_config().url)
    """
    url = _global_config["url"]
    timeout = _global_config["timeout"]
    return SessionConfig(
        url=str(url) if url else DEFAULT_URL,
        timeout=float(timeout) if timeout is not None else DEFAULT_TIMEOUT,
    )


def configure_from_env() -> None:
    """
    Configure from environment variables.

    Reads from:
        - JSONRPC_DO_URL
        - JSONRPC_DO_TIMEOUT
    """
    configure(
        url=_get_env("JSONRPC_DO_URL"),
        timeout=_parse_timeout(_get_env("JSONRPC_DO_TIMEOUT")),
    )


def reset_config() -> None:
    """Forget values set through configure()."""
    _global_config["url"] = None
    _global_config["timeout"] = None
