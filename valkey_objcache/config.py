"""
Valkey connection configuration.

This module provides the configuration class for the object cache
connection, with environment variable and ``.env`` file support.
"""

import os
import logging
import zlib
from typing import Optional, Dict, Any
from dataclasses import dataclass
from urllib.parse import urlsplit, urlunsplit

from dotenv import load_dotenv

from .exceptions import ValkeyConfigurationError

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_URL = "valkey://localhost:6379/0"


def _env(name: str, fallback: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None and fallback:
        value = os.getenv(fallback)
    return value or None


def _parse_number(name: str, raw: Optional[str], default, kind):
    if raw is None:
        return default
    try:
        return kind(raw)
    except ValueError as e:
        raise ValkeyConfigurationError(f"{name} must be a {kind.__name__}, got {raw!r}") from e


def _replace_password(url: str, replacement: Optional[str]) -> str:
    parts = urlsplit(url)
    if parts.password is None:
        return url
    host = parts.netloc.rsplit("@", 1)[-1]
    userinfo = parts.username or ""
    if replacement is not None:
        userinfo = f"{userinfo}:{replacement}"
    if userinfo:
        host = f"{userinfo}@{host}"
    return urlunsplit(parts._replace(netloc=host))


def redact_url(url: str) -> str:
    """Replace the password component of a connection URL with ``***``."""
    return _replace_password(url, "***")


def strip_password(url: str) -> str:
    """Remove the password component of a connection URL, keeping the username."""
    return _replace_password(url, None)


@dataclass
class ValkeyConfig:
    """
    Configuration for a single object cache connection.

    The store endpoint is given as a URL (``valkey://``, ``redis://``,
    ``rediss://`` or ``unix://``); the password can be embedded in the URL
    or passed separately, the separate value wins.
    """

    url: str = DEFAULT_URL
    password: Optional[str] = None
    socket_timeout: float = 5.0
    socket_connect_timeout: float = 5.0
    client_name: Optional[str] = None
    compression_level: int = zlib.Z_DEFAULT_COMPRESSION

    @classmethod
    def from_env(cls) -> "ValkeyConfig":
        """
        Create ValkeyConfig from environment variables.

        ``REDIS_URL`` and ``REDIS_PASSWORD`` are read when the ``VALKEY_``
        variants are not set.

        Returns:
            ValkeyConfig: Configuration instance with values from environment

        Raises:
            ValkeyConfigurationError: If a numeric variable cannot be parsed
        """
        return cls(
            url=_env("VALKEY_URL", "REDIS_URL") or DEFAULT_URL,
            password=_env("VALKEY_PASSWORD", "REDIS_PASSWORD"),
            socket_timeout=_parse_number(
                "VALKEY_SOCKET_TIMEOUT", _env("VALKEY_SOCKET_TIMEOUT"), 5.0, float
            ),
            socket_connect_timeout=_parse_number(
                "VALKEY_SOCKET_CONNECT_TIMEOUT", _env("VALKEY_SOCKET_CONNECT_TIMEOUT"), 5.0, float
            ),
            client_name=_env("VALKEY_CLIENT_NAME"),
            compression_level=_parse_number(
                "VALKEY_COMPRESSION_LEVEL",
                _env("VALKEY_COMPRESSION_LEVEL"),
                zlib.Z_DEFAULT_COMPRESSION,
                int,
            ),
        )

    @classmethod
    def from_url(cls, url: Optional[str] = None, password: Optional[str] = None, **options: Any) -> "ValkeyConfig":
        """
        Build a config from an explicit URL and options, using the
        environment for anything not given.

        Args:
            url: Store endpoint URL
            password: Optional authentication credential
            **options: Any other ValkeyConfig field

        Returns:
            ValkeyConfig: Configuration instance
        """
        config = cls.from_env()
        if url:
            config.url = url
        if password is not None:
            config.password = password
        for name, value in options.items():
            if not hasattr(config, name):
                raise ValkeyConfigurationError(f"Unknown connection option: {name}")
            setattr(config, name, value)
        return config

    def connection_url(self) -> str:
        """
        URL handed to ``Valkey.from_url``.

        ``from_url`` lets credentials parsed from the URL override keyword
        arguments, so an embedded password is removed when one is set
        explicitly.
        """
        if self.password:
            return strip_password(self.url)
        return self.url

    def to_connection_kwargs(self) -> Dict[str, Any]:
        """
        Convert configuration to keyword arguments for ``Valkey.from_url``.

        Returns:
            Dict[str, Any]: Connection parameters for Valkey client
        """
        kwargs = {
            "socket_timeout": self.socket_timeout,
            "socket_connect_timeout": self.socket_connect_timeout,
            # transport strings are base64 text
            "decode_responses": True,
        }

        if self.password:
            kwargs["password"] = self.password
        if self.client_name:
            kwargs["client_name"] = self.client_name

        return kwargs

    def __str__(self) -> str:
        """String representation hiding sensitive information."""
        password_display = "***" if self.password else "None"
        return (
            f"ValkeyConfig(url={redact_url(self.url)}, password={password_display}, "
            f"socket_timeout={self.socket_timeout})"
        )
