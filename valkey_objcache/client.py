"""
Valkey connection manager.

This module owns the lifecycle of the single connection an object cache
talks through. It tracks the connection state explicitly so callers can
tell a healthy client from one that failed or was closed:

    DISCONNECTED -> CONNECTING -> CONNECTED -> CLOSING -> CLOSED
                         \\             \\
                          +-------------+--> ERROR

ERROR is terminal. There is no retry and no automatic reconnect; a client
in ERROR or CLOSED is replaced by creating a new one.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from valkey.asyncio import Valkey
from valkey.exceptions import ValkeyError

from .config import ValkeyConfig, redact_url
from .exceptions import ValkeyConfigurationError, ValkeyConnectionError

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    """Lifecycle states of a ValkeyClient."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSING = "closing"
    CLOSED = "closed"
    ERROR = "error"


class ValkeyClient:
    """
    Owns one ``valkey.asyncio.Valkey`` connection and its state machine.

    The instance is passed explicitly to every cache that uses it; there is
    no module-level shared client.
    """

    def __init__(self, config: Optional[ValkeyConfig] = None):
        """
        Initialize Valkey client with configuration.

        Args:
            config: ValkeyConfig instance, defaults to environment-based config
        """
        self.config = config or ValkeyConfig.from_env()
        self._client: Optional[Valkey] = None
        self._state = ConnectionState.DISCONNECTED
        self._last_error: Optional[BaseException] = None

        logger.debug("Initializing Valkey client: %s", self.config)

    @classmethod
    async def create(
        cls, url: Optional[str] = None, password: Optional[str] = None, **options: Any
    ) -> "ValkeyClient":
        """
        Open a connection to ``url`` and return the connected client.

        Args:
            url: Store endpoint, defaults to the environment
            password: Optional authentication credential
            **options: Other ValkeyConfig fields

        Raises:
            ValkeyConnectionError: If the handshake fails
        """
        client = cls(ValkeyConfig.from_url(url, password=password, **options))
        await client.connect()
        return client

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def last_error(self) -> Optional[BaseException]:
        """The transport error that moved the client to ERROR, if any."""
        return self._last_error

    @property
    def is_connected(self) -> bool:
        """Check if client is currently connected."""
        return self._state is ConnectionState.CONNECTED and self._client is not None

    @property
    def client(self) -> Valkey:
        """
        Get the underlying Valkey client.

        Returns:
            Valkey: The asyncio Valkey client instance

        Raises:
            ValkeyConnectionError: If client is not connected
        """
        if not self.is_connected:
            raise ValkeyConnectionError(
                f"Client not connected (state: {self._state.value}). Call connect() first."
            )
        return self._client

    async def connect(self) -> None:
        """
        Establish the connection and wait for the PING handshake.

        Raises:
            ValkeyConnectionError: If the handshake fails, or the client
                already left the DISCONNECTED state
        """
        if self._state is ConnectionState.CONNECTED:
            return
        if self._state is not ConnectionState.DISCONNECTED:
            raise ValkeyConnectionError(f"Cannot connect from state {self._state.value}")

        self._state = ConnectionState.CONNECTING
        logger.info("Connecting to Valkey at %s", redact_url(self.config.url))

        try:
            self._client = Valkey.from_url(self.config.connection_url(), **self.config.to_connection_kwargs())
            if not await self._client.ping():
                raise ValkeyConnectionError("Ping returned False")
        except (ValkeyError, OSError) as e:
            self._fail(e)
            await self._release()
            logger.warning("Valkey connection failed: %s", e)
            raise ValkeyConnectionError(f"Failed to connect to Valkey: {e}") from e
        except ValkeyConnectionError as e:
            self._fail(e)
            await self._release()
            raise
        except ValueError as e:
            # malformed URL, rejected before any network traffic
            self._fail(e)
            raise ValkeyConfigurationError(f"Invalid Valkey URL: {e}") from e

        self._state = ConnectionState.CONNECTED
        logger.info("Successfully connected to Valkey server")

    async def close(self) -> bool:
        """
        Request shutdown and wait until the transport confirms it.

        Returns:
            bool: True once the connection is closed

        Raises:
            ValkeyConnectionError: If the client is not connected, or the
                transport reports an error during shutdown
        """
        if self._state is not ConnectionState.CONNECTED:
            raise ValkeyConnectionError(f"Cannot close from state {self._state.value}")

        self._state = ConnectionState.CLOSING
        try:
            await self._client.aclose()
        except (ValkeyError, OSError) as e:
            self._fail(e)
            logger.error("Error during Valkey disconnect: %s", e)
            raise ValkeyConnectionError(f"Failed to close Valkey connection: {e}") from e
        finally:
            self._client = None

        self._state = ConnectionState.CLOSED
        logger.info("Disconnected from Valkey server")
        return True

    async def mark_error(self, error: BaseException) -> None:
        """
        Record a transport error seen by an operation and release the
        connection.

        Only CONNECTING and CONNECTED move to ERROR; other states are left
        as they are.
        """
        if self._state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
            self._fail(error)
            logger.warning("Valkey transport error, connection unusable: %s", error)
            await self._release()

    def _fail(self, error: BaseException) -> None:
        self._state = ConnectionState.ERROR
        self._last_error = error

    async def _release(self) -> None:
        # drop a client that failed its handshake or a later command
        client, self._client = self._client, None
        if client is None:
            return
        try:
            await client.aclose()
        except (ValkeyError, OSError) as e:
            logger.debug("Ignoring error while releasing failed client: %s", e)

    async def get_connection_info(self) -> Dict[str, Any]:
        """
        Get connection information and server statistics.

        Returns:
            Dict[str, Any]: Connection information
        """
        info = {
            "state": self._state.value,
            "is_connected": self.is_connected,
            "config": str(self.config),
        }
        if self._last_error is not None:
            info["last_error"] = str(self._last_error)

        if self.is_connected:
            server_info = await self._client.info()
            info.update({
                "server_version": server_info.get(
                    "valkey_version", server_info.get("redis_version", "unknown")
                ),
                "connected_clients": server_info.get("connected_clients", 0),
                "used_memory": server_info.get("used_memory_human", "unknown"),
                "uptime_seconds": server_info.get("uptime_in_seconds", 0),
            })

        return info

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self.is_connected:
            await self.close()
