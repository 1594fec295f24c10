"""
Exception hierarchy for the object cache.

All errors raised by this package derive from ObjectCacheError so callers
can catch the whole family in one place. Errors coming from the valkey
client are chained with ``raise ... from`` and never swallowed.
"""


class ObjectCacheError(Exception):
    """Base class for all object cache errors."""
    pass


class ValkeyConnectionError(ObjectCacheError):
    """Custom exception for Valkey connection issues.

    Raised when the handshake fails, when shutdown fails, when a transport
    error interrupts an operation, or when an operation is attempted on a
    client that is not connected.
    """
    pass


class TypeMismatchError(ObjectCacheError):
    """Operation against a key holding the wrong kind of value.

    The message is the store's ``WRONGTYPE`` error text, unchanged.
    """
    pass


class DecodeError(ObjectCacheError):
    """Stored payload is not valid base64 / zlib / JSON."""
    pass


class ValkeyConfigurationError(ObjectCacheError):
    """Custom exception for Valkey configuration issues."""
    pass
