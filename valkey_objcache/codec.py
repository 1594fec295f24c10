"""
Transport encoding for cached values.

A cached value is any JSON document. On its way to the store it becomes a
transport string::

    base64(zlib(utf8(json(value))))

The zlib stream carries the standard header, so payloads written by other
deflate-based clients of the same keys decode here and the other way round.
An absent value (``None``) is never compressed; it is written to the store
as ``NULL_MARKER`` and reads back as ``None``.
"""

import base64
import json
import zlib
from typing import Dict, List, Optional, Union

from .exceptions import DecodeError

JSONValue = Union[None, bool, int, float, str, List["JSONValue"], Dict[str, "JSONValue"]]

NULL_MARKER = ""


def encode(value: JSONValue, level: int = zlib.Z_DEFAULT_COMPRESSION) -> Optional[str]:
    """
    Encode a JSON document into a transport string.

    Args:
        value: Document to encode
        level: zlib compression level

    Returns:
        Optional[str]: base64 text, or None when ``value`` is None

    Raises:
        TypeError: If ``value`` is not JSON-serializable
        ValueError: If ``value`` contains NaN or infinite floats
    """
    if value is None:
        return None
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    compressed = zlib.compress(text.encode("utf-8"), level)
    return base64.b64encode(compressed).decode("ascii")


def decode(payload: Optional[Union[str, bytes]]) -> JSONValue:
    """
    Decode a transport string back into a JSON document.

    Args:
        payload: Transport string as read from the store

    Returns:
        JSONValue: The document, or None for a missing value or the null marker

    Raises:
        DecodeError: If the payload is not base64, not zlib data, or not JSON
    """
    if payload is None or payload == NULL_MARKER or payload == b"":
        return None
    try:
        compressed = base64.b64decode(payload, validate=True)
        return json.loads(zlib.decompress(compressed).decode("utf-8"))
    # binascii.Error, UnicodeDecodeError and JSONDecodeError are all ValueErrors
    except (ValueError, zlib.error) as e:
        raise DecodeError(f"Invalid cached payload: {e}") from e
