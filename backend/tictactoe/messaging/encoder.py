"""
JSON encoder/decoder for wire format communication.

Each WebSocket text frame carries exactly one JSON object. Encoding turns a
message dict into such a frame; decoding parses a frame back into a dict.
"""

import json
from typing import Any

# Size limit to prevent resource exhaustion from oversized frames.
MAX_MESSAGE_SIZE = 4096  # bytes of UTF-8 text


class DecodeError(Exception):
    """Error raised when a frame cannot be decoded into a message dict."""


def encode(data: dict[str, Any]) -> str:
    """
    Encode a dict to a compact JSON string.
    """
    return json.dumps(data, separators=(",", ":"))


def decode(raw: str, max_size: int = MAX_MESSAGE_SIZE) -> dict[str, Any]:
    """
    Decode a JSON text frame to a dict.

    Raises DecodeError if the frame exceeds max_size, is not valid JSON,
    or does not hold a JSON object.
    """
    byte_len = len(raw.encode("utf-8", errors="replace"))
    if byte_len > max_size:
        raise DecodeError(f"payload too large: {byte_len} bytes (max {max_size})")
    try:
        result = json.loads(raw)
    except (json.JSONDecodeError, RecursionError) as e:
        raise DecodeError(f"failed to decode JSON data: {e}") from e

    if not isinstance(result, dict):
        raise DecodeError(f"expected object, got {type(result).__name__}")

    return result
