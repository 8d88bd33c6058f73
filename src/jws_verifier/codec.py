"""
base64url and JSON helpers for compact-serialized segments.
"""

import base64
import binascii
import json
import re
from typing import Any

from .exceptions import InvalidStructure, MalformedEncoding, MalformedJson

# RFC 7515 section 2: unpadded base64url alphabet only
_B64URL_RE = re.compile(r"[A-Za-z0-9_-]*")


def b64url_encode(data: bytes) -> str:
    """Encode bytes as unpadded base64url text."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(segment: str) -> bytes:
    """
    Decode unpadded base64url text.

    Args:
        segment: One segment of a compact token

    Returns:
        Decoded bytes (empty for an empty segment)

    Raises:
        MalformedEncoding: On characters outside the base64url alphabet,
            padding, or a length no base64 encoding can produce

    Examples:
        >>> b64url_decode("eyJhbGciOiJIUzI1NiJ9")
        b'{"alg":"HS256"}'
    """
    if not _B64URL_RE.fullmatch(segment):
        raise MalformedEncoding("segment contains characters outside base64url")
    if len(segment) % 4 == 1:
        raise MalformedEncoding("segment has an impossible base64url length")

    padding = "=" * (-len(segment) % 4)
    try:
        return base64.urlsafe_b64decode(segment + padding)
    except (binascii.Error, ValueError) as exc:
        raise MalformedEncoding(f"invalid base64url: {exc}") from exc


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON (RFC 8259 section 6)
    raise ValueError(f"non-standard constant {name}")


def decode_json_object(data: bytes, *, what: str = "segment") -> dict[str, Any]:
    """
    Parse UTF-8 JSON that must be an object.

    Raises:
        MalformedJson: Not UTF-8, not JSON, or nested too deeply to parse
        InvalidStructure: Valid JSON but not an object
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedJson(f"{what} is not valid UTF-8") from exc

    try:
        value = json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        raise MalformedJson(f"{what} is not valid JSON: {exc}") from exc

    if not isinstance(value, dict):
        raise InvalidStructure(f"{what} must be a JSON object, got {type(value).__name__}")
    return value


def encode_json(value: Any) -> bytes:
    """Serialize compactly, as tokens are usually produced."""
    return json.dumps(value, separators=(",", ":")).encode("utf-8")
