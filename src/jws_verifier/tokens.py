"""
Compact serialization parsing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .codec import b64url_decode, decode_json_object
from .exceptions import MalformedToken, MissingAlgorithm


@dataclass(frozen=True)
class ParsedToken:
    """
    A JWS split into its parts.

    Attributes:
        header: Decoded JOSE header
        payload: Decoded claims set (unknown claims kept as-is)
        signing_input: Exact bytes of ``segment0 + "." + segment1``
        signature: Decoded signature bytes, possibly empty
    """
    header: dict[str, Any]
    payload: dict[str, Any]
    signing_input: bytes
    signature: bytes

    @property
    def algorithm(self) -> str:
        return self.header["alg"]


def parse_token(token: str) -> ParsedToken:
    """
    Parse a JWS in compact serialization.

    The signing input is taken from the original text, never re-encoded
    from the decoded JSON.

    Args:
        token: ``header.payload.signature`` text

    Returns:
        ParsedToken

    Raises:
        MalformedToken: Not exactly three segments
        MalformedEncoding: A segment is not base64url
        MalformedJson: Header or payload is not a JSON object
        MissingAlgorithm: Header has no string ``alg``
    """
    if not isinstance(token, str):
        raise MalformedToken("token must be a string")

    token = token.strip()
    segments = token.split(".")
    if len(segments) != 3:
        raise MalformedToken(
            f"expected 3 dot-separated segments, got {len(segments)}"
        )

    header_segment, payload_segment, signature_segment = segments

    header = decode_json_object(b64url_decode(header_segment), what="header")
    payload = decode_json_object(b64url_decode(payload_segment), what="payload")
    signature = b64url_decode(signature_segment)

    alg = header.get("alg")
    if not isinstance(alg, str) or not alg:
        raise MissingAlgorithm("header has no 'alg'")

    return ParsedToken(
        header=header,
        payload=payload,
        signing_input=f"{header_segment}.{payload_segment}".encode("ascii"),
        signature=signature,
    )
