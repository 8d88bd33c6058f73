"""
Exceptions raised by the JWS verifier.

Structural failures describe a token (or key) that cannot be verified at all.
They are distinct from a token that parsed fine but did not verify, which is
reported through ``VerificationResult.valid``.
"""

from __future__ import annotations

from .models import FailureKind


class JWSError(Exception):
    """Base class for all verifier errors."""


class TokenError(JWSError, ValueError):
    """A structural problem with the token or its key pairing."""

    kind: FailureKind = FailureKind.MALFORMED_TOKEN


class MalformedToken(TokenError):
    """Token does not have exactly three dot-separated segments."""

    kind = FailureKind.MALFORMED_TOKEN


class MalformedEncoding(TokenError):
    """A segment is not valid unpadded base64url."""

    kind = FailureKind.MALFORMED_ENCODING


class MalformedJson(TokenError):
    """Header or payload is not valid UTF-8 JSON."""

    kind = FailureKind.MALFORMED_JSON


class InvalidStructure(MalformedJson):
    """Header or payload is valid JSON but not a JSON object."""


class MissingAlgorithm(TokenError):
    """Header has no usable ``alg`` member."""

    kind = FailureKind.MISSING_ALGORITHM


class UnsupportedAlgorithm(TokenError):
    """Header declares an algorithm this verifier does not know."""

    kind = FailureKind.UNSUPPORTED_ALGORITHM


class KeyAlgorithmMismatch(TokenError):
    """Supplied key is the wrong shape for the declared algorithm."""

    kind = FailureKind.KEY_ALGORITHM_MISMATCH


class KeyConfigurationError(JWSError, ValueError):
    """Key material could not be supplied to the verifier."""


_BY_KIND: dict[FailureKind, type[TokenError]] = {
    cls.kind: cls
    for cls in (
        MalformedToken,
        MalformedEncoding,
        MalformedJson,
        MissingAlgorithm,
        UnsupportedAlgorithm,
        KeyAlgorithmMismatch,
    )
}


def exception_for(kind: FailureKind, message: str) -> TokenError:
    """Build the typed exception matching a structural failure kind."""
    return _BY_KIND.get(kind, TokenError)(message)
