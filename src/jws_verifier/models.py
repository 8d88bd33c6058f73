"""
Data models for JWS verification.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterable

from cryptography.hazmat.primitives.asymmetric import ec, rsa


class FailureKind(str, enum.Enum):
    """Why a token was rejected."""

    MALFORMED_TOKEN = "malformed_token"
    MALFORMED_ENCODING = "malformed_encoding"
    MALFORMED_JSON = "malformed_json"
    MISSING_ALGORITHM = "missing_algorithm"
    UNSUPPORTED_ALGORITHM = "unsupported_algorithm"
    KEY_ALGORITHM_MISMATCH = "key_algorithm_mismatch"
    SIGNATURE_INVALID = "signature_invalid"
    CLAIM_CHECK_FAILED = "claim_check_failed"

    @property
    def structural(self) -> bool:
        return self not in (FailureKind.SIGNATURE_INVALID, FailureKind.CLAIM_CHECK_FAILED)


@dataclass(frozen=True)
class SymmetricKey:
    """
    Shared secret for the HMAC family.

    Attributes:
        secret: Raw secret bytes (already decoded from hex/base64/etc.)
    """
    secret: bytes

    def __repr__(self) -> str:
        return f"SymmetricKey(<{len(self.secret)} bytes>)"


@dataclass(frozen=True)
class AsymmetricKey:
    """
    Public key for the RSA, RSA-PSS and ECDSA families.

    Attributes:
        public_key: A ``cryptography`` public key. Private keys are reduced
            to their public half.
    """
    public_key: Any

    def __post_init__(self) -> None:
        if isinstance(self.public_key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
            object.__setattr__(self, "public_key", self.public_key.public_key())

    @property
    def kty(self) -> str | None:
        """JWK key type name for the wrapped key."""
        if isinstance(self.public_key, rsa.RSAPublicKey):
            return "RSA"
        if isinstance(self.public_key, ec.EllipticCurvePublicKey):
            return "EC"
        return None

    @property
    def curve(self) -> str | None:
        """Curve name (e.g. ``secp256r1``) for EC keys."""
        if isinstance(self.public_key, ec.EllipticCurvePublicKey):
            return self.public_key.curve.name
        return None


Key = SymmetricKey | AsymmetricKey


def _frozen(values: Iterable[str] | None) -> frozenset[str] | None:
    if values is None:
        return None
    if isinstance(values, str):
        return frozenset({values})
    return frozenset(values)


@dataclass(frozen=True)
class AcceptancePolicy:
    """
    Which tokens are acceptable, beyond a valid signature.

    Every field is optional. A check whose field is left unset does not
    apply, except the temporal check which always runs against
    ``reference_time`` (or the current time).

    Attributes:
        allowed_algorithms: Acceptable ``alg`` values. Empty means any
            supported algorithm is accepted.
        reference_time: Seconds since epoch to evaluate ``exp``/``nbf``
            against. None means the current wall-clock time.
        allowed_issuers: Acceptable ``iss`` values, or None to skip.
        allowed_subjects: Acceptable ``sub`` values, or None to skip.
        allowed_audiences: Acceptable ``aud`` values, or None to skip.
        leeway: Seconds of clock skew tolerated on ``exp`` and ``nbf``.
        allow_unsecured: Accept ``alg: none`` tokens. Never implied.
    """
    allowed_algorithms: frozenset[str] = frozenset()
    reference_time: int | None = None
    allowed_issuers: frozenset[str] | None = None
    allowed_subjects: frozenset[str] | None = None
    allowed_audiences: frozenset[str] | None = None
    leeway: int = 0
    allow_unsecured: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "allowed_algorithms", _frozen(self.allowed_algorithms) or frozenset()
        )
        for name in ("allowed_issuers", "allowed_subjects", "allowed_audiences"):
            object.__setattr__(self, name, _frozen(getattr(self, name)))
        if self.leeway < 0:
            raise ValueError("leeway must not be negative")


@dataclass(frozen=True)
class CheckResult:
    """
    Outcome of one applicable policy check.

    Attributes:
        name: Stable label (algorithm, issuer, subject, audience, temporal)
        passed: Whether the check passed
        detail: Short human-readable explanation
    """
    name: str
    passed: bool
    detail: str = ""


@dataclass(frozen=True)
class VerificationResult:
    """
    Result of verifying one token.

    Attributes:
        valid: Signature verified and every applicable check passed
        checks: Applicable checks in evaluation order
        skipped: Names of checks that did not apply
        header: Decoded header, if the token parsed
        payload: Decoded claims set, if the token parsed
        algorithm: Declared ``alg``, if present
        signature_valid: Whether the signature verified
        failure: Why the token was rejected, if it was
        error: Message accompanying ``failure``
    """
    valid: bool
    checks: tuple[CheckResult, ...] = ()
    skipped: tuple[str, ...] = ()
    header: dict[str, Any] | None = None
    payload: dict[str, Any] | None = None
    algorithm: str | None = None
    signature_valid: bool = False
    failure: FailureKind | None = None
    error: str | None = None

    @property
    def is_structural_failure(self) -> bool:
        return self.failure is not None and self.failure.structural

    @property
    def failed_checks(self) -> list[str]:
        return [check.name for check in self.checks if not check.passed]

    def raise_for_failure(self) -> None:
        """Re-raise a structural failure as its typed exception."""
        if not self.is_structural_failure:
            return
        from .exceptions import exception_for

        raise exception_for(self.failure, self.error or self.failure.value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "checks": [
                {"name": c.name, "passed": c.passed, "detail": c.detail}
                for c in self.checks
            ],
            "skipped": list(self.skipped),
            "algorithm": self.algorithm,
            "signature_valid": self.signature_valid,
            "failure": self.failure.value if self.failure else None,
            "error": self.error,
            "header": self.header,
            "payload": self.payload,
        }


@dataclass
class JWSState:
    """
    Verification state attached to requests by the middleware.

    Attributes:
        present: Whether the request carried a bearer token
        result: Verification result if a token was present
    """
    present: bool
    result: VerificationResult | None = None
