"""
End-to-end token verification: parse, resolve, verify signature, evaluate claims.
"""

from __future__ import annotations

import logging

from .algorithms import resolve_algorithm
from .claims import ALGORITHM, check_algorithm, evaluate_claims
from .exceptions import TokenError
from .models import (
    AcceptancePolicy,
    AsymmetricKey,
    FailureKind,
    Key,
    SymmetricKey,
    VerificationResult,
)
from .signatures import verify_signature
from .tokens import parse_token

logger = logging.getLogger(__name__)

DEFAULT_POLICY = AcceptancePolicy()


def verify_token(
    token: str,
    key: Key | None,
    policy: AcceptancePolicy = DEFAULT_POLICY,
    *,
    now: float | None = None,
) -> VerificationResult:
    """
    Verify a compact JWS and evaluate its claims.

    Structural problems never raise; they produce an invalid result whose
    ``failure`` names the problem (see ``VerificationResult.raise_for_failure``).

    Args:
        token: Compact serialization text
        key: Shared secret or public key. May be None only for ``none``.
        policy: Acceptance policy
        now: Reference time override, seconds since epoch

    Returns:
        VerificationResult

    Example:
        >>> result = verify_token(token, SymmetricKey(b"passwd"),
        ...                       AcceptancePolicy(allowed_subjects={"a@a.com"}))
        >>> result.valid
        True
    """
    try:
        parsed = parse_token(token)
    except TokenError as exc:
        logger.debug("token rejected while parsing: %s", exc.kind.value)
        return VerificationResult(valid=False, failure=exc.kind, error=str(exc))

    header, payload = parsed.header, parsed.payload
    alg = parsed.algorithm

    try:
        spec = resolve_algorithm(alg)
    except TokenError as exc:
        return VerificationResult(
            valid=False,
            header=header,
            payload=payload,
            algorithm=alg,
            failure=exc.kind,
            error=str(exc),
        )

    if spec.insecure:
        logger.warning("unsecured token presented (alg=none)")

    algorithm_check = check_algorithm(alg, policy)
    signature_valid = False

    # A rejected algorithm means the key is never used
    if algorithm_check is None or algorithm_check.passed:
        try:
            signature_valid = verify_signature(spec, parsed.signing_input, parsed.signature, key)
        except TokenError as exc:
            return VerificationResult(
                valid=False,
                header=header,
                payload=payload,
                algorithm=alg,
                failure=exc.kind,
                error=str(exc),
            )

    checks, skipped = evaluate_claims(payload, policy, alg=alg, now=now)
    claims_ok = all(check.passed for check in checks)

    failure = None
    error = None
    if algorithm_check is not None and not algorithm_check.passed:
        failure, error = FailureKind.CLAIM_CHECK_FAILED, algorithm_check.detail
    elif not signature_valid:
        failure, error = FailureKind.SIGNATURE_INVALID, "signature verification failed"
    elif not claims_ok:
        failed = [c for c in checks if not c.passed and c.name != ALGORITHM]
        failure = FailureKind.CLAIM_CHECK_FAILED
        error = "; ".join(f"{c.name}: {c.detail}" for c in failed)

    valid = signature_valid and claims_ok
    logger.debug("verified %s token: valid=%s", alg, valid)

    return VerificationResult(
        valid=valid,
        checks=checks,
        skipped=skipped,
        header=header,
        payload=payload,
        algorithm=alg,
        signature_valid=signature_valid,
        failure=failure,
        error=error,
    )


class TokenVerifier:
    """
    Verifies tokens against one key and policy.

    Holds no mutable state, so one instance can be shared across threads.

    Args:
        key: Shared secret or public key
        policy: Acceptance policy. Default: signature and temporal checks only.

    Example:
        >>> verifier = TokenVerifier.from_secret("passwd", AcceptancePolicy(allowed_algorithms={"HS256"}))
        >>> result = verifier.verify(token)
        >>> if result.valid:
        ...     print(result.payload["sub"])
    """

    def __init__(self, key: Key | None, policy: AcceptancePolicy = DEFAULT_POLICY):
        self.key = key
        self.policy = policy

    @classmethod
    def from_secret(
        cls, secret: str | bytes, policy: AcceptancePolicy = DEFAULT_POLICY
    ) -> "TokenVerifier":
        if isinstance(secret, str):
            secret = secret.encode("utf-8")
        return cls(SymmetricKey(secret), policy)

    @classmethod
    def from_public_key(
        cls, public_key: object, policy: AcceptancePolicy = DEFAULT_POLICY
    ) -> "TokenVerifier":
        return cls(AsymmetricKey(public_key), policy)

    def verify(self, token: str, *, now: float | None = None) -> VerificationResult:
        """Verify a token with this verifier's key and policy."""
        return verify_token(token, self.key, self.policy, now=now)
