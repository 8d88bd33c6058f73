"""
Claim acceptance checks.

Each check is independently applicable. Inapplicable checks are reported by
name in ``skipped`` and have no effect on the outcome.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping

from .models import AcceptancePolicy, CheckResult

logger = logging.getLogger(__name__)

ALGORITHM = "algorithm"
ISSUER = "issuer"
SUBJECT = "subject"
AUDIENCE = "audience"
TEMPORAL = "temporal"

CHECK_ORDER = (ALGORITHM, ISSUER, SUBJECT, AUDIENCE, TEMPORAL)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def check_algorithm(alg: str, policy: AcceptancePolicy) -> CheckResult | None:
    """
    Decide whether the declared algorithm is acceptable.

    Returns None when the check does not apply (no allow-list and a real
    algorithm). ``none`` always makes the check apply, and only passes when
    the policy opts in with ``allow_unsecured``.
    """
    if alg == "none":
        if not policy.allow_unsecured:
            return CheckResult(ALGORITHM, False, "unsecured token not allowed")
        if policy.allowed_algorithms and "none" not in policy.allowed_algorithms:
            return CheckResult(ALGORITHM, False, "none not in allowed algorithms")
        return CheckResult(ALGORITHM, True, "unsecured token explicitly allowed")

    if not policy.allowed_algorithms:
        return None

    if alg in policy.allowed_algorithms:
        return CheckResult(ALGORITHM, True, f"{alg} allowed")
    return CheckResult(ALGORITHM, False, f"{alg} not in allowed algorithms")


def _check_membership(
    name: str,
    claim: str,
    payload: Mapping[str, Any],
    allowed: frozenset[str] | None,
) -> CheckResult | None:
    if allowed is None:
        return None
    value = payload.get(claim)
    if value is None:
        return CheckResult(name, False, f"{claim} claim missing")
    if isinstance(value, str) and value in allowed:
        return CheckResult(name, True, f"{claim} {value!r} allowed")
    return CheckResult(name, False, f"{claim} {value!r} not allowed")


def _check_audience(
    payload: Mapping[str, Any], allowed: frozenset[str] | None
) -> CheckResult | None:
    if allowed is None:
        return None
    aud = payload.get("aud")
    if aud is None:
        return CheckResult(AUDIENCE, False, "aud claim missing")
    if isinstance(aud, str):
        audiences = [aud]
    elif isinstance(aud, list) and all(isinstance(item, str) for item in aud):
        audiences = aud
    else:
        return CheckResult(AUDIENCE, False, "aud must be a string or list of strings")

    matched = [item for item in audiences if item in allowed]
    if matched:
        return CheckResult(AUDIENCE, True, f"aud {matched[0]!r} allowed")
    return CheckResult(AUDIENCE, False, "no aud value allowed")


def _check_temporal(payload: Mapping[str, Any], now: float, leeway: int) -> CheckResult:
    exp = payload.get("exp")
    nbf = payload.get("nbf")
    notes = []

    if exp is not None:
        if not _is_number(exp):
            return CheckResult(TEMPORAL, False, "exp is not numeric")
        # exp is an exclusive upper bound
        if not now < exp + leeway:
            return CheckResult(TEMPORAL, False, f"expired at {exp}")
        notes.append(f"expires {exp}")

    if nbf is not None:
        if not _is_number(nbf):
            return CheckResult(TEMPORAL, False, "nbf is not numeric")
        # nbf is an inclusive lower bound
        if not now >= nbf - leeway:
            return CheckResult(TEMPORAL, False, f"not valid before {nbf}")
        notes.append(f"valid from {nbf}")

    return CheckResult(TEMPORAL, True, ", ".join(notes) or "no exp/nbf present")


def evaluate_claims(
    payload: Mapping[str, Any],
    policy: AcceptancePolicy,
    *,
    alg: str | None = None,
    now: float | None = None,
) -> tuple[tuple[CheckResult, ...], tuple[str, ...]]:
    """
    Run every applicable check against a claims set.

    Pure for a fixed reference time: calling it twice with the same
    arguments gives the same answer.

    Args:
        payload: Decoded claims set
        policy: Acceptance policy
        alg: Declared header algorithm; the algorithm check is skipped
            when omitted
        now: Reference time override. Falls back to
            ``policy.reference_time`` and then the wall clock.

    Returns:
        ``(checks, skipped)``: applicable check results in ``CHECK_ORDER``
        and the names of checks that did not apply
    """
    if now is None:
        now = policy.reference_time if policy.reference_time is not None else time.time()

    results = {
        ALGORITHM: check_algorithm(alg, policy) if alg is not None else None,
        ISSUER: _check_membership(ISSUER, "iss", payload, policy.allowed_issuers),
        SUBJECT: _check_membership(SUBJECT, "sub", payload, policy.allowed_subjects),
        AUDIENCE: _check_audience(payload, policy.allowed_audiences),
        TEMPORAL: _check_temporal(payload, now, policy.leeway),
    }

    checks = tuple(results[name] for name in CHECK_ORDER if results[name] is not None)
    skipped = tuple(name for name in CHECK_ORDER if results[name] is None)

    for check in checks:
        if not check.passed:
            logger.debug("%s check failed: %s", check.name, check.detail)

    return checks, skipped
