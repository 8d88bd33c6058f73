"""
Building an ``AcceptancePolicy`` from environment variables.

Variables (with the default ``JWS_`` prefix):
    JWS_ALLOWED_ALGORITHMS - Comma-separated ``alg`` values, e.g. "RS256,ES256"
    JWS_ALLOWED_ISSUERS - Comma-separated issuers
    JWS_ALLOWED_SUBJECTS - Comma-separated subjects
    JWS_ALLOWED_AUDIENCES - Comma-separated audiences
    JWS_LEEWAY - Clock skew tolerance in seconds (default: 0)
    JWS_ALLOW_UNSECURED - "true" to accept alg=none tokens (default: false)
"""

from __future__ import annotations

import os
from typing import Mapping

from .models import AcceptancePolicy

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


def _split(value: str | None) -> frozenset[str] | None:
    if value is None:
        return None
    items = frozenset(item.strip() for item in value.split(",") if item.strip())
    return items or None


def policy_from_env(
    environ: Mapping[str, str] | None = None,
    prefix: str = "JWS_",
) -> AcceptancePolicy:
    """
    Read an acceptance policy from the environment.

    Unset or empty variables leave the matching check inapplicable.

    Args:
        environ: Mapping to read from. Default: ``os.environ``
        prefix: Variable name prefix

    Raises:
        ValueError: JWS_LEEWAY is not a non-negative integer
    """
    env = os.environ if environ is None else environ

    leeway_raw = env.get(f"{prefix}LEEWAY", "").strip()
    try:
        leeway = int(leeway_raw) if leeway_raw else 0
    except ValueError as exc:
        raise ValueError(f"{prefix}LEEWAY must be an integer, got {leeway_raw!r}") from exc
    if leeway < 0:
        raise ValueError(f"{prefix}LEEWAY must not be negative")

    return AcceptancePolicy(
        allowed_algorithms=_split(env.get(f"{prefix}ALLOWED_ALGORITHMS")) or frozenset(),
        allowed_issuers=_split(env.get(f"{prefix}ALLOWED_ISSUERS")),
        allowed_subjects=_split(env.get(f"{prefix}ALLOWED_SUBJECTS")),
        allowed_audiences=_split(env.get(f"{prefix}ALLOWED_AUDIENCES")),
        leeway=leeway,
        allow_unsecured=env.get(f"{prefix}ALLOW_UNSECURED", "").strip().lower() in _TRUE_VALUES,
    )
