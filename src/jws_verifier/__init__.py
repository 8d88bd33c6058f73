"""
JWS Verifier for Python

Verify JSON Web Tokens in compact serialization: signature (HMAC, RSA,
RSA-PSS, ECDSA) plus algorithm, issuer, subject, audience and validity checks.
"""

from .models import (
    AcceptancePolicy,
    AsymmetricKey,
    CheckResult,
    FailureKind,
    JWSState,
    SymmetricKey,
    VerificationResult,
)
from .exceptions import (
    InvalidStructure,
    JWSError,
    KeyAlgorithmMismatch,
    KeyConfigurationError,
    MalformedEncoding,
    MalformedJson,
    MalformedToken,
    MissingAlgorithm,
    TokenError,
    UnsupportedAlgorithm,
)
from .algorithms import ALGORITHMS, AlgorithmFamily, AlgorithmSpec, KeyKind, resolve_algorithm
from .tokens import ParsedToken, parse_token
from .signatures import verify_signature
from .claims import evaluate_claims
from .verifier import TokenVerifier, verify_token
from .keys import SecretEncoding, decode_secret, load_public_key, select_key
from .config import policy_from_env
from .headers import extract_bearer_token

__version__ = "0.1.0"

__all__ = [
    "AcceptancePolicy",
    "AsymmetricKey",
    "CheckResult",
    "FailureKind",
    "JWSState",
    "SymmetricKey",
    "VerificationResult",
    "InvalidStructure",
    "JWSError",
    "KeyAlgorithmMismatch",
    "KeyConfigurationError",
    "MalformedEncoding",
    "MalformedJson",
    "MalformedToken",
    "MissingAlgorithm",
    "TokenError",
    "UnsupportedAlgorithm",
    "ALGORITHMS",
    "AlgorithmFamily",
    "AlgorithmSpec",
    "KeyKind",
    "resolve_algorithm",
    "ParsedToken",
    "parse_token",
    "verify_signature",
    "evaluate_claims",
    "TokenVerifier",
    "verify_token",
    "SecretEncoding",
    "decode_secret",
    "load_public_key",
    "select_key",
    "policy_from_env",
    "extract_bearer_token",
]

from .middleware.wsgi import JWSWSGIMiddleware
__all__.append("JWSWSGIMiddleware")

# ASGI middleware requires starlette
try:
    from .middleware.asgi import JWSASGIMiddleware
    __all__.append("JWSASGIMiddleware")
except ImportError:
    pass
