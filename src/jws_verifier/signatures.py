"""
Signature verification primitives, one per algorithm family.

Every function returns a plain bool. Malformed signatures and errors from the
crypto backend are folded into ``False`` so callers cannot tell a bad encoding
apart from a wrong signature.
"""

from __future__ import annotations

import hmac
import logging
from typing import Callable

from cryptography.exceptions import InvalidSignature
from cryptography.exceptions import UnsupportedAlgorithm as BackendUnsupported
from cryptography.hazmat.primitives.asymmetric import ec, padding
from cryptography.hazmat.primitives.asymmetric.utils import encode_dss_signature

from .algorithms import AlgorithmFamily, AlgorithmSpec, check_key
from .models import AsymmetricKey, Key, SymmetricKey

logger = logging.getLogger(__name__)

_BACKEND_ERRORS = (InvalidSignature, BackendUnsupported, ValueError, TypeError)


def _verify_hmac(spec: AlgorithmSpec, signing_input: bytes, signature: bytes, key: SymmetricKey) -> bool:
    expected = hmac.new(key.secret, signing_input, spec.hash_name).digest()
    # unequal lengths compare False
    return hmac.compare_digest(expected, signature)


def _verify_rsa_pkcs1(spec: AlgorithmSpec, signing_input: bytes, signature: bytes, key: AsymmetricKey) -> bool:
    key.public_key.verify(
        signature,
        signing_input,
        padding.PKCS1v15(),
        spec.hash_algorithm(),
    )
    return True


def _verify_rsa_pss(spec: AlgorithmSpec, signing_input: bytes, signature: bytes, key: AsymmetricKey) -> bool:
    hash_alg = spec.hash_algorithm()
    key.public_key.verify(
        signature,
        signing_input,
        padding.PSS(mgf=padding.MGF1(hash_alg), salt_length=spec.salt_length),
        hash_alg,
    )
    return True


def _verify_ecdsa(spec: AlgorithmSpec, signing_input: bytes, signature: bytes, key: AsymmetricKey) -> bool:
    if len(signature) != spec.signature_size:
        return False

    size = spec.coordinate_size
    r = int.from_bytes(signature[:size], "big")
    s = int.from_bytes(signature[size:], "big")
    key.public_key.verify(
        encode_dss_signature(r, s),
        signing_input,
        ec.ECDSA(spec.hash_algorithm()),
    )
    return True


def _verify_none(spec: AlgorithmSpec, signing_input: bytes, signature: bytes, key: Key | None) -> bool:
    return signature == b""


_VERIFIERS: dict[AlgorithmFamily, Callable[..., bool]] = {
    AlgorithmFamily.HMAC: _verify_hmac,
    AlgorithmFamily.RSA_PKCS1: _verify_rsa_pkcs1,
    AlgorithmFamily.RSA_PSS: _verify_rsa_pss,
    AlgorithmFamily.ECDSA: _verify_ecdsa,
    AlgorithmFamily.NONE: _verify_none,
}


def verify_signature(
    spec: AlgorithmSpec,
    signing_input: bytes,
    signature: bytes,
    key: Key | None,
) -> bool:
    """
    Verify ``signature`` over ``signing_input``.

    Args:
        spec: Resolved algorithm
        signing_input: Raw ``header.payload`` bytes
        signature: Decoded signature bytes
        key: Key material for the algorithm

    Returns:
        True only if the signature verifies

    Raises:
        KeyAlgorithmMismatch: Key variant does not fit ``spec``. This is
            checked before any crypto runs.
    """
    check_key(spec, key)

    try:
        verified = _VERIFIERS[spec.family](spec, signing_input, signature, key)
    except _BACKEND_ERRORS as exc:
        logger.debug("%s signature rejected by backend: %s", spec.name, type(exc).__name__)
        return False

    if not verified:
        logger.debug("%s signature did not verify", spec.name)
    return verified
