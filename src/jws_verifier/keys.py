"""
Turning caller-supplied key material into ``SymmetricKey``/``AsymmetricKey``.

This is the boundary in front of the verifier: secrets are decoded and key
files parsed here, so the verifier only ever sees typed keys.
"""

from __future__ import annotations

import base64
import binascii
import enum
import json
from typing import Any, Mapping

from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.serialization import (
    load_der_private_key,
    load_der_public_key,
    load_pem_private_key,
    load_pem_public_key,
)

from .codec import b64url_decode
from .exceptions import KeyConfigurationError, MalformedEncoding
from .models import AsymmetricKey, Key, SymmetricKey


class SecretEncoding(str, enum.Enum):
    """How a shared secret is written down by the caller."""

    UTF8 = "utf8"
    HEX = "hex"
    BASE64 = "base64"
    BASE64URL = "base64url"


_JWK_CURVES = {
    "P-256": ec.SECP256R1,
    "P-384": ec.SECP384R1,
    "P-521": ec.SECP521R1,
}


def decode_secret(secret: str | bytes, encoding: SecretEncoding | str = SecretEncoding.UTF8) -> SymmetricKey:
    """
    Decode a shared secret.

    Args:
        secret: Secret as written by the caller
        encoding: One of utf8, hex, base64, base64url

    Returns:
        SymmetricKey with the raw secret bytes

    Raises:
        KeyConfigurationError: Unknown encoding, undecodable or empty secret

    Examples:
        >>> decode_secret("70617373", "hex").secret
        b'pass'
    """
    try:
        encoding = SecretEncoding(encoding)
    except ValueError as exc:
        raise KeyConfigurationError(f"unknown secret encoding: {encoding!r}") from exc

    if encoding is SecretEncoding.UTF8:
        raw = secret if isinstance(secret, bytes) else secret.encode("utf-8")
    else:
        try:
            text = secret.decode("ascii") if isinstance(secret, bytes) else secret
            text = text.strip()
            if encoding is SecretEncoding.HEX:
                raw = bytes.fromhex(text)
            elif encoding is SecretEncoding.BASE64:
                raw = base64.b64decode(text, validate=True)
            else:
                raw = b64url_decode(text.rstrip("="))
        except ValueError as exc:
            raise KeyConfigurationError(f"secret is not valid {encoding.value}") from exc

    if not raw:
        raise KeyConfigurationError("secret must not be empty")
    return SymmetricKey(raw)


def _jwk_int(jwk: Mapping[str, Any], name: str) -> int:
    value = jwk.get(name)
    if not isinstance(value, str) or not value:
        raise KeyConfigurationError(f"JWK missing '{name}'")
    try:
        return int.from_bytes(b64url_decode(value), "big")
    except MalformedEncoding as exc:
        raise KeyConfigurationError(f"JWK '{name}' is not base64url") from exc


def key_from_jwk(jwk: Mapping[str, Any]) -> Key:
    """
    Build a key from a JWK object.

    Supports ``RSA`` (n, e), ``EC`` (crv, x, y) and ``oct`` (k).

    Raises:
        KeyConfigurationError: Unsupported ``kty``/``crv`` or bad members
    """
    kty = jwk.get("kty")
    if kty == "oct":
        k = jwk.get("k")
        if not isinstance(k, str):
            raise KeyConfigurationError("JWK missing 'k'")
        return decode_secret(k, SecretEncoding.BASE64URL)

    if kty == "RSA":
        numbers: Any = rsa.RSAPublicNumbers(e=_jwk_int(jwk, "e"), n=_jwk_int(jwk, "n"))
    elif kty == "EC":
        curve = _JWK_CURVES.get(jwk.get("crv"))
        if curve is None:
            raise KeyConfigurationError(f"unsupported JWK curve: {jwk.get('crv')!r}")
        numbers = ec.EllipticCurvePublicNumbers(
            x=_jwk_int(jwk, "x"), y=_jwk_int(jwk, "y"), curve=curve()
        )
    else:
        raise KeyConfigurationError(f"unsupported JWK kty: {kty!r}")

    try:
        return AsymmetricKey(numbers.public_key())
    except ValueError as exc:
        raise KeyConfigurationError(f"invalid {kty} JWK: {exc}") from exc


def _load_public(data: bytes, loader_public: Any, loader_private: Any) -> Any:
    try:
        return loader_public(data)
    except ValueError:
        pass
    # A private key file is accepted and reduced to its public half
    return loader_private(data, password=None).public_key()


def load_public_key(data: str | bytes) -> Key:
    """
    Parse a verification key from PEM, DER or JWK.

    Format is detected from content: a JSON object is a JWK, text starting
    with ``-----BEGIN`` is PEM, anything else is tried as DER.

    Raises:
        KeyConfigurationError: Content is not a usable key
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    stripped = data.strip()

    if stripped.startswith(b"{"):
        try:
            jwk = json.loads(stripped)
        except ValueError as exc:
            raise KeyConfigurationError(f"key looks like JSON but does not parse: {exc}") from exc
        if not isinstance(jwk, dict):
            raise KeyConfigurationError("JWK must be a JSON object")
        if "keys" in jwk:
            raise KeyConfigurationError("JWK sets are not supported; supply a single JWK")
        return key_from_jwk(jwk)

    try:
        if stripped.startswith(b"-----BEGIN"):
            key = _load_public(stripped, load_pem_public_key, load_pem_private_key)
        else:
            key = _load_public(data, load_der_public_key, load_der_private_key)
    except (ValueError, TypeError) as exc:
        raise KeyConfigurationError(f"could not parse key: {exc}") from exc

    result = AsymmetricKey(key)
    if result.kty is None:
        raise KeyConfigurationError(f"unsupported key type: {type(key).__name__}")
    return result


def select_key(
    *,
    secret: SymmetricKey | None = None,
    public_key: Key | None = None,
) -> Key:
    """
    Enforce that exactly one key was supplied.

    Raises:
        KeyConfigurationError: Both or neither supplied
    """
    if secret is not None and public_key is not None:
        raise KeyConfigurationError("supply either a secret or a public key, not both")
    if secret is None and public_key is None:
        raise KeyConfigurationError("a secret or a public key is required")
    return secret if secret is not None else public_key
