"""
Registry of supported JWS algorithms.

Every ``alg`` value maps to a fixed ``AlgorithmSpec``. The spec decides which
key variant is acceptable, so a token cannot choose how its own key is
interpreted (an HS256 token is never checked against an RSA key's bytes).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec

from .exceptions import KeyAlgorithmMismatch, UnsupportedAlgorithm
from .models import AsymmetricKey, Key, SymmetricKey


class AlgorithmFamily(enum.Enum):
    HMAC = "HMAC"
    RSA_PKCS1 = "RSASSA-PKCS1-v1_5"
    RSA_PSS = "RSASSA-PSS"
    ECDSA = "ECDSA"
    NONE = "none"


class KeyKind(enum.Enum):
    SYMMETRIC = "symmetric"
    ASYMMETRIC = "asymmetric"
    NONE = "none"


@dataclass(frozen=True)
class AlgorithmSpec:
    """
    How to verify one ``alg``.

    Attributes:
        name: JWS ``alg`` identifier
        family: Signature scheme
        key_kind: Key variant the algorithm requires
        hash_name: Hash function name (sha256/sha384/sha512), None for ``none``
        curve: Required EC curve name for ECDSA
        coordinate_size: Bytes per ECDSA coordinate (r and s each)
        salt_length: RSA-PSS salt length in bytes
        insecure: True only for ``none``
    """
    name: str
    family: AlgorithmFamily
    key_kind: KeyKind
    hash_name: str | None = None
    curve: str | None = None
    coordinate_size: int | None = None
    salt_length: int | None = None
    insecure: bool = False

    def hash_algorithm(self) -> hashes.HashAlgorithm:
        """Fresh ``cryptography`` hash instance for this algorithm."""
        if self.hash_name is None:
            raise UnsupportedAlgorithm(f"{self.name} has no hash function")
        return _HASHES[self.hash_name]()

    @property
    def signature_size(self) -> int | None:
        """Exact raw signature length for ECDSA (``r || s``)."""
        if self.coordinate_size is None:
            return None
        return 2 * self.coordinate_size


_HASHES: Mapping[str, type[hashes.HashAlgorithm]] = MappingProxyType({
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
})

_DIGEST_SIZES = {"sha256": 32, "sha384": 48, "sha512": 64}

# JWA curve -> (cryptography curve name, coordinate size in bytes)
_CURVES = {
    "ES256": (ec.SECP256R1.name, 32),
    "ES384": (ec.SECP384R1.name, 48),
    "ES512": (ec.SECP521R1.name, 66),
}


def _build_registry() -> Mapping[str, AlgorithmSpec]:
    specs: dict[str, AlgorithmSpec] = {}
    for bits in ("256", "384", "512"):
        hash_name = f"sha{bits}"
        specs[f"HS{bits}"] = AlgorithmSpec(
            name=f"HS{bits}",
            family=AlgorithmFamily.HMAC,
            key_kind=KeyKind.SYMMETRIC,
            hash_name=hash_name,
        )
        specs[f"RS{bits}"] = AlgorithmSpec(
            name=f"RS{bits}",
            family=AlgorithmFamily.RSA_PKCS1,
            key_kind=KeyKind.ASYMMETRIC,
            hash_name=hash_name,
        )
        specs[f"PS{bits}"] = AlgorithmSpec(
            name=f"PS{bits}",
            family=AlgorithmFamily.RSA_PSS,
            key_kind=KeyKind.ASYMMETRIC,
            hash_name=hash_name,
            salt_length=_DIGEST_SIZES[hash_name],
        )
        curve, size = _CURVES[f"ES{bits}"]
        specs[f"ES{bits}"] = AlgorithmSpec(
            name=f"ES{bits}",
            family=AlgorithmFamily.ECDSA,
            key_kind=KeyKind.ASYMMETRIC,
            hash_name=hash_name,
            curve=curve,
            coordinate_size=size,
        )
    specs["none"] = AlgorithmSpec(
        name="none",
        family=AlgorithmFamily.NONE,
        key_kind=KeyKind.NONE,
        insecure=True,
    )
    return MappingProxyType(specs)


ALGORITHMS: Mapping[str, AlgorithmSpec] = _build_registry()


def resolve_algorithm(alg: str) -> AlgorithmSpec:
    """
    Look up the spec for a header ``alg``.

    Lookup is exact and case-sensitive (``hs256`` is not ``HS256``).

    Raises:
        UnsupportedAlgorithm: ``alg`` is not in the registry
    """
    spec = ALGORITHMS.get(alg)
    if spec is None:
        raise UnsupportedAlgorithm(f"unsupported algorithm: {alg!r}")
    return spec


def check_key(spec: AlgorithmSpec, key: Key | None) -> None:
    """
    Ensure the supplied key is the variant ``spec`` requires.

    Runs before any cryptographic operation.

    Raises:
        KeyAlgorithmMismatch: Wrong key variant, key type, or curve
    """
    if spec.key_kind is KeyKind.NONE:
        return

    if key is None:
        raise KeyAlgorithmMismatch(f"{spec.name} requires a key, none supplied")

    if spec.key_kind is KeyKind.SYMMETRIC:
        if not isinstance(key, SymmetricKey):
            raise KeyAlgorithmMismatch(
                f"{spec.name} requires a shared secret, got an asymmetric key"
            )
        return

    if not isinstance(key, AsymmetricKey):
        raise KeyAlgorithmMismatch(
            f"{spec.name} requires a public key, got a shared secret"
        )

    if spec.family is AlgorithmFamily.ECDSA:
        if key.kty != "EC":
            raise KeyAlgorithmMismatch(f"{spec.name} requires an EC key, got {key.kty}")
        if key.curve != spec.curve:
            raise KeyAlgorithmMismatch(
                f"{spec.name} requires curve {spec.curve}, got {key.curve}"
            )
    elif key.kty != "RSA":
        raise KeyAlgorithmMismatch(f"{spec.name} requires an RSA key, got {key.kty}")
