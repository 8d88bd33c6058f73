"""Shared fixtures: generated keys and a token builder that really signs."""

import hmac

import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature

from jws_verifier.codec import b64url_encode, encode_json

HASHES = {"256": hashes.SHA256, "384": hashes.SHA384, "512": hashes.SHA512}
EC_SIZES = {"256": 32, "384": 48, "512": 66}

SECRET = b"passwd"


def sign(alg: str, signing_input: bytes, key) -> bytes:
    """Produce a JWS signature the way an issuer would."""
    if alg == "none":
        return b""
    family, bits = alg[:2], alg[2:]
    hash_alg = HASHES[bits]()
    if family == "HS":
        return hmac.new(key, signing_input, f"sha{bits}").digest()
    if family == "RS":
        return key.sign(signing_input, padding.PKCS1v15(), hash_alg)
    if family == "PS":
        return key.sign(
            signing_input,
            padding.PSS(mgf=padding.MGF1(hash_alg), salt_length=hash_alg.digest_size),
            hash_alg,
        )
    if family == "ES":
        r, s = decode_dss_signature(key.sign(signing_input, ec.ECDSA(hash_alg)))
        size = EC_SIZES[bits]
        return r.to_bytes(size, "big") + s.to_bytes(size, "big")
    raise ValueError(alg)


@pytest.fixture(scope="session")
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ec_private_keys():
    return {
        "ES256": ec.generate_private_key(ec.SECP256R1()),
        "ES384": ec.generate_private_key(ec.SECP384R1()),
        "ES512": ec.generate_private_key(ec.SECP521R1()),
    }


@pytest.fixture(scope="session")
def signing_key_for(rsa_private_key, ec_private_keys):
    """Return the private signing key (or secret) for an algorithm."""
    def _key(alg: str):
        if alg.startswith("HS"):
            return SECRET
        if alg.startswith(("RS", "PS")):
            return rsa_private_key
        if alg.startswith("ES"):
            return ec_private_keys[alg]
        return None
    return _key


@pytest.fixture(scope="session")
def make_token(signing_key_for):
    """Build a compact JWS signed with the matching test key."""
    def _make(payload: dict, alg: str = "HS256", key=None, header: dict | None = None) -> str:
        full_header = {"alg": alg, "typ": "JWT"}
        if header is not None:
            full_header = header
        header_segment = b64url_encode(encode_json(full_header))
        payload_segment = b64url_encode(encode_json(payload))
        signing_input = f"{header_segment}.{payload_segment}".encode("ascii")
        signing_key = key if key is not None else signing_key_for(alg)
        signature = sign(alg, signing_input, signing_key)
        return f"{header_segment}.{payload_segment}.{b64url_encode(signature)}"
    return _make


@pytest.fixture(scope="session")
def signer():
    """The raw ``sign(alg, signing_input, key)`` helper."""
    return sign
