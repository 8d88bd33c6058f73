"""
Command-line front end: ``jws-verify``.

Usage:
    jws-verify TOKEN --secret passwd --alg HS256 --sub a@a.com
    jws-verify token.txt --key public.pem --iss https://issuer.example
    cat token.txt | jws-verify - --key jwk.json --json

Exit status: 0 valid, 1 invalid, 2 malformed token or usage error.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Sequence, TextIO

from .exceptions import KeyConfigurationError
from .keys import SecretEncoding, decode_secret, load_public_key, select_key
from .models import AcceptancePolicy, Key, VerificationResult
from .verifier import verify_token

logger = logging.getLogger(__name__)

EXIT_VALID = 0
EXIT_INVALID = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jws-verify",
        description="Verify a JWT/JWS signature and its registered claims.",
    )
    parser.add_argument(
        "token",
        help="token text, a file containing it, or '-' to read stdin",
    )

    keys = parser.add_argument_group("key material (exactly one)")
    keys.add_argument("--secret", help="shared secret for HS256/384/512")
    keys.add_argument(
        "--secret-encoding",
        choices=[e.value for e in SecretEncoding],
        default=SecretEncoding.UTF8.value,
        help="how --secret is written (default: utf8)",
    )
    keys.add_argument("--key", metavar="PATH", help="public key file (PEM, DER or JWK)")

    policy = parser.add_argument_group("acceptance checks")
    policy.add_argument("--alg", action="append", default=[], metavar="ALG",
                        help="allowed algorithm (repeatable)")
    policy.add_argument("--iss", action="append", metavar="ISS",
                        help="allowed issuer (repeatable)")
    policy.add_argument("--sub", action="append", metavar="SUB",
                        help="allowed subject (repeatable)")
    policy.add_argument("--aud", action="append", metavar="AUD",
                        help="allowed audience (repeatable)")
    policy.add_argument("--time", type=int, metavar="EPOCH",
                        help="reference time in seconds since epoch (default: now)")
    policy.add_argument("--leeway", type=int, default=0, metavar="SECONDS",
                        help="clock skew tolerance for exp/nbf (default: 0)")
    policy.add_argument("--allow-none", action="store_true",
                        help="accept unsecured alg=none tokens")

    output = parser.add_argument_group("output")
    output.add_argument("--json", action="store_true", help="print the result as JSON")
    output.add_argument("-q", "--quiet", action="store_true",
                        help="print nothing; rely on the exit status")
    output.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def read_token(arg: str, stdin: TextIO = sys.stdin) -> str:
    """Resolve the token argument: stdin, a file path, or the literal text."""
    if arg == "-":
        return stdin.read().strip()
    if os.path.isfile(arg):
        with open(arg, encoding="utf-8") as f:
            return f.read().strip()
    return arg.strip()


def load_key(args: argparse.Namespace) -> Key | None:
    secret = decode_secret(args.secret, args.secret_encoding) if args.secret is not None else None
    public_key = None
    if args.key is not None:
        with open(args.key, "rb") as f:
            public_key = load_public_key(f.read())

    if secret is None and public_key is None and args.allow_none:
        return None
    return select_key(secret=secret, public_key=public_key)


def policy_from_args(args: argparse.Namespace) -> AcceptancePolicy:
    return AcceptancePolicy(
        allowed_algorithms=frozenset(args.alg),
        reference_time=args.time,
        allowed_issuers=frozenset(args.iss) if args.iss else None,
        allowed_subjects=frozenset(args.sub) if args.sub else None,
        allowed_audiences=frozenset(args.aud) if args.aud else None,
        leeway=args.leeway,
        allow_unsecured=args.allow_none,
    )


def format_report(result: VerificationResult) -> str:
    """Human-readable audit trail of what was checked."""
    lines = []
    if result.header is not None:
        lines += ["Header:", json.dumps(result.header, indent=2, sort_keys=True), ""]
    if result.payload is not None:
        lines += ["Payload:", json.dumps(result.payload, indent=2, sort_keys=True), ""]

    if result.is_structural_failure:
        lines.append(f"Error ({result.failure.value}): {result.error}")
        return "\n".join(lines)

    rows = [("signature", "pass" if result.signature_valid else "FAIL", "")]
    rows += [(c.name, "pass" if c.passed else "FAIL", c.detail) for c in result.checks]
    rows += [(name, "n/a", "") for name in result.skipped]

    lines.append("Checks:")
    for name, status, detail in rows:
        suffix = f" ({detail})" if detail else ""
        lines.append(f"  {name:<10} {status}{suffix}")
    lines.append("")
    lines.append("Token is valid." if result.valid else "Token is NOT valid.")
    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        token = read_token(args.token)
        key = load_key(args)
        policy = policy_from_args(args)
    except (KeyConfigurationError, OSError, ValueError) as e:
        if not args.quiet:
            print(f"jws-verify: {e}", file=sys.stderr)
        return EXIT_ERROR

    result = verify_token(token, key, policy)

    if not args.quiet:
        if args.json:
            print(json.dumps(result.to_dict(), indent=2, sort_keys=True))
        else:
            print(format_report(result))

    if result.is_structural_failure:
        return EXIT_ERROR
    return EXIT_VALID if result.valid else EXIT_INVALID


if __name__ == "__main__":
    sys.exit(main())
