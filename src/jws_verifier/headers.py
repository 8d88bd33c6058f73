"""
Bearer token extraction from HTTP request headers.
"""

from typing import Mapping


AUTHORIZATION_HEADER = "authorization"
BEARER_SCHEME = "bearer"


def parse_authorization(value: str) -> tuple[str, str]:
    """
    Split an Authorization header value into scheme and credentials.

    Args:
        value: The Authorization header value

    Returns:
        ``(scheme, credentials)`` with the scheme lowercased

    Raises:
        ValueError: If the value is not ``<scheme> <credentials>``

    Examples:
        >>> parse_authorization("Bearer eyJhbGciOi...")
        ('bearer', 'eyJhbGciOi...')
    """
    parts = value.strip().split()
    if len(parts) != 2:
        raise ValueError("Malformed Authorization header: expected '<scheme> <credentials>'")
    scheme, credentials = parts
    return scheme.lower(), credentials


def extract_bearer_token(headers: Mapping[str, str]) -> str | None:
    """
    Return the bearer token from request headers, if any.

    Header lookup is case-insensitive. Non-bearer schemes (e.g. Basic) are
    ignored and return None.

    Args:
        headers: Request headers

    Returns:
        The token text, or None when no bearer credentials are present

    Raises:
        ValueError: If the Authorization header is malformed
    """
    value = None
    for key, header_value in headers.items():
        if key.lower() == AUTHORIZATION_HEADER:
            value = header_value
            break

    if value is None or not value.strip():
        return None

    scheme, credentials = parse_authorization(value)
    if scheme != BEARER_SCHEME:
        return None
    return credentials
