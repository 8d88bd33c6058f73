"""
WSGI middleware for bearer JWS verification (Flask).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Iterable

from ..headers import extract_bearer_token
from ..models import FailureKind, JWSState, VerificationResult
from ..verifier import TokenVerifier

logger = logging.getLogger(__name__)

ENVIRON_KEY = "jws_verifier.jws"
DECISION_HEADER = "X-JWS-Decision"


def _extract_headers(environ: dict[str, Any]) -> dict[str, str]:
    """Extract HTTP headers from WSGI environ."""
    headers: dict[str, str] = {}
    for key, value in environ.items():
        if key.startswith("HTTP_"):
            # HTTP_AUTHORIZATION -> authorization
            header_name = key[5:].replace("_", "-").lower()
            headers[header_name] = value
    return headers


class JWSWSGIMiddleware:
    """
    WSGI middleware that verifies ``Authorization: Bearer`` tokens.

    Attaches verification state to `environ["jws_verifier.jws"]` with:
    - present: bool - whether the request carried a bearer token
    - result: VerificationResult | None - verification result if present

    Args:
        app: WSGI application
        verifier: TokenVerifier holding the key and acceptance policy
        require_verified: If True, return 401 for missing or invalid tokens.
            If False (default), operate in observe mode - attach state but allow all.

    Example (Flask):
        >>> from flask import Flask, g, request
        >>> from jws_verifier import JWSWSGIMiddleware, TokenVerifier
        >>>
        >>> app = Flask(__name__)
        >>> app.wsgi_app = JWSWSGIMiddleware(app.wsgi_app, TokenVerifier.from_secret("passwd"))
        >>>
        >>> @app.route("/protected")
        >>> def protected():
        ...     jws = request.environ.get("jws_verifier.jws")
        ...     if jws and jws.present and jws.result.valid:
        ...         return {"sub": jws.result.payload.get("sub")}
        ...     return {"error": "Not verified"}, 401
    """

    def __init__(
        self,
        app: Callable[..., Iterable[bytes]],
        verifier: TokenVerifier,
        require_verified: bool = False,
    ):
        self.app = app
        self.verifier = verifier
        self.require_verified = require_verified

    def __call__(
        self,
        environ: dict[str, Any],
        start_response: Callable[..., Any],
    ) -> Iterable[bytes]:
        headers = _extract_headers(environ)

        try:
            token = extract_bearer_token(headers)
        except ValueError as e:
            result: VerificationResult | None = VerificationResult(
                valid=False,
                failure=FailureKind.MALFORMED_TOKEN,
                error=str(e),
            )
        else:
            result = self.verifier.verify(token) if token is not None else None

        if result is None:
            environ[ENVIRON_KEY] = JWSState(present=False, result=None)

            if self.require_verified:
                return self._error_response(start_response, "Missing bearer token")

            return self.app(environ, start_response)

        environ[ENVIRON_KEY] = JWSState(present=True, result=result)

        if not result.valid:
            logger.debug("bearer token rejected: %s", result.failure)

        if self.require_verified and not result.valid:
            return self._error_response(
                start_response,
                result.error or "Token verification failed",
                result.failure,
            )

        # Add response headers wrapper
        def custom_start_response(
            status: str,
            response_headers: list[tuple[str, str]],
            exc_info: Any = None,
        ) -> Any:
            decision = "allow" if result.valid else "observe"
            response_headers.append((DECISION_HEADER, decision))
            return start_response(status, response_headers, exc_info)

        return self.app(environ, custom_start_response)

    def _error_response(
        self,
        start_response: Callable[..., Any],
        error: str,
        failure: FailureKind | None = None,
    ) -> Iterable[bytes]:
        """Return 401 error response."""
        body = json.dumps({
            "error": error,
            "failure": failure.value if failure else None,
        }).encode("utf-8")
        start_response(
            "401 Unauthorized",
            [
                ("Content-Type", "application/json"),
                ("Content-Length", str(len(body))),
                ("WWW-Authenticate", "Bearer"),
                (DECISION_HEADER, "deny"),
            ],
        )
        return [body]
