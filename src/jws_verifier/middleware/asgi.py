"""
ASGI middleware for bearer JWS verification (FastAPI/Starlette).
"""

import logging
from typing import Any, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ..headers import extract_bearer_token
from ..models import FailureKind, JWSState, VerificationResult
from ..verifier import TokenVerifier

logger = logging.getLogger(__name__)

DECISION_HEADER = "X-JWS-Decision"


class JWSASGIMiddleware(BaseHTTPMiddleware):
    """
    ASGI middleware that verifies ``Authorization: Bearer`` tokens.

    Attaches verification state to `request.state.jws` with:
    - present: bool - whether the request carried a bearer token
    - result: VerificationResult | None - verification result if present

    Args:
        app: ASGI application
        verifier: TokenVerifier holding the key and acceptance policy
        require_verified: If True, return 401 for missing or invalid tokens.
            If False (default), operate in observe mode - attach state but allow all.

    Example (FastAPI):
        >>> from fastapi import FastAPI, Request
        >>> from jws_verifier import JWSASGIMiddleware, TokenVerifier
        >>>
        >>> app = FastAPI()
        >>> app.add_middleware(JWSASGIMiddleware, verifier=TokenVerifier.from_secret("passwd"))
        >>>
        >>> @app.get("/protected")
        >>> async def protected(request: Request):
        ...     jws = request.state.jws
        ...     if jws.present and jws.result.valid:
        ...         return {"sub": jws.result.payload.get("sub")}
        ...     return {"error": "Not verified"}
    """

    def __init__(
        self,
        app: Any,
        verifier: TokenVerifier,
        require_verified: bool = False,
    ):
        super().__init__(app)
        self.verifier = verifier
        self.require_verified = require_verified

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Any],
    ) -> Response:
        try:
            token = extract_bearer_token(request.headers)
        except ValueError as e:
            result: VerificationResult | None = VerificationResult(
                valid=False,
                failure=FailureKind.MALFORMED_TOKEN,
                error=str(e),
            )
        else:
            result = self.verifier.verify(token) if token is not None else None

        if result is None:
            request.state.jws = JWSState(present=False, result=None)

            if self.require_verified:
                return JSONResponse(
                    status_code=401,
                    content={"error": "Missing bearer token"},
                    headers={DECISION_HEADER: "deny", "WWW-Authenticate": "Bearer"},
                )

            return await call_next(request)

        request.state.jws = JWSState(present=True, result=result)

        if not result.valid:
            logger.debug("bearer token rejected: %s", result.failure)

        if self.require_verified and not result.valid:
            return JSONResponse(
                status_code=401,
                content={
                    "error": result.error or "Token verification failed",
                    "failure": result.failure.value if result.failure else None,
                },
                headers={DECISION_HEADER: "deny", "WWW-Authenticate": "Bearer"},
            )

        # Set decision header
        response = await call_next(request)
        response.headers[DECISION_HEADER] = "allow" if result.valid else "observe"
        return response
