"""
FastAPI demo with bearer JWS verification.

Usage:
    # Install dependencies
    pip install -e ".[fastapi]" uvicorn

    # Run the server
    uvicorn examples.fastapi_demo:app --port 8009 --reload

Test with curl:
    # Public endpoint (no token required)
    curl http://localhost:8009/public

    # Protected endpoint (401 in require mode without a valid token)
    curl -H "Authorization: Bearer $TOKEN" http://localhost:8009/protected

Environment variables:
    JWS_SECRET - HMAC shared secret (used when JWS_PUBLIC_KEY_FILE is unset)
    JWS_PUBLIC_KEY_FILE - PEM, DER or JWK file with the issuer's public key
    JWS_REQUIRE_VERIFIED - Set to "true" to enforce verification (default: observe mode)
    JWS_ALLOWED_ALGORITHMS, JWS_ALLOWED_ISSUERS, ... - see jws_verifier.config
"""

import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from jws_verifier import (
    JWSASGIMiddleware,
    TokenVerifier,
    decode_secret,
    load_public_key,
    policy_from_env,
)

# Configuration from environment
PUBLIC_KEY_FILE = os.getenv("JWS_PUBLIC_KEY_FILE")
SECRET = os.getenv("JWS_SECRET", "change-me")
REQUIRE_VERIFIED = os.getenv("JWS_REQUIRE_VERIFIED", "false").lower() == "true"


def build_verifier() -> TokenVerifier:
    if PUBLIC_KEY_FILE:
        with open(PUBLIC_KEY_FILE, "rb") as f:
            key = load_public_key(f.read())
    else:
        key = decode_secret(SECRET)
    return TokenVerifier(key, policy_from_env())


app = FastAPI(
    title="JWS Verifier Demo API",
    description="Demo API with bearer JWS verification",
    version="0.1.0",
)

app.add_middleware(
    JWSASGIMiddleware,
    verifier=build_verifier(),
    require_verified=REQUIRE_VERIFIED,
)


@app.get("/")
async def root():
    """API info endpoint."""
    return {
        "service": "JWS Verifier Demo API",
        "require_verified": REQUIRE_VERIFIED,
        "endpoints": {
            "/public": "No token required",
            "/protected": "Token verification checked (401 in require mode)",
            "/claims": "Returns verified claims and the check audit trail",
        },
    }


@app.get("/public")
async def public():
    """Public endpoint - no token required."""
    return {"message": "This is public content", "access": "unrestricted"}


@app.get("/protected")
async def protected(request: Request):
    """
    Protected endpoint - checks token verification.

    In observe mode (require_verified=False):
        Returns 200 with verification status.

    In require mode (require_verified=True):
        Returns 401 if not verified (handled by middleware before reaching this handler).
    """
    jws = getattr(request.state, "jws", None)

    if not jws:
        return JSONResponse(
            status_code=500,
            content={"error": "Middleware not configured"},
        )

    response_data = {
        "present": jws.present,
        "valid": jws.result.valid if jws.result else False,
    }

    if jws.present and jws.result:
        if jws.result.valid:
            response_data["message"] = "Access granted - token verified"
            response_data["sub"] = jws.result.payload.get("sub")
        else:
            response_data["message"] = "Token present but verification failed"
            response_data["error"] = jws.result.error
    else:
        response_data["message"] = "No bearer token provided"

    return response_data


@app.get("/claims")
async def claims(request: Request):
    """Returns the verification result, including each check."""
    jws = getattr(request.state, "jws", None)

    if not jws or not jws.present:
        return {"present": False, "message": "No bearer token"}

    return jws.result.to_dict()


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8009)
