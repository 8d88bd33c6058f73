"""
Flask demo with bearer JWS verification.

Usage:
    # Install dependencies
    pip install -e ".[flask]"

    # Run the server
    flask --app examples.flask_demo run --port 8010

    # Or directly
    python examples/flask_demo.py

Test with curl:
    # Public endpoint (no token required)
    curl http://localhost:8010/public

    # Protected endpoint (401 in require mode without a valid token)
    curl -H "Authorization: Bearer $TOKEN" http://localhost:8010/protected

Environment variables:
    JWS_SECRET - HMAC shared secret
    JWS_SECRET_ENCODING - utf8, hex, base64 or base64url (default: utf8)
    JWS_REQUIRE_VERIFIED - Set to "true" to enforce verification (default: observe mode)
    JWS_ALLOWED_ALGORITHMS, JWS_ALLOWED_ISSUERS, ... - see jws_verifier.config
"""

import os

from flask import Flask, g, jsonify, request

from jws_verifier import TokenVerifier, decode_secret, policy_from_env
from jws_verifier.middleware import JWSWSGIMiddleware

# Configuration from environment
SECRET = os.getenv("JWS_SECRET", "change-me")
SECRET_ENCODING = os.getenv("JWS_SECRET_ENCODING", "utf8")
REQUIRE_VERIFIED = os.getenv("JWS_REQUIRE_VERIFIED", "false").lower() == "true"

app = Flask(__name__)

# Wrap with JWS middleware
app.wsgi_app = JWSWSGIMiddleware(
    app.wsgi_app,
    verifier=TokenVerifier(decode_secret(SECRET, SECRET_ENCODING), policy_from_env()),
    require_verified=REQUIRE_VERIFIED,
)


@app.before_request
def extract_jws_state():
    """Extract JWS state from environ and attach to Flask g object."""
    g.jws = request.environ.get("jws_verifier.jws")


@app.route("/")
def root():
    """API info endpoint."""
    return jsonify({
        "service": "JWS Verifier Flask Demo API",
        "require_verified": REQUIRE_VERIFIED,
        "endpoints": {
            "/public": "No token required",
            "/protected": "Token verification checked (401 in require mode)",
        },
    })


@app.route("/public")
def public():
    """Public endpoint - no token required."""
    return jsonify({"message": "This is public content", "access": "unrestricted"})


@app.route("/protected")
def protected():
    """Protected endpoint - reports token verification status."""
    jws = g.get("jws")

    if jws is None:
        return jsonify({"error": "Middleware not configured"}), 500

    if not jws.present:
        return jsonify({"present": False, "message": "No bearer token provided"})

    result = jws.result
    if result.valid:
        return jsonify({
            "present": True,
            "valid": True,
            "sub": result.payload.get("sub"),
            "checks": [{"name": c.name, "passed": c.passed} for c in result.checks],
        })

    return jsonify({
        "present": True,
        "valid": False,
        "failure": result.failure.value if result.failure else None,
        "error": result.error,
    })


@app.route("/health")
def health():
    """Health check endpoint."""
    return jsonify({"status": "ok"})


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=8010, debug=True)
