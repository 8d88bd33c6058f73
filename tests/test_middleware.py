"""Tests for ASGI and WSGI middleware."""

import json

import pytest
from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from jws_verifier import AcceptancePolicy, TokenVerifier
from jws_verifier.codec import b64url_encode
from jws_verifier.middleware.asgi import JWSASGIMiddleware
from jws_verifier.middleware.wsgi import JWSWSGIMiddleware


@pytest.fixture
def verifier():
    return TokenVerifier.from_secret("passwd", AcceptancePolicy(allowed_algorithms={"HS256"}))


def nested_token(depth: int = 100_000) -> str:
    segment = b64url_encode(b'{"alg":"HS256","x":' + b"[" * depth + b"]" * depth + b"}")
    return f"{segment}.{segment}."


# Test ASGI app
async def asgi_endpoint(request):
    jws = getattr(request.state, "jws", None)
    return JSONResponse({
        "present": jws.present if jws else False,
        "valid": jws.result.valid if jws and jws.result else False,
        "sub": jws.result.payload.get("sub") if jws and jws.result and jws.result.payload else None,
    })


def create_asgi_app(verifier: TokenVerifier, require_verified: bool = False):
    """Create test ASGI app with middleware."""
    app = Starlette(routes=[Route("/test", asgi_endpoint)])
    app.add_middleware(
        JWSASGIMiddleware,
        verifier=verifier,
        require_verified=require_verified,
    )
    return app


class TestASGIMiddleware:
    """Tests for JWSASGIMiddleware."""

    def test_no_token_observe_mode(self, verifier):
        """Request without a token in observe mode passes through."""
        client = TestClient(create_asgi_app(verifier, require_verified=False))

        response = client.get("/test")

        assert response.status_code == 200
        assert response.json()["present"] is False

    def test_no_token_require_mode(self, verifier):
        """Request without a token in require mode returns 401."""
        client = TestClient(create_asgi_app(verifier, require_verified=True))

        response = client.get("/test")

        assert response.status_code == 401
        assert response.headers["X-JWS-Decision"] == "deny"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_valid_token(self, verifier, make_token):
        """Valid token sets state and allow decision."""
        client = TestClient(create_asgi_app(verifier, require_verified=True))

        response = client.get(
            "/test",
            headers={"Authorization": f"Bearer {make_token({'sub': 'a@a.com'})}"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["present"] is True
        assert data["valid"] is True
        assert data["sub"] == "a@a.com"
        assert response.headers["X-JWS-Decision"] == "allow"

    def test_invalid_token_observe_mode(self, verifier, make_token):
        """Invalid token in observe mode passes with observe decision."""
        client = TestClient(create_asgi_app(verifier, require_verified=False))
        token = make_token({"sub": "a@a.com"}, key=b"wrong")

        response = client.get("/test", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["valid"] is False
        assert response.headers["X-JWS-Decision"] == "observe"

    def test_invalid_token_require_mode(self, verifier, make_token):
        """Invalid token in require mode returns 401 with the failure kind."""
        client = TestClient(create_asgi_app(verifier, require_verified=True))
        token = make_token({"sub": "a@a.com"}, key=b"wrong")

        response = client.get("/test", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.headers["X-JWS-Decision"] == "deny"
        assert response.json()["failure"] == "signature_invalid"

    def test_disallowed_algorithm_require_mode(self, verifier, make_token):
        """A correctly signed token with a disallowed alg is refused."""
        client = TestClient(create_asgi_app(verifier, require_verified=True))
        token = make_token({"sub": "a@a.com"}, alg="HS512")

        response = client.get("/test", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["failure"] == "claim_check_failed"

    def test_malformed_token(self, verifier):
        """Garbage bearer credentials are a malformed token."""
        client = TestClient(create_asgi_app(verifier, require_verified=True))

        response = client.get("/test", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert response.json()["failure"] == "malformed_token"

    def test_malformed_authorization_observe_mode(self, verifier):
        """Malformed Authorization header is present but not valid."""
        client = TestClient(create_asgi_app(verifier, require_verified=False))

        response = client.get("/test", headers={"Authorization": "Bearer a b"})

        assert response.status_code == 200
        data = response.json()
        assert data["present"] is True
        assert data["valid"] is False

    def test_deeply_nested_token_require_mode(self, verifier):
        """Deeply nested JSON is refused with 401 rather than raising."""
        client = TestClient(create_asgi_app(verifier, require_verified=True))

        response = client.get("/test", headers={"Authorization": f"Bearer {nested_token()}"})

        assert response.status_code == 401
        assert response.json()["failure"] == "malformed_json"


# Test WSGI app
def wsgi_app_handler(environ, start_response):
    """Simple WSGI app for testing."""
    jws = environ.get("jws_verifier.jws")

    body = json.dumps({
        "present": jws.present if jws else False,
        "valid": jws.result.valid if jws and jws.result else False,
    }).encode()

    start_response("200 OK", [
        ("Content-Type", "application/json"),
        ("Content-Length", str(len(body))),
    ])
    return [body]


def create_wsgi_app(verifier: TokenVerifier, require_verified: bool = False):
    """Create test WSGI app with middleware."""
    return JWSWSGIMiddleware(
        wsgi_app_handler,
        verifier=verifier,
        require_verified=require_verified,
    )


def make_environ(authorization: str | None = None) -> dict:
    environ = {
        "REQUEST_METHOD": "GET",
        "PATH_INFO": "/test",
        "SERVER_NAME": "localhost",
        "wsgi.url_scheme": "http",
    }
    if authorization is not None:
        environ["HTTP_AUTHORIZATION"] = authorization
    return environ


def call_wsgi(app, environ):
    responses = []

    def start_response(status, headers, exc_info=None):
        responses.append((status, dict(headers)))

    body = b"".join(app(environ, start_response))
    return responses[0][0], responses[0][1], body


class TestWSGIMiddleware:
    """Tests for JWSWSGIMiddleware."""

    def test_no_token_observe_mode(self, verifier):
        """Request without a token in observe mode passes through."""
        status, _, body = call_wsgi(create_wsgi_app(verifier), make_environ())

        assert status == "200 OK"
        assert json.loads(body)["present"] is False

    def test_no_token_require_mode(self, verifier):
        """Request without a token in require mode returns 401."""
        app = create_wsgi_app(verifier, require_verified=True)
        status, headers, _ = call_wsgi(app, make_environ())

        assert status == "401 Unauthorized"
        assert headers["X-JWS-Decision"] == "deny"

    def test_valid_token(self, verifier, make_token):
        """Valid token sets environ state and allow decision."""
        environ = make_environ(f"Bearer {make_token({'sub': 'a@a.com'})}")
        status, headers, body = call_wsgi(create_wsgi_app(verifier), environ)

        assert status == "200 OK"
        assert headers["X-JWS-Decision"] == "allow"
        data = json.loads(body)
        assert data["present"] is True
        assert data["valid"] is True
        assert environ["jws_verifier.jws"].result.payload == {"sub": "a@a.com"}

    def test_invalid_token_observe_mode(self, verifier, make_token):
        """Invalid token in observe mode passes with observe decision."""
        token = make_token({"sub": "a@a.com", "exp": 1})
        status, headers, body = call_wsgi(create_wsgi_app(verifier), make_environ(f"Bearer {token}"))

        assert status == "200 OK"
        assert headers["X-JWS-Decision"] == "observe"
        assert json.loads(body)["valid"] is False

    def test_invalid_token_require_mode(self, verifier, make_token):
        """Expired token in require mode returns 401."""
        token = make_token({"sub": "a@a.com", "exp": 1})
        app = create_wsgi_app(verifier, require_verified=True)
        status, headers, body = call_wsgi(app, make_environ(f"Bearer {token}"))

        assert status == "401 Unauthorized"
        assert headers["X-JWS-Decision"] == "deny"
        data = json.loads(body)
        assert data["failure"] == "claim_check_failed"
        assert "temporal" in data["error"]

    def test_malformed_authorization(self, verifier):
        """Malformed Authorization header is refused in require mode."""
        app = create_wsgi_app(verifier, require_verified=True)
        status, _, body = call_wsgi(app, make_environ("Bearer"))

        assert status == "401 Unauthorized"
        assert json.loads(body)["failure"] == "malformed_token"

    def test_deeply_nested_token_require_mode(self, verifier):
        """Deeply nested JSON is refused with 401 rather than raising."""
        app = create_wsgi_app(verifier, require_verified=True)
        status, headers, body = call_wsgi(app, make_environ(f"Bearer {nested_token()}"))

        assert status == "401 Unauthorized"
        assert headers["X-JWS-Decision"] == "deny"
        assert json.loads(body)["failure"] == "malformed_json"
