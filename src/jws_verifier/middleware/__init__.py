"""
JWS middleware for ASGI and WSGI frameworks.

Re-exports middleware classes for convenient imports:
    from jws_verifier.middleware import JWSASGIMiddleware
    from jws_verifier.middleware import JWSWSGIMiddleware
"""

__all__: list[str] = []

# ASGI middleware (FastAPI, Starlette)
try:
    from .asgi import JWSASGIMiddleware
    __all__.append("JWSASGIMiddleware")
except ImportError:
    pass

from .wsgi import JWSWSGIMiddleware

__all__.append("JWSWSGIMiddleware")
