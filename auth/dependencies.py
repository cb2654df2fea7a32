"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Only one auth method exists: Authorization: Bearer <token>. The guard has
three outcomes that clients can tell apart:
  - no token (no header, wrong scheme, or empty token) -> 401 unauthorized
  - token present but bad signature / malformed / expired -> 403 forbidden
  - valid token -> Claims attached to request.state.claims

The guard raises the domain TokenMissing / TokenInvalid exceptions; the
StudyHubError handler in api/main.py renders them with the right status.

Layer rule: no imports from api/ or materials/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import Claims
from auth.tokens import TokenService


def bearer_token(request: Request) -> str | None:
    """Return the token from an 'Authorization: Bearer <token>' header, or None."""
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def require_claims(request: Request) -> Claims:
    """Require a valid session token. Raises 401 if missing, 403 if invalid.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(claims: Claims = Depends(require_claims)): ...
    """
    tokens: TokenService = request.app.state.token_service
    claims = tokens.verify(bearer_token(request))
    request.state.claims = claims
    return claims
