"""
auth/tokens.py -- Password hashing and session token utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       sub/username, email, iat and exp. TokenService.verify() raises
       TokenMissing or TokenInvalid -- the auth guard turns those into
       401 and 403 respectively.

  Expiry: checked here against the service clock rather than by jose, so
       the validity window is exactly [iat, iat + lifetime) and tests can
       move the clock instead of sleeping.

  Passwords: bcrypt, cost 10 by default. Bcrypt is the right choice for
       low-entropy secrets because its cost factor makes brute-force
       expensive. CredentialStore keeps a dummy hash at the same cost so
       authenticate() takes as long for an unknown email as for a wrong
       password.

  SECRET_KEY: never read here. The lifespan in api/main.py builds one
       TokenService from Settings at startup and keeps it on app.state.

Layer rule: no imports from api/ or materials/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from auth.models import Claims, Identity
from core.errors import TokenInvalid, TokenMissing

logger = logging.getLogger("studyhub.auth")

ALGORITHM = "HS256"
DEFAULT_BCRYPT_ROUNDS = 10
DEFAULT_TOKEN_LIFETIME = 3600

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


_BCRYPT_MAX_BYTES = 72


def _password_bytes(plain: str) -> bytes:
    # bcrypt only looks at the first 72 bytes and bcrypt>=5 raises on longer
    # input, so truncate explicitly on both the hash and the verify side.
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Return a salted bcrypt hash of the given plaintext password."""
    return bcrypt.hashpw(_password_bytes(plain), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(_password_bytes(plain), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issues and verifies signed, time-limited session tokens.

    Stateless: nothing is stored server-side, so a token stays valid for its
    full lifetime once issued. There is no revocation and no key rotation.

    Usage:
        tokens = TokenService(settings.secret_key)
        token = tokens.issue(identity)
        claims = tokens.verify(token)   # raises TokenMissing / TokenInvalid
    """

    def __init__(
        self,
        secret_key: str,
        lifetime_seconds: int = DEFAULT_TOKEN_LIFETIME,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._secret_key = secret_key
        self.lifetime = timedelta(seconds=lifetime_seconds)
        self._now = now

    def issue(self, identity: Identity) -> str:
        """Sign a token embedding the identity's username and email."""
        # JWT timestamps are whole seconds; truncating here keeps exp - iat
        # exactly equal to the lifetime.
        issued_at = self._now().replace(microsecond=0)
        payload = {
            "sub": identity.username,
            "username": identity.username,
            "email": identity.email,
            "iat": issued_at,
            "exp": issued_at + self.lifetime,
        }
        return jwt.encode(payload, self._secret_key, algorithm=ALGORITHM)

    def verify(self, token: str | None) -> Claims:
        """Verify signature and expiry and return the embedded claims.

        Raises TokenMissing when no token was supplied and TokenInvalid for
        every other failure (bad signature, malformed, missing claims,
        expired). A token is invalid at or after its exp instant.
        """
        if not token:
            raise TokenMissing()
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            logger.debug("Token rejected: %s", exc)
            raise TokenInvalid() from exc

        try:
            username = payload["username"]
            email = payload["email"]
            issued_at = datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc)
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        except (KeyError, TypeError, ValueError) as exc:
            raise TokenInvalid() from exc

        if self._now() >= expires_at:
            raise TokenInvalid("Token has expired.")
        return Claims(username=username, email=email, issued_at=issued_at, expires_at=expires_at)
