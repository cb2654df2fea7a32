"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in materials/models.py -- dataclasses own domain shape; stores and routes do
the work.

Layer rule: no imports from api/ or materials/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Identity:
    """A registered account.

    Identities are immutable once registered: there is no update or delete
    path. username and email are each unique within the credential store
    (case-sensitive exact match).
    """

    username: str
    email: str
    password_hash: str
    created_at: str | None = None


@dataclass(frozen=True)
class Claims:
    """The verified contents of a session token.

    Produced only by TokenService.verify(), so holding a Claims instance
    means the signature checked out and the token had not expired.
    """

    username: str
    email: str
    issued_at: datetime
    expires_at: datetime
