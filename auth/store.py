"""
auth/store.py -- SQLAlchemy Core persistence layer for identities.

Pattern: Repository + Data Mapper. CredentialStore is the repository;
_row_to_identity is the mapper. Route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Passwords are hashed before they reach the table; the plaintext is never
  stored or logged.

DB: selected by DATABASE_URL. The default "sqlite://" is a private
in-memory database shared across threads through a StaticPool, so
registered identities last exactly as long as the process.

Concurrency:
  register() is check-then-insert. One lock per store serializes it so two
  concurrent registrations of the same username cannot both pass the check;
  the UNIQUE constraints are the backstop for external writers.

Layer rule: no imports from api/ or materials/.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, func, or_, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

from auth.models import Identity
from auth.tokens import DEFAULT_BCRYPT_ROUNDS, hash_password, verify_password
from core.errors import Conflict, InvalidCredentials, InvalidInput

logger = logging.getLogger("studyhub.auth")

_IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_identities = Table(
    "identities",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("email", String(320), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for file-backed SQLite databases.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CredentialStore:
    """Repository for registered identities.

    Usage:
        store = CredentialStore()
        store.register("ana", "ana@x.com", "secret")
        identity = store.authenticate("ana@x.com", "secret")
        store.close()
    """

    def __init__(self, db_url: str = "sqlite://", bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self.bcrypt_rounds = bcrypt_rounds
        # Timing equalization target for unknown emails, hashed at the store's cost.
        self._dummy_hash = hash_password("studyhub_timing_dummy", rounds=bcrypt_rounds)
        self._lock = threading.Lock()
        engine_kwargs: dict = {}
        if db_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        if db_url in _IN_MEMORY_URLS:
            # Every pooled connection must see the same in-memory database.
            engine_kwargs["poolclass"] = StaticPool
        self.engine: Engine = create_engine(db_url, **engine_kwargs)
        if db_url.startswith("sqlite") and db_url not in _IN_MEMORY_URLS:
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def register(self, username: str | None, email: str | None, password: str | None) -> Identity:
        """Create a new identity.

        Raises InvalidInput if any field is empty or absent, Conflict if the
        username or the email is already registered. Hashing happens before
        the lock is taken so a slow bcrypt round does not hold up other
        registrations.
        """
        if not username or not email or not password:
            raise InvalidInput("Missing username, email or password.")

        if self._exists(username, email):
            raise Conflict()

        password_hash = hash_password(password, rounds=self.bcrypt_rounds)
        created_at = _now_iso()

        with self._lock:
            if self._exists(username, email):
                raise Conflict()
            try:
                with self.engine.begin() as conn:
                    conn.execute(
                        _identities.insert().values(
                            username=username,
                            email=email,
                            password_hash=password_hash,
                            created_at=created_at,
                        )
                    )
            except IntegrityError as exc:
                raise Conflict() from exc

        logger.info("Registered identity %s", username)
        return Identity(username=username, email=email, password_hash=password_hash, created_at=created_at)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def authenticate(self, email: str, password: str) -> Identity:
        """Return the identity for email if password matches.

        Always runs bcrypt whether or not the email exists:
        - Unknown email: bcrypt runs against a dummy hash of the same cost
        - Wrong password: bcrypt runs against the real hash

        Raises InvalidCredentials for both, with the same message.
        """
        identity = self.get_by_email(email) if email else None
        if identity is None:
            verify_password(password or "", self._dummy_hash)
            raise InvalidCredentials()
        if not verify_password(password or "", identity.password_hash):
            raise InvalidCredentials()
        return identity

    def get_by_email(self, email: str) -> Identity | None:
        with self.engine.connect() as conn:
            row = conn.execute(select(_identities).where(_identities.c.email == email)).fetchone()
        return _row_to_identity(row) if row else None

    def get_by_username(self, username: str) -> Identity | None:
        with self.engine.connect() as conn:
            row = conn.execute(select(_identities).where(_identities.c.username == username)).fetchone()
        return _row_to_identity(row) if row else None

    def count(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_identities)).scalar()
        return result or 0

    def close(self) -> None:
        self.engine.dispose()

    def _exists(self, username: str, email: str) -> bool:
        # SQLite's default = comparison on TEXT is case-sensitive (BINARY collation).
        with self.engine.connect() as conn:
            row = conn.execute(
                select(_identities.c.id).where(
                    or_(_identities.c.username == username, _identities.c.email == email)
                )
            ).first()
        return row is not None


# ---------------------------------------------------------------------------
# Mappers
# ---------------------------------------------------------------------------


def _row_to_identity(row) -> Identity:
    m = row._mapping
    return Identity(
        username=m["username"],
        email=m["email"],
        password_hash=m["password_hash"],
        created_at=m["created_at"],
    )
