"""
tests/conftest.py -- Shared test fixtures for StudyHub tests.

This module provides:
  - TEST_SECRET: the signing key every test TokenService uses
  - _patch_lifespan(): wires test state into app.state, bypassing real startup
  - api_client: TestClient over the real app with fresh, isolated state
  - registry: a MaterialRegistry over a per-test temp upload directory
  - store: a CredentialStore over a private in-memory database

Each api_client gets its own in-memory credential database and temp upload
directory, so tests never see each other's accounts or materials. bcrypt
runs at the minimum cost (4 rounds) to keep the suite fast.

The DEBUG env var must be set before any api/ import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from pathlib import Path

# CRITICAL: Set DEBUG before any core/api import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.store import CredentialStore
from auth.tokens import TokenService
from materials.registry import MaterialRegistry

TEST_SECRET = "test-secret-key-that-is-at-least-32-characters"
TEST_BCRYPT_ROUNDS = 4


def _patch_lifespan(store: CredentialStore, tokens: TokenService, registry: MaterialRegistry):
    """Return an async context manager that replaces the real lifespan.

    Mirrors the real startup: state on app.state, reconciliation before the
    first request.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.credential_store = store
        app.state.token_service = tokens
        app.state.material_registry = registry
        registry.reconcile_from_directory()
        yield
        store.close()

    return test_lifespan


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def store() -> Generator[CredentialStore, None, None]:
    s = CredentialStore(bcrypt_rounds=TEST_BCRYPT_ROUNDS)
    yield s
    s.close()


@pytest.fixture
def registry(upload_dir: Path) -> MaterialRegistry:
    return MaterialRegistry(upload_dir)


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(TEST_SECRET)


@pytest.fixture
def api_client(upload_dir: Path, token_service: TokenService) -> Generator[TestClient, None, None]:
    """Yield a TestClient over the real app with isolated state.

    Tests reach the live state through client.app.state when they need to
    look behind the HTTP surface (e.g. to verify a token or inspect disk).
    """
    store = CredentialStore(bcrypt_rounds=TEST_BCRYPT_ROUNDS)
    registry = MaterialRegistry(upload_dir)
    app.router.lifespan_context = _patch_lifespan(store, token_service, registry)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client


def register_and_login(client: TestClient, username: str, email: str, password: str) -> str:
    """Register an account through the API and return a fresh session token."""
    resp = client.post("/register", json={"username": username, "email": email, "password": password})
    assert resp.status_code == 201, resp.text
    resp = client.post("/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]
