"""
api/routes/auth.py -- Registration and login REST endpoints.

Routes:
  POST /register   -- create an identity; 201
  POST /signin     -- legacy alias of /register kept for existing clients
  POST /login      -- email/password login; returns a session token

Both handlers are plain `def`, so FastAPI runs them on its worker thread
pool and the bcrypt work never blocks the event loop.

Failures are raised as core.errors exceptions (InvalidInput, Conflict,
InvalidCredentials); api/main.py renders them into the error envelope.
Login returns the same invalid_credentials error for an unknown email and
a wrong password.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.models import LoginRequest, LoginResponse, MessageResponse, RegisterRequest
from auth.store import CredentialStore
from auth.tokens import TokenService
from core.errors import InvalidInput

# Auth policy: every route in this module is public.
router = APIRouter()


@router.post("/register", response_model=MessageResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> MessageResponse:
    """Register a new account. 400 on missing fields, 409 on duplicate username or email."""
    store: CredentialStore = request.app.state.credential_store
    store.register(body.username, body.email, body.password)
    return MessageResponse(message="User registered successfully")


router.add_api_route(
    "/signin",
    register,
    methods=["POST"],
    response_model=MessageResponse,
    status_code=201,
    include_in_schema=False,
)


@router.post("/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password and issue a 1-hour session token."""
    if not body.email or not body.password:
        raise InvalidInput("Missing email or password.")

    store: CredentialStore = request.app.state.credential_store
    tokens: TokenService = request.app.state.token_service
    identity = store.authenticate(body.email, body.password)

    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(username=identity.username, token=tokens.issue(identity)).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp
