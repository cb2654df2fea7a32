"""
API request and response models for StudyHub REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
materials/models.py, which own the internal domain representation. Route
handlers map between the two.

Request fields are Optional on purpose: an absent or empty field must reach
the credential store so it can answer with invalid_input (400), not with a
schema error.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from materials.models import Material

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /register."""

    username: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=320)
    password: Optional[str] = Field(default=None, max_length=255)


class LoginRequest(BaseModel):
    """Request body for POST /login."""

    email: Optional[str] = Field(default=None, max_length=320)
    password: Optional[str] = Field(default=None, max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class LoginResponse(BaseModel):
    """Response body for a successful POST /login."""

    model_config = ConfigDict(frozen=True)

    message: str = "Login successful"
    username: str
    token: str


class ProgressResponse(BaseModel):
    """Response body for GET /progress.

    studyProgress and recentAchievements are static demo data; only user
    depends on the caller.
    """

    model_config = ConfigDict(frozen=True)

    user: str
    studyProgress: dict[str, int]
    recentAchievements: dict[str, str]


class MaterialResponse(BaseModel):
    """One catalog entry as returned by the materials endpoints."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    type: str
    dateAdded: date
    size: str
    url: str

    @classmethod
    def from_material(cls, material: Material) -> "MaterialResponse":
        return cls(
            id=material.id,
            title=material.title,
            type=material.type,
            dateAdded=material.date_added,
            size=material.size,
            url=material.url,
        )


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
