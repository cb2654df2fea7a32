"""
api/routes/progress.py -- Protected study-progress endpoint.

The payload is static demo data; only `user` comes from the verified token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.models import ProgressResponse
from auth.dependencies import require_claims
from auth.models import Claims

router = APIRouter()

_STUDY_PROGRESS = {
    "webDev": 50,
    "dataStructures": 30,
}

_RECENT_ACHIEVEMENTS = {
    "quickLearner": "Completed 5 modules quickly",
    "focusMaster": "Studied 3 hours straight",
}


@router.get("/progress", response_model=ProgressResponse)
async def progress(claims: Claims = Depends(require_claims)) -> ProgressResponse:
    """Return study progress for the authenticated user. 401 without a token, 403 with a bad one."""
    return ProgressResponse(
        user=claims.username,
        studyProgress=dict(_STUDY_PROGRESS),
        recentAchievements=dict(_RECENT_ACHIEVEMENTS),
    )
