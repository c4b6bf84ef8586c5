from typing import Annotated

from fastapi import APIRouter, Depends, Query

from goosewatch.api.deps import get_store
from goosewatch.config import settings
from goosewatch.schemas.leaderboard import WeeklyLeaderboardResponse
from goosewatch.services.leaderboard_service import resolve_leaderboard_limit
from goosewatch.storage import ReportStore

router = APIRouter(prefix="", tags=["leaderboard"])


@router.get("/weekly", response_model=WeeklyLeaderboardResponse)
async def get_weekly_leaderboard(
    store: Annotated[ReportStore, Depends(get_store)],
    limit: Annotated[str | None, Query()] = None,
) -> WeeklyLeaderboardResponse:
    """Top contributors over the trailing window (report 5, comment 2, reaction 1)."""
    resolved_limit = resolve_leaderboard_limit(limit, cap=settings.LEADERBOARD_API_MAX_LIMIT)
    entries = await store.get_weekly_leaderboard(resolved_limit)

    return WeeklyLeaderboardResponse(
        window_days=store.leaderboard_window_days,
        generated_at=store.now(),
        leaderboard=entries,
    )
