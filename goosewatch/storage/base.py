"""
Storage contract shared by the file-backed and relational report stores.

Every read/write operation runs a retention sweep first. Callers cannot tell
the backends apart: both return the same projected shapes for the same input.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from goosewatch.schemas.campus import CampusBounds
from goosewatch.schemas.leaderboard import LeaderboardEntry
from goosewatch.schemas.profile import ProfileResponse
from goosewatch.schemas.report import ReportResponse
from goosewatch.services.leaderboard_service import DEFAULT_LEADERBOARD_LIMIT
from goosewatch.services.normalizer import utc_now


class ReportStore(ABC):
    mode: str = ""

    def __init__(
        self,
        bounds: CampusBounds,
        retention_days: int = 7,
        leaderboard_window_days: int = 7,
        leaderboard_max_limit: int = 50,
        clock: Callable[[], datetime] | None = None,
    ):
        self.bounds = bounds
        self.retention_days = retention_days
        self.leaderboard_window_days = leaderboard_window_days
        self.leaderboard_max_limit = leaderboard_max_limit
        self._clock = clock or utc_now

    def now(self) -> datetime:
        return self._clock()

    async def ping(self) -> bool:
        """Whether the backing storage is reachable."""
        return True

    @abstractmethod
    async def init(self) -> int:
        """Idempotent bootstrap: create storage, then sweep. Returns reports removed."""

    @abstractmethod
    async def cleanup_old_reports(self) -> int:
        """Delete reports older than the retention window; returns how many went."""

    @abstractmethod
    async def get_reports(
        self,
        report_type: str | None = None,
        viewer_id: str | None = None,
    ) -> list[ReportResponse]:
        """Reports newest first, optionally filtered by type."""

    @abstractmethod
    async def get_report_by_id(
        self,
        report_id: str,
        viewer_id: str | None = None,
    ) -> ReportResponse | None:
        ...

    @abstractmethod
    async def create_report(self, candidate: Mapping[str, Any]) -> ReportResponse:
        """Validate and persist a submission. Raises ValidationError."""

    @abstractmethod
    async def get_profile_by_id(self, user_id: str) -> ProfileResponse | None:
        ...

    @abstractmethod
    async def upsert_profile(self, candidate: Mapping[str, Any]) -> ProfileResponse:
        """Insert, or update an existing profile keeping its created_at."""

    @abstractmethod
    async def add_comment(
        self,
        report_id: str,
        candidate: Mapping[str, Any],
    ) -> ReportResponse:
        """Append a comment. Raises NotFoundError or ValidationError."""

    @abstractmethod
    async def toggle_reaction(
        self,
        report_id: str,
        user_id: str,
        reaction_type: str,
    ) -> ReportResponse:
        """Add or remove the user's reaction. Raises NotFoundError or ValidationError."""

    @abstractmethod
    async def get_weekly_leaderboard(
        self,
        limit: Any = DEFAULT_LEADERBOARD_LIMIT,
    ) -> list[LeaderboardEntry]:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...
