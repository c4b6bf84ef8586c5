from goosewatch.schemas.campus import CampusBounds, Habitat, HabitatType
from goosewatch.schemas.leaderboard import LeaderboardEntry, WeeklyLeaderboardResponse
from goosewatch.schemas.profile import ProfileResponse, ProfileUpdate
from goosewatch.schemas.report import (
    CommentCreate,
    CommentRecord,
    ReactionCounts,
    ReactionEvent,
    ReactionToggle,
    ReactionType,
    ReportRecord,
    ReportResponse,
    ReportType,
    Severity,
    ViewerReactions,
)

__all__ = [
    "CampusBounds",
    "Habitat",
    "HabitatType",
    "ReportType",
    "Severity",
    "ReactionType",
    "ReactionEvent",
    "CommentRecord",
    "ReportRecord",
    "ReactionCounts",
    "ViewerReactions",
    "ReportResponse",
    "CommentCreate",
    "ReactionToggle",
    "ProfileUpdate",
    "ProfileResponse",
    "LeaderboardEntry",
    "WeeklyLeaderboardResponse",
]
