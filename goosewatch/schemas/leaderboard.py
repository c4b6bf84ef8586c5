from datetime import datetime

from goosewatch.schemas.base import CamelModel


class LeaderboardEntry(CamelModel):
    rank: int
    user_id: str
    display_name: str
    avatar_emoji: str
    bio: str
    report_count: int
    comment_count: int
    reaction_count: int
    score: int


class WeeklyLeaderboardResponse(CamelModel):
    window_days: int
    generated_at: datetime
    leaderboard: list[LeaderboardEntry]
