"""
Weekly contributor leaderboard.

Scoring (per activity inside the trailing window):
- Report authored: 5 points
- Comment posted: 2 points
- Reaction given: 1 point

Ties are broken by report count, comment count and reaction count (all
descending), then display name ascending, so the order is total.
"""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from goosewatch.schemas.leaderboard import LeaderboardEntry
from goosewatch.schemas.profile import ProfileResponse
from goosewatch.schemas.report import REACTION_TYPES, ReportRecord
from goosewatch.services.normalizer import DEFAULT_PROFILE_AVATAR, DEFAULT_PROFILE_NAME

DEFAULT_LEADERBOARD_LIMIT = 10


class ContributionKind(str, Enum):
    report = "report"
    comment = "comment"
    reaction = "reaction"


CONTRIBUTION_WEIGHTS: dict[ContributionKind, int] = {
    ContributionKind.report: 5,
    ContributionKind.comment: 2,
    ContributionKind.reaction: 1,
}


@dataclass
class Contribution:
    user_id: str
    report_count: int = 0
    comment_count: int = 0
    reaction_count: int = 0
    score: int = 0


def leaderboard_cutoff(now: datetime, window_days: int) -> datetime:
    return now - timedelta(days=window_days)


def resolve_leaderboard_limit(
    limit: Any,
    cap: int = 50,
    default: int = DEFAULT_LEADERBOARD_LIMIT,
) -> int:
    """None, non-numeric, non-finite or non-positive limits fall back to the default."""
    if isinstance(limit, bool):
        return default
    try:
        value = float(limit)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(value) or value <= 0:
        return default
    return max(1, min(int(value), cap))


class ContributionTally:
    """Per-user activity counts plus the most recently seen name for each user."""

    def __init__(self) -> None:
        self.contributions: dict[str, Contribution] = {}
        self._fallback_names: dict[str, tuple[datetime | None, str]] = {}

    def record(
        self,
        user_id: str | None,
        kind: ContributionKind,
        name: str | None = None,
        at: datetime | None = None,
    ) -> None:
        if not user_id:
            return

        entry = self.contributions.setdefault(user_id, Contribution(user_id=user_id))
        if kind is ContributionKind.report:
            entry.report_count += 1
        elif kind is ContributionKind.comment:
            entry.comment_count += 1
        else:
            entry.reaction_count += 1
        entry.score += CONTRIBUTION_WEIGHTS[kind]

        if name:
            seen = self._fallback_names.get(user_id)
            if seen is None or seen[0] is None or (at is not None and at >= seen[0]):
                self._fallback_names[user_id] = (at, name)

    def fallback_name(self, user_id: str) -> str | None:
        seen = self._fallback_names.get(user_id)
        return seen[1] if seen else None

    def user_ids(self) -> list[str]:
        return list(self.contributions)

    def __len__(self) -> int:
        return len(self.contributions)


def rank_contributors(
    tally: ContributionTally,
    profiles_by_id: Mapping[str, ProfileResponse],
    limit: int,
) -> list[LeaderboardEntry]:
    """Join tallies with profiles, sort into a total order, truncate and rank."""
    rows = []
    for contribution in tally.contributions.values():
        profile = profiles_by_id.get(contribution.user_id)
        rows.append({
            "user_id": contribution.user_id,
            "display_name": (profile.display_name if profile else None)
            or tally.fallback_name(contribution.user_id)
            or DEFAULT_PROFILE_NAME,
            "avatar_emoji": (profile.avatar_emoji if profile else None) or DEFAULT_PROFILE_AVATAR,
            "bio": (profile.bio if profile else None) or "",
            "report_count": contribution.report_count,
            "comment_count": contribution.comment_count,
            "reaction_count": contribution.reaction_count,
            "score": contribution.score,
        })

    rows.sort(
        key=lambda row: (
            -row["score"],
            -row["report_count"],
            -row["comment_count"],
            -row["reaction_count"],
            row["display_name"],
        )
    )

    return [
        LeaderboardEntry(rank=position, **row)
        for position, row in enumerate(rows[:limit], start=1)
    ]


def tally_reports(reports: Iterable[ReportRecord], cutoff: datetime) -> ContributionTally:
    """Credit every report, comment and reaction at or after the cutoff."""
    tally = ContributionTally()

    for report in reports:
        if report.author_id and report.timestamp >= cutoff:
            tally.record(report.author_id, ContributionKind.report, report.author_name, report.timestamp)

        for comment in report.comments:
            if comment.timestamp >= cutoff:
                tally.record(comment.user_id, ContributionKind.comment, comment.user_name, comment.timestamp)

        for kind in REACTION_TYPES:
            for reaction in report.reactions.get(kind, []):
                if reaction.timestamp >= cutoff:
                    tally.record(reaction.user_id, ContributionKind.reaction)

    return tally


def compute_leaderboard(
    reports: Iterable[ReportRecord],
    profiles: Iterable[ProfileResponse],
    now: datetime,
    window_days: int = 7,
    limit: int = DEFAULT_LEADERBOARD_LIMIT,
) -> list[LeaderboardEntry]:
    tally = tally_reports(reports, leaderboard_cutoff(now, window_days))
    profiles_by_id = {profile.id: profile for profile in profiles}
    return rank_contributors(tally, profiles_by_id, limit)
