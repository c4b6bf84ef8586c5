"""Per-report reaction sets: toggle, dedupe and the viewer projection."""

from datetime import datetime
from typing import Any

from goosewatch.core.exceptions import InvalidFormatError
from goosewatch.schemas.report import (
    REACTION_TYPES,
    ReactionCounts,
    ReactionEvent,
    ReactionType,
    ReportRecord,
    ReportResponse,
    ViewerReactions,
)


def parse_reaction_type(value: Any) -> ReactionType:
    """Whitelist check for reaction kinds."""
    try:
        return ReactionType(value.strip() if isinstance(value, str) else value)
    except ValueError:
        raise InvalidFormatError(
            f"Reaction type must be one of: {', '.join(REACTION_TYPES)}",
            field="reactionType",
        )


def dedupe_reaction_events(events: list[ReactionEvent]) -> list[ReactionEvent]:
    """
    Keep one event per user, the one with the latest timestamp.
    Events without a user id are dropped; on equal timestamps the later entry wins.
    """
    by_user_id: dict[str, ReactionEvent] = {}
    for event in events:
        if not event.user_id:
            continue
        existing = by_user_id.get(event.user_id)
        if existing is None or event.timestamp >= existing.timestamp:
            by_user_id[event.user_id] = event
    return list(by_user_id.values())


def toggle_reaction_events(
    events: list[ReactionEvent],
    user_id: str,
    now: datetime,
) -> tuple[list[ReactionEvent], bool]:
    """
    Remove the user's event if present, otherwise append one stamped `now`.
    Returns the new event list and whether the reaction was added.
    The input list is not modified.
    """
    remaining = [event for event in events if event.user_id != user_id]
    if len(remaining) != len(events):
        return dedupe_reaction_events(remaining), False

    remaining.append(ReactionEvent(user_id=user_id, timestamp=now))
    return dedupe_reaction_events(remaining), True


def has_reacted(record: ReportRecord, kind: str, viewer_id: str | None) -> bool:
    if not viewer_id:
        return False
    return any(event.user_id == viewer_id for event in record.reactions.get(kind, []))


def to_public_report(record: ReportRecord, viewer_id: str | None = None) -> ReportResponse:
    """Project a stored report for one viewer: counts only, plus that viewer's own flags."""
    comments = sorted(record.comments, key=lambda comment: comment.timestamp)

    return ReportResponse(
        id=record.id,
        type=record.type,
        latitude=record.latitude,
        longitude=record.longitude,
        description=record.description,
        severity=record.severity,
        image_url=record.image_url,
        author_id=record.author_id,
        author_name=record.author_name,
        timestamp=record.timestamp,
        comments=comments,
        comment_count=len(comments),
        reactions=ReactionCounts(
            **{kind: len(record.reactions.get(kind, [])) for kind in REACTION_TYPES}
        ),
        viewer_reactions=ViewerReactions(
            **{kind: has_reacted(record, kind, viewer_id) for kind in REACTION_TYPES}
        ),
    )
