"""
Coerce untrusted input into canonical records.

Optional fields never fail: non-strings become empty strings, overlong text is
truncated and unparsable timestamps fall back to a supplied instant. Only the
required report fields (type, latitude, longitude) and the campus-bounds check
raise, so the HTTP layer can answer with a 400.
"""

import math
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from goosewatch.core.exceptions import (
    InvalidFormatError,
    OutOfBoundsError,
    RequiredFieldError,
)
from goosewatch.schemas.campus import CampusBounds
from goosewatch.schemas.profile import ProfileResponse
from goosewatch.schemas.report import (
    REACTION_TYPES,
    CommentRecord,
    ReactionEvent,
    ReportRecord,
    ReportType,
    Severity,
)
from goosewatch.services.reaction_ledger import dedupe_reaction_events

DEFAULT_PROFILE_NAME = "Goose Watcher"
DEFAULT_PROFILE_AVATAR = "🦢"

# Max field lengths
MAX_ID_LENGTH = 128
MAX_NAME_LENGTH = 40
MAX_BIO_LENGTH = 160
MAX_AVATAR_LENGTH = 8
MAX_DESCRIPTION_LENGTH = 2000
MAX_COMMENT_LENGTH = 500
MAX_ENUM_LENGTH = 16


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_id(prefix: str = "id") -> str:
    return f"{prefix}_{uuid.uuid4()}"


def normalize_text(value: Any, max_length: int) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()[:max_length]


def default_display_name(user_id: str | None) -> str:
    """Derived name shown until a user saves a profile, e.g. 'Goose Watcher X7QK'."""
    suffix = (user_id or "")[-4:].upper()
    return f"{DEFAULT_PROFILE_NAME} {suffix}" if suffix else DEFAULT_PROFILE_NAME


def parse_timestamp(value: Any, fallback: datetime | None = None) -> datetime:
    """
    Parse a datetime, ISO-8601 string or epoch milliseconds into an aware UTC datetime.
    Anything else returns the fallback (default: now).
    """
    parsed: datetime | None = None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            parsed = None
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            parsed = None

    if parsed is None:
        return fallback if fallback is not None else utc_now()

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    """First truthy value among camelCase/snake_case spellings of a field."""
    for key in keys:
        value = raw.get(key)
        if value:
            return value
    return None


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_coordinate(value: Any, field: str) -> float:
    if _is_missing(value):
        raise RequiredFieldError("Missing required fields", field=field)
    if isinstance(value, bool):
        raise InvalidFormatError("Invalid latitude or longitude values", field=field)

    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidFormatError("Invalid latitude or longitude values", field=field)

    if not math.isfinite(number):
        raise InvalidFormatError("Invalid latitude or longitude values", field=field)
    return number


def parse_report_type(value: Any) -> ReportType:
    if _is_missing(value):
        raise RequiredFieldError("Missing required fields", field="type")
    try:
        return ReportType(normalize_text(value, MAX_ENUM_LENGTH))
    except ValueError:
        allowed = ", ".join(kind.value for kind in ReportType)
        raise InvalidFormatError(f"Report type must be one of: {allowed}", field="type")


def parse_severity(value: Any) -> Severity:
    try:
        return Severity(normalize_text(value, MAX_ENUM_LENGTH))
    except ValueError:
        return Severity.medium


def validate_report_location(
    report_type: Any,
    latitude: Any,
    longitude: Any,
    bounds: CampusBounds,
) -> tuple[ReportType, float, float]:
    """Check the required submission fields and that the point lies on campus."""
    if _is_missing(report_type) or _is_missing(latitude) or _is_missing(longitude):
        raise RequiredFieldError("Missing required fields")

    parsed_type = parse_report_type(report_type)
    lat = parse_coordinate(latitude, "latitude")
    lng = parse_coordinate(longitude, "longitude")

    if not bounds.contains(lat, lng):
        raise OutOfBoundsError()

    return parsed_type, lat, lng


def require_user_id(value: Any) -> str:
    user_id = normalize_text(value, MAX_ID_LENGTH)
    if not user_id:
        raise RequiredFieldError("userId is required", field="userId")
    return user_id


def validate_comment_input(candidate: Mapping[str, Any]) -> tuple[str, str, str]:
    """Returns (user_id, user_name, text); user_name may be empty."""
    user_id = require_user_id(_first(candidate, "user_id", "userId"))
    text = normalize_text(_first(candidate, "text", "comment"), MAX_COMMENT_LENGTH)
    if not text:
        raise RequiredFieldError("Comment text is required", field="text")
    user_name = normalize_text(_first(candidate, "user_name", "userName"), MAX_NAME_LENGTH)
    return user_id, user_name, text


def normalize_reaction_event(raw: Any, fallback: datetime) -> ReactionEvent:
    # Older files stored bare user ids instead of events
    if isinstance(raw, str):
        return ReactionEvent(user_id=normalize_text(raw, MAX_ID_LENGTH), timestamp=fallback)

    if not isinstance(raw, Mapping):
        raw = {}
    return ReactionEvent(
        user_id=normalize_text(_first(raw, "userId", "user_id"), MAX_ID_LENGTH),
        timestamp=parse_timestamp(raw.get("timestamp"), fallback),
    )


def normalize_reactions(raw: Any, fallback: datetime) -> dict[str, list[ReactionEvent]]:
    normalized: dict[str, list[ReactionEvent]] = {kind: [] for kind in REACTION_TYPES}
    if not isinstance(raw, Mapping):
        return normalized

    for kind in REACTION_TYPES:
        source = raw.get(kind)
        if not isinstance(source, list):
            continue
        normalized[kind] = dedupe_reaction_events(
            [normalize_reaction_event(event, fallback) for event in source]
        )
    return normalized


def normalize_comment(raw: Mapping[str, Any], fallback: datetime | None = None) -> CommentRecord:
    user_id = normalize_text(_first(raw, "userId", "user_id"), MAX_ID_LENGTH)
    return CommentRecord(
        id=normalize_text(raw.get("id"), MAX_ID_LENGTH) or generate_id("comment"),
        user_id=user_id,
        user_name=normalize_text(_first(raw, "userName", "user_name"), MAX_NAME_LENGTH)
        or default_display_name(user_id),
        text=normalize_text(_first(raw, "text", "comment"), MAX_COMMENT_LENGTH),
        timestamp=parse_timestamp(raw.get("timestamp"), fallback),
    )


def normalize_report(raw: Mapping[str, Any]) -> ReportRecord:
    """
    Build a canonical report from a stored or submitted mapping.

    Raises a ValidationError subclass when type or coordinates are unusable;
    the campus-bounds check only applies to new submissions (prepare_new_report).
    """
    timestamp = parse_timestamp(raw.get("timestamp"))
    author_id = normalize_text(_first(raw, "authorId", "author_id"), MAX_ID_LENGTH)

    comments: list[CommentRecord] = []
    raw_comments = raw.get("comments")
    if isinstance(raw_comments, list):
        for item in raw_comments:
            if not isinstance(item, Mapping):
                continue
            comment = normalize_comment(item, timestamp)
            if comment.user_id and comment.text:
                comments.append(comment)

    image_url = _first(raw, "imageUrl", "image_url")

    return ReportRecord(
        id=normalize_text(raw.get("id"), MAX_ID_LENGTH) or generate_id("report"),
        type=parse_report_type(raw.get("type")),
        latitude=parse_coordinate(raw.get("latitude"), "latitude"),
        longitude=parse_coordinate(raw.get("longitude"), "longitude"),
        description=normalize_text(raw.get("description"), MAX_DESCRIPTION_LENGTH),
        severity=parse_severity(raw.get("severity")),
        image_url=image_url if isinstance(image_url, str) else None,
        author_id=author_id or None,
        author_name=normalize_text(_first(raw, "authorName", "author_name"), MAX_NAME_LENGTH)
        or default_display_name(author_id),
        timestamp=timestamp,
        comments=comments,
        reactions=normalize_reactions(raw.get("reactions"), timestamp),
    )


def prepare_new_report(
    candidate: Mapping[str, Any],
    bounds: CampusBounds,
    now: datetime | None = None,
) -> ReportRecord:
    """Single construction path for submissions: validate, stamp id and time, start empty."""
    report_type, lat, lng = validate_report_location(
        candidate.get("type"),
        candidate.get("latitude"),
        candidate.get("longitude"),
        bounds,
    )
    return normalize_report({
        **candidate,
        "id": generate_id("report"),
        "type": report_type.value,
        "latitude": lat,
        "longitude": lng,
        "timestamp": now or utc_now(),
        "comments": [],
        "reactions": {},
    })


def normalize_profile(raw: Mapping[str, Any], now: datetime | None = None) -> ProfileResponse:
    now = now or utc_now()
    profile_id = normalize_text(raw.get("id"), MAX_ID_LENGTH)
    return ProfileResponse(
        id=profile_id,
        display_name=normalize_text(_first(raw, "displayName", "display_name"), MAX_NAME_LENGTH)
        or default_display_name(profile_id),
        bio=normalize_text(raw.get("bio"), MAX_BIO_LENGTH),
        avatar_emoji=normalize_text(_first(raw, "avatarEmoji", "avatar_emoji"), MAX_AVATAR_LENGTH)
        or DEFAULT_PROFILE_AVATAR,
        created_at=parse_timestamp(_first(raw, "createdAt", "created_at"), now),
        updated_at=parse_timestamp(_first(raw, "updatedAt", "updated_at"), now),
    )
