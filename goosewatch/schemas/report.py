from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from goosewatch.schemas.base import CamelModel


class ReportType(str, Enum):
    poop = "poop"
    aggressive = "aggressive"


class Severity(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class ReactionType(str, Enum):
    like = "like"
    upvote = "upvote"


REACTION_TYPES: tuple[str, ...] = tuple(kind.value for kind in ReactionType)


def empty_reactions() -> dict[str, list["ReactionEvent"]]:
    return {kind: [] for kind in REACTION_TYPES}


class ReactionEvent(CamelModel):
    user_id: str
    timestamp: datetime


class CommentRecord(CamelModel):
    id: str
    user_id: str
    user_name: str
    text: str
    timestamp: datetime


# Stored shape, shared by both storage backends
class ReportRecord(CamelModel):
    id: str
    type: ReportType
    latitude: float
    longitude: float
    description: str = ""
    severity: Severity = Severity.medium
    image_url: str | None = None
    author_id: str | None = None
    author_name: str
    timestamp: datetime
    comments: list[CommentRecord] = Field(default_factory=list)
    reactions: dict[str, list[ReactionEvent]] = Field(default_factory=empty_reactions)


class ReactionCounts(CamelModel):
    like: int = 0
    upvote: int = 0


class ViewerReactions(CamelModel):
    like: bool = False
    upvote: bool = False


class ReportResponse(CamelModel):
    id: str
    type: ReportType
    latitude: float
    longitude: float
    description: str
    severity: Severity
    image_url: str | None
    author_id: str | None
    author_name: str
    timestamp: datetime
    comments: list[CommentRecord]
    comment_count: int
    reactions: ReactionCounts
    viewer_reactions: ViewerReactions


# Request bodies. Fields stay loose; the normalizer decides what is valid.
class CommentCreate(CamelModel):
    user_id: Any = None
    user_name: Any = None
    text: Any = None


class ReactionToggle(CamelModel):
    user_id: Any = None
    reaction_type: Any = None
