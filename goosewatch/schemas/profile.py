from datetime import datetime
from typing import Any

from goosewatch.schemas.base import CamelModel


class ProfileUpdate(CamelModel):
    # Loose on purpose: bad values fall back to defaults in the normalizer
    display_name: Any = None
    bio: Any = None
    avatar_emoji: Any = None


class ProfileResponse(CamelModel):
    id: str
    display_name: str
    bio: str = ""
    avatar_emoji: str
    created_at: datetime
    updated_at: datetime
