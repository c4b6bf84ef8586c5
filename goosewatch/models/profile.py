from datetime import datetime

from sqlalchemy import DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from goosewatch.database import Base


class Profile(Base):
    __tablename__ = "profiles"

    # Client-generated user id
    id: Mapped[str] = mapped_column(Text, primary_key=True)

    display_name: Mapped[str] = mapped_column(Text, nullable=False)
    bio: Mapped[str] = mapped_column(Text, nullable=False, default="")
    avatar_emoji: Mapped[str] = mapped_column(Text, nullable=False, default="🦢")

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
