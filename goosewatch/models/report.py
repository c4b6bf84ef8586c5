from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Double,
    ForeignKey,
    Index,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from goosewatch.database import Base


class Report(Base):
    __tablename__ = "reports"
    __table_args__ = (
        CheckConstraint("type IN ('poop', 'aggressive')", name="ck_reports_type"),
        CheckConstraint("severity IN ('low', 'medium', 'high')", name="ck_reports_severity"),
        Index("ix_reports_timestamp", "timestamp"),
        Index("ix_reports_type", "type"),
    )

    # report_<uuid>
    id: Mapped[str] = mapped_column(Text, primary_key=True)

    # poop | aggressive
    type: Mapped[str] = mapped_column(Text, nullable=False)

    latitude: Mapped[float] = mapped_column(Double, nullable=False)
    longitude: Mapped[float] = mapped_column(Double, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # low | medium | high
    severity: Mapped[str] = mapped_column(Text, nullable=False, default="medium")

    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    author_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    author_name: Mapped[str] = mapped_column(Text, nullable=False, default="Goose Watcher")

    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Relationships
    comments: Mapped[list["ReportComment"]] = relationship(
        back_populates="report",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ReportComment.timestamp",
    )
    reactions: Mapped[list["ReportReaction"]] = relationship(
        back_populates="report",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ReportComment(Base):
    __tablename__ = "report_comments"
    __table_args__ = (
        Index("ix_report_comments_report_id", "report_id"),
        Index("ix_report_comments_timestamp", "timestamp"),
    )

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    report_id: Mapped[str] = mapped_column(
        Text,
        ForeignKey("reports.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    user_name: Mapped[str] = mapped_column(Text, nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    report: Mapped["Report"] = relationship(back_populates="comments")


class ReportReaction(Base):
    """One row per (report, user, reaction type); presence means 'reacted'."""

    __tablename__ = "report_reactions"
    __table_args__ = (
        CheckConstraint(
            "reaction_type IN ('like', 'upvote')",
            name="ck_report_reactions_reaction_type",
        ),
        Index("ix_report_reactions_report_id", "report_id"),
        Index("ix_report_reactions_timestamp", "timestamp"),
    )

    report_id: Mapped[str] = mapped_column(
        Text,
        ForeignKey("reports.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[str] = mapped_column(Text, primary_key=True)
    reaction_type: Mapped[str] = mapped_column(Text, primary_key=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    report: Mapped["Report"] = relationship(back_populates="reactions")
