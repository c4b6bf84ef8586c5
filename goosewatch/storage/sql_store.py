"""
Relational report store (PostgreSQL via asyncpg, SQLite via aiosqlite).

Four tables: reports, report_comments, report_reactions, profiles. Each public
operation runs in one transaction and every write is a keyed statement, so
concurrent requests never overwrite each other's rows.
"""

import logging
from collections.abc import Mapping
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy import delete, inspect, select, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from goosewatch.core.exceptions import NotFoundError, RequiredFieldError, StorageError
from goosewatch.database import Base, check_db_connection, create_engine_for, create_session_maker
from goosewatch.models import Profile, Report, ReportComment, ReportReaction
from goosewatch.schemas.leaderboard import LeaderboardEntry
from goosewatch.schemas.profile import ProfileResponse
from goosewatch.schemas.report import REACTION_TYPES, ReportRecord, ReportResponse
from goosewatch.services.leaderboard_service import (
    DEFAULT_LEADERBOARD_LIMIT,
    ContributionKind,
    ContributionTally,
    leaderboard_cutoff,
    rank_contributors,
    resolve_leaderboard_limit,
)
from goosewatch.services.normalizer import (
    DEFAULT_PROFILE_NAME,
    MAX_ID_LENGTH,
    MAX_NAME_LENGTH,
    generate_id,
    normalize_profile,
    normalize_report,
    normalize_text,
    parse_timestamp,
    prepare_new_report,
    require_user_id,
    validate_comment_input,
)
from goosewatch.services.reaction_ledger import parse_reaction_type, to_public_report
from goosewatch.services.retention_service import RetentionSweeper, retention_cutoff
from goosewatch.storage.base import ReportStore

logger = logging.getLogger(__name__)


def _add_missing_report_columns(sync_conn) -> None:
    """Bring reports tables created before authorship was tracked up to date."""
    columns = {column["name"] for column in inspect(sync_conn).get_columns("reports")}
    if "author_id" not in columns:
        sync_conn.execute(text("ALTER TABLE reports ADD COLUMN author_id TEXT"))
        logger.info("Added reports.author_id column")
    if "author_name" not in columns:
        sync_conn.execute(
            text(
                "ALTER TABLE reports ADD COLUMN author_name TEXT NOT NULL "
                f"DEFAULT '{DEFAULT_PROFILE_NAME}'"
            )
        )
        logger.info("Added reports.author_name column")


class SqlReportStore(ReportStore):
    mode = "sql"

    def __init__(
        self,
        database_url: str,
        *args,
        echo: bool = False,
        sweep_interval_seconds: float = 3600,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.engine = create_engine_for(database_url, echo=echo)
        self.session_maker = create_session_maker(self.engine)
        self.sweeper = RetentionSweeper(self.cleanup_old_reports, sweep_interval_seconds)

    # =========================================================================
    # PLUMBING
    # =========================================================================

    @asynccontextmanager
    async def _transaction(self, action: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    yield session
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database error during {action}: {e}")
            raise StorageError() from e

    def _insert(self, table):
        if self.engine.dialect.name == "postgresql":
            return pg_insert(table)
        return sqlite_insert(table)

    async def _load_report(self, session: AsyncSession, report_id: str) -> Report | None:
        result = await session.execute(
            select(Report)
            .options(selectinload(Report.comments), selectinload(Report.reactions))
            .where(Report.id == report_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _require_report(self, session: AsyncSession, report_id: str) -> None:
        found = await session.scalar(select(Report.id).where(Report.id == report_id))
        if found is None:
            raise NotFoundError("Report not found", resource="report")

    @staticmethod
    def _to_record(row: Report) -> ReportRecord:
        return normalize_report({
            "id": row.id,
            "type": row.type,
            "latitude": row.latitude,
            "longitude": row.longitude,
            "description": row.description,
            "severity": row.severity,
            "image_url": row.image_url,
            "author_id": row.author_id,
            "author_name": row.author_name,
            "timestamp": row.timestamp,
            "comments": [
                {
                    "id": comment.id,
                    "user_id": comment.user_id,
                    "user_name": comment.user_name,
                    "text": comment.comment,
                    "timestamp": comment.timestamp,
                }
                for comment in row.comments
            ],
            "reactions": {
                kind: [
                    {"user_id": reaction.user_id, "timestamp": reaction.timestamp}
                    for reaction in row.reactions
                    if reaction.reaction_type == kind
                ]
                for kind in REACTION_TYPES
            },
        })

    @staticmethod
    def _to_profile(row: Profile) -> ProfileResponse:
        return normalize_profile({
            "id": row.id,
            "display_name": row.display_name,
            "bio": row.bio,
            "avatar_emoji": row.avatar_emoji,
            "created_at": row.created_at,
            "updated_at": row.updated_at,
        })

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def init(self) -> int:
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
                await conn.run_sync(_add_missing_report_columns)
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Could not initialize database schema: {e}")
            raise StorageError() from e

        removed = await self._sweep()
        self.sweeper.start()
        return removed

    async def ping(self) -> bool:
        return await check_db_connection(self.engine)

    async def close(self) -> None:
        await self.sweeper.stop()
        await self.engine.dispose()

    # =========================================================================
    # RETENTION
    # =========================================================================

    async def cleanup_old_reports(self) -> int:
        cutoff = retention_cutoff(self.now(), self.retention_days)
        async with self._transaction("retention sweep") as session:
            result = await session.execute(
                delete(Report)
                .where(Report.timestamp < cutoff)
                .execution_options(synchronize_session=False)
            )
        removed = result.rowcount or 0
        if removed:
            logger.info(f"Removed {removed} expired reports")
        return removed

    async def _sweep(self) -> int:
        try:
            return await self.cleanup_old_reports()
        except StorageError:
            logger.warning("Retention sweep failed; serving request anyway")
            return 0

    # =========================================================================
    # REPORTS
    # =========================================================================

    async def get_reports(
        self,
        report_type: str | None = None,
        viewer_id: str | None = None,
    ) -> list[ReportResponse]:
        await self._sweep()
        viewer_id = normalize_text(viewer_id, MAX_ID_LENGTH)

        query = (
            select(Report)
            .options(selectinload(Report.comments), selectinload(Report.reactions))
            .order_by(Report.timestamp.desc())
        )
        if report_type:
            query = query.where(Report.type == report_type)

        async with self._transaction("list reports") as session:
            rows = (await session.execute(query)).scalars().all()
            return [to_public_report(self._to_record(row), viewer_id) for row in rows]

    async def get_report_by_id(
        self,
        report_id: str,
        viewer_id: str | None = None,
    ) -> ReportResponse | None:
        await self._sweep()
        viewer_id = normalize_text(viewer_id, MAX_ID_LENGTH)

        async with self._transaction("get report") as session:
            row = await self._load_report(session, report_id)
            if row is None:
                return None
            return to_public_report(self._to_record(row), viewer_id)

    async def create_report(self, candidate: Mapping[str, Any]) -> ReportResponse:
        await self._sweep()
        record = prepare_new_report(candidate, self.bounds, self.now())

        async with self._transaction("create report") as session:
            if record.author_id:
                explicit_name = normalize_text(candidate.get("author_name"), MAX_NAME_LENGTH)
                profile = await self._ensure_profile(session, record.author_id, explicit_name)
                if not explicit_name:
                    record = record.model_copy(update={"author_name": profile.display_name})

            session.add(
                Report(
                    id=record.id,
                    type=record.type.value,
                    latitude=record.latitude,
                    longitude=record.longitude,
                    description=record.description,
                    severity=record.severity.value,
                    image_url=record.image_url,
                    author_id=record.author_id,
                    author_name=record.author_name,
                    timestamp=record.timestamp,
                )
            )

        logger.info(f"Created {record.type.value} report {record.id}")
        return to_public_report(record)

    async def add_comment(
        self,
        report_id: str,
        candidate: Mapping[str, Any],
    ) -> ReportResponse:
        await self._sweep()
        user_id, user_name, text_value = validate_comment_input(candidate)

        async with self._transaction("add comment") as session:
            await self._require_report(session, report_id)
            profile = await self._ensure_profile(session, user_id, user_name)

            session.add(
                ReportComment(
                    id=generate_id("comment"),
                    report_id=report_id,
                    user_id=user_id,
                    user_name=profile.display_name,
                    comment=text_value,
                    timestamp=self.now(),
                )
            )
            await session.flush()

            row = await self._load_report(session, report_id)
            return to_public_report(self._to_record(row), user_id)

    async def toggle_reaction(
        self,
        report_id: str,
        user_id: str,
        reaction_type: str,
    ) -> ReportResponse:
        await self._sweep()
        kind = parse_reaction_type(reaction_type)
        user_id = require_user_id(user_id)

        async with self._transaction("toggle reaction") as session:
            await self._require_report(session, report_id)

            removed = await session.execute(
                delete(ReportReaction)
                .where(
                    ReportReaction.report_id == report_id,
                    ReportReaction.user_id == user_id,
                    ReportReaction.reaction_type == kind.value,
                )
                .execution_options(synchronize_session=False)
            )
            if not removed.rowcount:
                await session.execute(
                    self._insert(ReportReaction.__table__)
                    .values(
                        report_id=report_id,
                        user_id=user_id,
                        reaction_type=kind.value,
                        timestamp=self.now(),
                    )
                    .on_conflict_do_nothing()
                )

            row = await self._load_report(session, report_id)
            return to_public_report(self._to_record(row), user_id)

    async def get_weekly_leaderboard(
        self,
        limit: Any = DEFAULT_LEADERBOARD_LIMIT,
    ) -> list[LeaderboardEntry]:
        await self._sweep()
        limit = resolve_leaderboard_limit(limit, cap=self.leaderboard_max_limit)
        cutoff = leaderboard_cutoff(self.now(), self.leaderboard_window_days)
        tally = ContributionTally()

        async with self._transaction("weekly leaderboard") as session:
            reports = await session.execute(
                select(Report.author_id, Report.author_name, Report.timestamp).where(
                    Report.author_id.is_not(None),
                    Report.author_id != "",
                    Report.timestamp >= cutoff,
                )
            )
            for author_id, author_name, timestamp in reports:
                tally.record(
                    author_id, ContributionKind.report, author_name, parse_timestamp(timestamp)
                )

            comments = await session.execute(
                select(ReportComment.user_id, ReportComment.user_name, ReportComment.timestamp)
                .where(ReportComment.timestamp >= cutoff)
            )
            for comment_user_id, comment_user_name, timestamp in comments:
                tally.record(
                    comment_user_id,
                    ContributionKind.comment,
                    comment_user_name,
                    parse_timestamp(timestamp),
                )

            reactions = await session.execute(
                select(ReportReaction.user_id).where(ReportReaction.timestamp >= cutoff)
            )
            for (reaction_user_id,) in reactions:
                tally.record(reaction_user_id, ContributionKind.reaction)

            profiles_by_id: dict[str, ProfileResponse] = {}
            if tally:
                rows = await session.execute(
                    select(Profile).where(Profile.id.in_(tally.user_ids()))
                )
                for row in rows.scalars():
                    profiles_by_id[row.id] = self._to_profile(row)

        return rank_contributors(tally, profiles_by_id, limit)

    # =========================================================================
    # PROFILES
    # =========================================================================

    async def _ensure_profile(
        self,
        session: AsyncSession,
        user_id: str,
        display_name: str = "",
    ) -> ProfileResponse:
        """Insert a default profile unless one exists, then return the stored row."""
        profile = normalize_profile({"id": user_id, "display_name": display_name}, self.now())
        await session.execute(
            self._insert(Profile.__table__)
            .values(
                id=profile.id,
                display_name=profile.display_name,
                bio=profile.bio,
                avatar_emoji=profile.avatar_emoji,
                created_at=profile.created_at,
                updated_at=profile.updated_at,
            )
            .on_conflict_do_nothing(index_elements=["id"])
        )
        row = await session.scalar(select(Profile).where(Profile.id == user_id))
        return self._to_profile(row)

    async def get_profile_by_id(self, user_id: str) -> ProfileResponse | None:
        user_id = normalize_text(user_id, MAX_ID_LENGTH)
        if not user_id:
            return None

        async with self._transaction("get profile") as session:
            row = await session.scalar(select(Profile).where(Profile.id == user_id))
            return self._to_profile(row) if row is not None else None

    async def upsert_profile(self, candidate: Mapping[str, Any]) -> ProfileResponse:
        now = self.now()
        normalized = normalize_profile(candidate, now)
        if not normalized.id:
            raise RequiredFieldError("Profile id is required", field="id")

        statement = self._insert(Profile.__table__).values(
            id=normalized.id,
            display_name=normalized.display_name,
            bio=normalized.bio,
            avatar_emoji=normalized.avatar_emoji,
            created_at=now,
            updated_at=now,
        )
        statement = statement.on_conflict_do_update(
            index_elements=["id"],
            set_={
                "display_name": statement.excluded.display_name,
                "bio": statement.excluded.bio,
                "avatar_emoji": statement.excluded.avatar_emoji,
                "updated_at": statement.excluded.updated_at,
            },
        )

        async with self._transaction("upsert profile") as session:
            await session.execute(statement)
            row = await session.scalar(
                select(Profile)
                .where(Profile.id == normalized.id)
                .execution_options(populate_existing=True)
            )
            return self._to_profile(row)
