"""
JSON-file report store.

State lives in two arrays owned by the store object and mirrored to
`reports.json` / `profiles.json`, each rewritten wholesale on mutation.
Mutations are copy-on-write: the new state is written first (temp file +
atomic rename) and only swapped into memory once the write succeeded, so a
failed write raises StorageError and leaves memory untouched. A lazily created
profile is written before its report and restored if the report write fails.

Disk writes are synchronous and run on the event loop. Each operation goes
from read to write without an await, so concurrent requests cannot interleave
and drop each other's updates. The cost is that a slow disk blocks the loop
for the length of one write.
"""

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from goosewatch.core.exceptions import (
    AppException,
    NotFoundError,
    RequiredFieldError,
    StorageError,
)
from goosewatch.schemas.leaderboard import LeaderboardEntry
from goosewatch.schemas.profile import ProfileResponse
from goosewatch.schemas.report import ReportRecord, ReportResponse
from goosewatch.services.leaderboard_service import (
    DEFAULT_LEADERBOARD_LIMIT,
    compute_leaderboard,
    resolve_leaderboard_limit,
)
from goosewatch.services.normalizer import (
    MAX_ID_LENGTH,
    MAX_NAME_LENGTH,
    generate_id,
    normalize_comment,
    normalize_profile,
    normalize_report,
    normalize_text,
    prepare_new_report,
    require_user_id,
    validate_comment_input,
)
from goosewatch.services.reaction_ledger import (
    parse_reaction_type,
    to_public_report,
    toggle_reaction_events,
)
from goosewatch.services.retention_service import partition_expired, retention_cutoff
from goosewatch.storage.base import ReportStore

logger = logging.getLogger(__name__)


class FileReportStore(ReportStore):
    mode = "file"

    def __init__(self, data_dir: str | Path, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.data_dir = Path(data_dir)
        self.reports_file = self.data_dir / "reports.json"
        self.profiles_file = self.data_dir / "profiles.json"
        self._reports: list[ReportRecord] = []
        self._profiles: dict[str, ProfileResponse] = {}

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def _load_array(self, path: Path) -> list:
        if not path.exists():
            return []
        try:
            parsed = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Error loading {path}: {e}")
            return []
        return parsed if isinstance(parsed, list) else []

    def _write_array(self, path: Path, payload: list[dict[str, Any]]) -> None:
        tmp_path = path.with_name(f"{path.name}.tmp")
        try:
            tmp_path.write_text(
                json.dumps(payload, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
            os.replace(tmp_path, path)
        except OSError as e:
            logger.error(f"Error saving {path}: {e}")
            raise StorageError() from e

    def _commit_reports(self, reports: list[ReportRecord]) -> None:
        self._write_array(
            self.reports_file,
            [report.model_dump(mode="json", by_alias=True) for report in reports],
        )
        self._reports = reports

    def _commit_profiles(self, profiles: dict[str, ProfileResponse]) -> None:
        self._write_array(
            self.profiles_file,
            [profile.model_dump(mode="json", by_alias=True) for profile in profiles.values()],
        )
        self._profiles = profiles

    def _load_reports(self) -> list[ReportRecord]:
        reports = []
        for raw in self._load_array(self.reports_file):
            if not isinstance(raw, Mapping):
                continue
            try:
                reports.append(normalize_report(raw))
            except AppException as e:
                logger.warning(f"Skipping unreadable report {raw.get('id')!r}: {e.message}")
        return reports

    def _load_profiles(self) -> dict[str, ProfileResponse]:
        profiles: dict[str, ProfileResponse] = {}
        for raw in self._load_array(self.profiles_file):
            if not isinstance(raw, Mapping):
                continue
            profile = normalize_profile(raw)
            if profile.id:
                profiles[profile.id] = profile
        return profiles

    # =========================================================================
    # RETENTION
    # =========================================================================

    def _sweep(self) -> int:
        cutoff = retention_cutoff(self.now(), self.retention_days)
        kept, expired = partition_expired(self._reports, cutoff)
        if not expired:
            return 0

        try:
            self._commit_reports(kept)
        except StorageError:
            # Expired reports are never served, even if the rewrite failed
            logger.warning(f"Could not persist removal of {len(expired)} expired reports")
            self._reports = kept
        logger.info(f"Removed {len(expired)} expired reports")
        return len(expired)

    async def cleanup_old_reports(self) -> int:
        return self._sweep()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def init(self) -> int:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create data directory {self.data_dir}: {e}")
            raise StorageError() from e

        self._reports = self._load_reports()
        self._profiles = self._load_profiles()
        logger.info(
            f"Loaded {len(self._reports)} reports and {len(self._profiles)} profiles "
            f"from {self.data_dir}"
        )
        return self._sweep()

    async def close(self) -> None:
        return None

    # =========================================================================
    # REPORTS
    # =========================================================================

    def _find_index(self, report_id: str) -> int:
        for index, report in enumerate(self._reports):
            if report.id == report_id:
                return index
        raise NotFoundError("Report not found", resource="report")

    def _replace_report(self, index: int, report: ReportRecord) -> None:
        reports = list(self._reports)
        reports[index] = report
        self._commit_reports(reports)

    async def get_reports(
        self,
        report_type: str | None = None,
        viewer_id: str | None = None,
    ) -> list[ReportResponse]:
        self._sweep()
        viewer_id = normalize_text(viewer_id, MAX_ID_LENGTH)

        reports = self._reports
        if report_type:
            reports = [report for report in reports if report.type.value == report_type]

        newest_first = sorted(reports, key=lambda report: report.timestamp, reverse=True)
        return [to_public_report(report, viewer_id) for report in newest_first]

    async def get_report_by_id(
        self,
        report_id: str,
        viewer_id: str | None = None,
    ) -> ReportResponse | None:
        self._sweep()
        viewer_id = normalize_text(viewer_id, MAX_ID_LENGTH)
        for report in self._reports:
            if report.id == report_id:
                return to_public_report(report, viewer_id)
        return None

    async def create_report(self, candidate: Mapping[str, Any]) -> ReportResponse:
        self._sweep()
        now = self.now()
        record = prepare_new_report(candidate, self.bounds, now)

        profiles = self._profiles
        if record.author_id:
            explicit_name = normalize_text(candidate.get("author_name"), MAX_NAME_LENGTH)
            profile, profiles = self._resolve_profile(record.author_id, explicit_name)
            if not explicit_name:
                record = record.model_copy(update={"author_name": profile.display_name})

        self._commit_activity([*self._reports, record], profiles)
        logger.info(f"Created {record.type.value} report {record.id}")
        return to_public_report(record)

    async def add_comment(
        self,
        report_id: str,
        candidate: Mapping[str, Any],
    ) -> ReportResponse:
        self._sweep()
        user_id, user_name, text = validate_comment_input(candidate)
        index = self._find_index(report_id)

        profile, profiles = self._resolve_profile(user_id, user_name)
        comment = normalize_comment({
            "id": generate_id("comment"),
            "user_id": user_id,
            "user_name": profile.display_name,
            "text": text,
            "timestamp": self.now(),
        })

        report = self._reports[index]
        updated = report.model_copy(update={"comments": [*report.comments, comment]})
        reports = list(self._reports)
        reports[index] = updated
        self._commit_activity(reports, profiles)
        return to_public_report(updated, user_id)

    async def toggle_reaction(
        self,
        report_id: str,
        user_id: str,
        reaction_type: str,
    ) -> ReportResponse:
        self._sweep()
        kind = parse_reaction_type(reaction_type)
        user_id = require_user_id(user_id)
        index = self._find_index(report_id)

        report = self._reports[index]
        events, _ = toggle_reaction_events(
            report.reactions.get(kind.value, []), user_id, self.now()
        )
        updated = report.model_copy(
            update={"reactions": {**report.reactions, kind.value: events}}
        )
        self._replace_report(index, updated)
        return to_public_report(updated, user_id)

    async def get_weekly_leaderboard(
        self,
        limit: Any = DEFAULT_LEADERBOARD_LIMIT,
    ) -> list[LeaderboardEntry]:
        self._sweep()
        return compute_leaderboard(
            self._reports,
            self._profiles.values(),
            now=self.now(),
            window_days=self.leaderboard_window_days,
            limit=resolve_leaderboard_limit(limit, cap=self.leaderboard_max_limit),
        )

    # =========================================================================
    # PROFILES
    # =========================================================================

    def _resolve_profile(
        self,
        user_id: str,
        display_name: str = "",
    ) -> tuple[ProfileResponse, dict[str, ProfileResponse]]:
        """Lazily build a profile the first time a user reports or comments.

        Returns the profile and the profile map to commit alongside the report.
        """
        existing = self._profiles.get(user_id)
        if existing is not None:
            return existing, self._profiles

        profile = normalize_profile({"id": user_id, "display_name": display_name}, self.now())
        return profile, {**self._profiles, user_id: profile}

    def _commit_activity(
        self,
        reports: list[ReportRecord],
        profiles: dict[str, ProfileResponse],
    ) -> None:
        """Commit a report change together with any lazily created profile."""
        previous = self._profiles
        if profiles is previous:
            self._commit_reports(reports)
            return

        self._commit_profiles(profiles)
        try:
            self._commit_reports(reports)
        except StorageError:
            self._commit_profiles(previous)
            raise

    async def get_profile_by_id(self, user_id: str) -> ProfileResponse | None:
        user_id = normalize_text(user_id, MAX_ID_LENGTH)
        if not user_id:
            return None
        return self._profiles.get(user_id)

    async def upsert_profile(self, candidate: Mapping[str, Any]) -> ProfileResponse:
        now = self.now()
        normalized = normalize_profile(candidate, now)
        if not normalized.id:
            raise RequiredFieldError("Profile id is required", field="id")

        existing = self._profiles.get(normalized.id)
        if existing is not None:
            profile = existing.model_copy(update={
                "display_name": normalized.display_name,
                "bio": normalized.bio,
                "avatar_emoji": normalized.avatar_emoji,
                "updated_at": now,
            })
        else:
            profile = normalized.model_copy(update={"created_at": now, "updated_at": now})

        self._commit_profiles({**self._profiles, profile.id: profile})
        return profile
