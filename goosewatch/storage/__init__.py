import logging
from collections.abc import Callable
from datetime import datetime

from goosewatch.config import Settings, settings
from goosewatch.core.campus import campus_bounds_from_settings
from goosewatch.storage.base import ReportStore
from goosewatch.storage.file_store import FileReportStore
from goosewatch.storage.sql_store import SqlReportStore

logger = logging.getLogger(__name__)


def create_report_store(
    config: Settings = settings,
    clock: Callable[[], datetime] | None = None,
) -> ReportStore:
    """Relational store when DATABASE_URL is configured, JSON files otherwise."""
    common = dict(
        bounds=campus_bounds_from_settings(config),
        retention_days=config.REPORT_RETENTION_DAYS,
        leaderboard_window_days=config.LEADERBOARD_WINDOW_DAYS,
        leaderboard_max_limit=config.LEADERBOARD_MAX_LIMIT,
        clock=clock,
    )

    if config.DATABASE_URL:
        logger.info("Using relational report storage")
        return SqlReportStore(
            config.DATABASE_URL,
            echo=config.DATABASE_ECHO,
            sweep_interval_seconds=config.RETENTION_SWEEP_INTERVAL_SECONDS,
            **common,
        )

    logger.info(f"Using file report storage in {config.REPORTS_DATA_DIR}")
    return FileReportStore(config.REPORTS_DATA_DIR, **common)


__all__ = [
    "ReportStore",
    "FileReportStore",
    "SqlReportStore",
    "create_report_store",
]
