"""Retention window for reports and the periodic sweep job."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timedelta

from goosewatch.schemas.report import ReportRecord

logger = logging.getLogger(__name__)


def retention_cutoff(now: datetime, retention_days: int) -> datetime:
    return now - timedelta(days=retention_days)


def is_expired(report: ReportRecord, cutoff: datetime) -> bool:
    return report.timestamp < cutoff


def partition_expired(
    reports: Iterable[ReportRecord],
    cutoff: datetime,
) -> tuple[list[ReportRecord], list[ReportRecord]]:
    """Split reports into (kept, expired)."""
    kept: list[ReportRecord] = []
    expired: list[ReportRecord] = []
    for report in reports:
        (expired if is_expired(report, cutoff) else kept).append(report)
    return kept, expired


class RetentionSweeper:
    """
    Background job that runs a cleanup coroutine every `interval_seconds`.
    Errors are logged and the loop keeps going; stop() cancels the task.
    """

    def __init__(
        self,
        cleanup: Callable[[], Awaitable[int]],
        interval_seconds: float,
    ):
        self._cleanup = cleanup
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        logger.info(f"Starting retention sweep job (every {self.interval_seconds}s)")
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                removed = await self._cleanup()
                if removed:
                    logger.info(f"Retention sweep removed {removed} expired reports")
            except Exception as e:
                logger.error(f"Retention sweep failed: {e}")
