from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from goosewatch.api.deps import get_store
from goosewatch.config import settings
from goosewatch.main import app
from goosewatch.schemas.campus import CampusBounds
from goosewatch.storage import FileReportStore, ReportStore, SqlReportStore

START_TIME = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock handed to stores so tests can move time forward."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(START_TIME)


@pytest.fixture
def bounds() -> CampusBounds:
    return CampusBounds(north=43.48, south=43.46, east=-80.53, west=-80.55)


def build_store(kind: str, tmp_path, bounds: CampusBounds, clock: FakeClock) -> ReportStore:
    if kind == "sql":
        return SqlReportStore(
            f"sqlite:///{tmp_path / 'reports.db'}",
            bounds=bounds,
            clock=clock,
        )
    return FileReportStore(tmp_path / "data", bounds=bounds, clock=clock)


@pytest_asyncio.fixture
async def file_store(tmp_path, bounds, clock) -> AsyncGenerator[FileReportStore, None]:
    store = build_store("file", tmp_path, bounds, clock)
    await store.init()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def sql_store(tmp_path, bounds, clock) -> AsyncGenerator[SqlReportStore, None]:
    store = build_store("sql", tmp_path, bounds, clock)
    await store.init()
    yield store
    await store.close()


@pytest_asyncio.fixture(params=["file", "sql"])
async def store(request, tmp_path, bounds, clock) -> AsyncGenerator[ReportStore, None]:
    """Runs the test once per storage backend."""
    report_store = build_store(request.param, tmp_path, bounds, clock)
    await report_store.init()
    yield report_store
    await report_store.close()


@pytest_asyncio.fixture
async def client(store: ReportStore, tmp_path, monkeypatch) -> AsyncGenerator[AsyncClient, None]:
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path / "uploads"))
    app.dependency_overrides[get_store] = lambda: store

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def report_data() -> dict:
    return {
        "type": "poop",
        "latitude": 43.4700,
        "longitude": -80.5400,
        "severity": "high",
    }


@pytest.fixture
def make_store(tmp_path, bounds, clock):
    """Build an uninitialized store of either kind over this test's tmp_path."""

    def factory(kind: str) -> ReportStore:
        return build_store(kind, tmp_path, bounds, clock)

    return factory
