#!/usr/bin/env python3
"""Delete reports older than the retention window from the configured store."""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from goosewatch.config import settings
from goosewatch.storage import create_report_store


async def sweep_reports() -> int:
    store = create_report_store(settings)
    removed = await store.init()
    try:
        return removed + await store.cleanup_old_reports()
    finally:
        await store.close()


if __name__ == "__main__":
    removed = asyncio.run(sweep_reports())
    print(f"Removed {removed} reports older than {settings.REPORT_RETENTION_DAYS} days")
