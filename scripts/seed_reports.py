"""
Seed script to populate the configured report store with fake sightings.
Run with: python scripts/seed_reports.py
"""

import asyncio
import random
import sys
from pathlib import Path
from uuid import uuid4

# Add parent directory to path so we can import goosewatch
sys.path.insert(0, str(Path(__file__).parent.parent))

from faker import Faker

from goosewatch.config import settings
from goosewatch.schemas.report import REACTION_TYPES, ReportType, Severity
from goosewatch.storage import ReportStore, create_report_store

fake = Faker()

# Configuration
NUM_USERS = 12
NUM_REPORTS = 40
MAX_COMMENTS_PER_REPORT = 4
AVATARS = ["🦢", "🪿", "🦆", "🐦", "🌿", "💧"]


def random_campus_point(store: ReportStore) -> tuple[float, float]:
    bounds = store.bounds
    south, north = sorted((bounds.south, bounds.north))
    west, east = sorted((bounds.west, bounds.east))
    return (
        round(random.uniform(south, north), 6),
        round(random.uniform(west, east), 6),
    )


async def seed_users(store: ReportStore) -> list[str]:
    """Create watcher profiles."""
    user_ids = []
    print(f"Creating {NUM_USERS} profiles...")

    for _ in range(NUM_USERS):
        user_id = f"user_{uuid4().hex[:12]}"
        await store.upsert_profile({
            "id": user_id,
            "display_name": fake.first_name(),
            "bio": fake.sentence(nb_words=8),
            "avatar_emoji": random.choice(AVATARS),
        })
        user_ids.append(user_id)

    return user_ids


async def seed_reports(store: ReportStore, user_ids: list[str]) -> list[str]:
    """Create reports with comments and reactions from random users."""
    report_ids = []
    comment_count = 0
    reaction_count = 0
    print(f"Creating {NUM_REPORTS} reports...")

    for _ in range(NUM_REPORTS):
        latitude, longitude = random_campus_point(store)
        report = await store.create_report({
            "type": random.choice(list(ReportType)).value,
            "latitude": latitude,
            "longitude": longitude,
            "description": fake.sentence(nb_words=12),
            "severity": random.choice(list(Severity)).value,
            "author_id": random.choice(user_ids + [None]),
        })
        report_ids.append(report.id)

        for _ in range(random.randint(0, MAX_COMMENTS_PER_REPORT)):
            await store.add_comment(report.id, {
                "user_id": random.choice(user_ids),
                "text": fake.sentence(nb_words=10),
            })
            comment_count += 1

        for user_id in random.sample(user_ids, k=random.randint(0, len(user_ids) // 2)):
            await store.toggle_reaction(report.id, user_id, random.choice(REACTION_TYPES))
            reaction_count += 1

    print(f"  Comments created: {comment_count}")
    print(f"  Reactions created: {reaction_count}")
    return report_ids


async def main():
    store = create_report_store(settings)
    await store.init()

    try:
        user_ids = await seed_users(store)
        report_ids = await seed_reports(store, user_ids)

        leaderboard = await store.get_weekly_leaderboard(5)

        print("\n" + "=" * 50)
        print("Summary:")
        print("=" * 50)
        print(f"  Storage: {store.mode}")
        print(f"  Profiles created: {len(user_ids)}")
        print(f"  Reports created: {len(report_ids)}")
        print("  Top contributors this week:")
        for entry in leaderboard:
            print(f"    {entry.rank}. {entry.display_name} ({entry.score} pts)")
        print("=" * 50)
    finally:
        await store.close()


if __name__ == "__main__":
    asyncio.run(main())
