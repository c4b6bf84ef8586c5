import json
import os
from pathlib import Path

import pytest

from goosewatch.core.exceptions import (
    InvalidFormatError,
    NotFoundError,
    OutOfBoundsError,
    RequiredFieldError,
    StorageError,
)
from goosewatch.storage import FileReportStore, SqlReportStore

CAMPUS_POINT = {"latitude": 43.47, "longitude": -80.54}


async def create(store, **fields):
    return await store.create_report({"type": "poop", **CAMPUS_POINT, **fields})


# =============================================================================
# Reports
# =============================================================================


@pytest.mark.asyncio
async def test_new_report_starts_without_activity(store, clock):
    report = await create(store, severity="high", description="  by the lake  ")

    assert report.id.startswith("report_")
    assert report.severity.value == "high"
    assert report.description == "by the lake"
    assert report.timestamp == clock()
    assert report.comment_count == 0
    assert report.comments == []
    assert report.reactions.like == 0
    assert report.reactions.upvote == 0


@pytest.mark.asyncio
async def test_out_of_bounds_report_is_never_stored(store):
    with pytest.raises(OutOfBoundsError):
        await store.create_report({"type": "poop", "latitude": 43.49, "longitude": -80.54})

    assert await store.get_reports() == []


@pytest.mark.asyncio
async def test_invalid_report_input(store):
    with pytest.raises(RequiredFieldError):
        await store.create_report({"type": "poop", "latitude": 43.47})
    with pytest.raises(InvalidFormatError):
        await store.create_report({"type": "poop", "latitude": "north", "longitude": -80.54})


@pytest.mark.asyncio
async def test_reports_listed_newest_first_and_filtered(store, clock):
    first = await create(store)
    clock.advance(minutes=1)
    second = await create(store, type="aggressive")
    clock.advance(minutes=1)
    third = await create(store)

    listed = await store.get_reports()
    assert [r.id for r in listed] == [third.id, second.id, first.id]

    aggressive = await store.get_reports(report_type="aggressive")
    assert [r.id for r in aggressive] == [second.id]

    assert await store.get_reports(report_type="geese") == []


@pytest.mark.asyncio
async def test_get_report_by_id(store):
    report = await create(store)

    found = await store.get_report_by_id(report.id)
    assert found == report
    assert await store.get_report_by_id("report_missing") is None


@pytest.mark.asyncio
async def test_report_author_creates_profile(store):
    report = await create(store, author_id="user_ab12")

    assert report.author_id == "user_ab12"
    assert report.author_name == "Goose Watcher AB12"

    profile = await store.get_profile_by_id("user_ab12")
    assert profile is not None
    assert profile.display_name == "Goose Watcher AB12"


@pytest.mark.asyncio
async def test_report_author_name_comes_from_existing_profile(store):
    await store.upsert_profile({"id": "u1", "displayName": "Honker"})

    report = await create(store, author_id="u1")
    assert report.author_name == "Honker"

    named = await create(store, author_id="u1", author_name="Night Owl")
    assert named.author_name == "Night Owl"
    assert (await store.get_profile_by_id("u1")).display_name == "Honker"


@pytest.mark.asyncio
async def test_anonymous_report_creates_no_profile(store):
    report = await create(store)

    assert report.author_id is None
    assert report.author_name == "Goose Watcher"


# =============================================================================
# Comments
# =============================================================================


@pytest.mark.asyncio
async def test_add_comment(store, clock):
    report = await create(store)
    clock.advance(minutes=1)

    updated = await store.add_comment(report.id, {"userId": "u1", "userName": "Ann", "text": " hi "})

    assert updated.comment_count == 1
    [comment] = updated.comments
    assert comment.id.startswith("comment_")
    assert comment.user_id == "u1"
    assert comment.user_name == "Ann"
    assert comment.text == "hi"
    assert comment.timestamp == clock()


@pytest.mark.asyncio
async def test_comment_name_is_snapshot_of_profile(store, clock):
    report = await create(store)
    await store.upsert_profile({"id": "u1", "displayName": "First"})

    await store.add_comment(report.id, {"userId": "u1", "userName": "Ignored", "text": "one"})
    await store.upsert_profile({"id": "u1", "displayName": "Second"})
    clock.advance(seconds=1)
    updated = await store.add_comment(report.id, {"userId": "u1", "text": "two"})

    assert [c.user_name for c in updated.comments] == ["First", "Second"]


@pytest.mark.asyncio
async def test_comments_are_ordered_oldest_first(store, clock):
    report = await create(store)
    for text in ("a", "b", "c"):
        clock.advance(seconds=1)
        await store.add_comment(report.id, {"userId": "u1", "text": text})

    found = await store.get_report_by_id(report.id)
    assert [c.text for c in found.comments] == ["a", "b", "c"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "candidate",
    [
        {"userId": "u1", "text": ""},
        {"userId": "u1", "text": "   "},
        {"text": "no user"},
    ],
)
async def test_rejected_comment_leaves_report_unchanged(store, candidate):
    report = await create(store)
    await store.add_comment(report.id, {"userId": "u9", "text": "existing"})

    with pytest.raises(RequiredFieldError):
        await store.add_comment(report.id, candidate)

    found = await store.get_report_by_id(report.id)
    assert [c.text for c in found.comments] == ["existing"]


@pytest.mark.asyncio
async def test_comment_on_missing_report(store):
    with pytest.raises(NotFoundError):
        await store.add_comment("report_missing", {"userId": "u1", "text": "hello"})

    # Input errors win over the missing report
    with pytest.raises(RequiredFieldError):
        await store.add_comment("report_missing", {"userId": "u1", "text": ""})


# =============================================================================
# Reactions
# =============================================================================


@pytest.mark.asyncio
async def test_toggle_twice_is_identity(store):
    report = await create(store)

    liked = await store.toggle_reaction(report.id, "u1", "like")
    assert liked.reactions.like == 1
    assert liked.viewer_reactions.like is True

    unliked = await store.toggle_reaction(report.id, "u1", "like")
    assert unliked.reactions.like == 0
    assert unliked.viewer_reactions.like is False


@pytest.mark.asyncio
async def test_two_users_upvote(store):
    report = await create(store)

    await store.toggle_reaction(report.id, "u1", "upvote")
    await store.toggle_reaction(report.id, "u2", "upvote")

    as_u1 = await store.get_report_by_id(report.id, viewer_id="u1")
    as_u3 = await store.get_report_by_id(report.id, viewer_id="u3")
    anonymous = await store.get_report_by_id(report.id)

    assert as_u1.reactions.upvote == 2
    assert as_u1.viewer_reactions.upvote is True
    assert as_u1.viewer_reactions.like is False
    assert as_u3.viewer_reactions.upvote is False
    assert anonymous.viewer_reactions.upvote is False


@pytest.mark.asyncio
async def test_reaction_kinds_are_independent(store):
    report = await create(store)

    await store.toggle_reaction(report.id, "u1", "like")
    updated = await store.toggle_reaction(report.id, "u1", "upvote")

    assert updated.reactions.like == 1
    assert updated.reactions.upvote == 1


@pytest.mark.asyncio
async def test_invalid_reactions(store):
    report = await create(store)

    with pytest.raises(InvalidFormatError):
        await store.toggle_reaction(report.id, "u1", "heart")
    with pytest.raises(RequiredFieldError):
        await store.toggle_reaction(report.id, "", "like")
    with pytest.raises(NotFoundError):
        await store.toggle_reaction("report_missing", "u1", "like")


# =============================================================================
# Profiles
# =============================================================================


@pytest.mark.asyncio
async def test_profile_upsert_keeps_created_at(store, clock):
    created = await store.upsert_profile({"id": "u1", "displayName": "Ann", "bio": "hi"})
    assert created.created_at == created.updated_at == clock()

    clock.advance(hours=1)
    updated = await store.upsert_profile({"id": "u1", "displayName": "Annie", "avatarEmoji": "🪿"})

    assert updated.created_at == created.created_at
    assert updated.updated_at == clock()
    assert updated.display_name == "Annie"
    assert updated.avatar_emoji == "🪿"
    assert updated.bio == ""
    assert await store.get_profile_by_id("u1") == updated


@pytest.mark.asyncio
async def test_profile_defaults_and_lookup(store):
    profile = await store.upsert_profile({"id": "user_zz99"})

    assert profile.display_name == "Goose Watcher ZZ99"
    assert profile.avatar_emoji == "🦢"
    assert await store.get_profile_by_id("nobody") is None
    assert await store.get_profile_by_id("") is None


@pytest.mark.asyncio
async def test_profile_requires_id(store):
    with pytest.raises(RequiredFieldError):
        await store.upsert_profile({"displayName": "Ghost"})


# =============================================================================
# Leaderboard
# =============================================================================


@pytest.mark.asyncio
async def test_weekly_leaderboard_scores_activity(store, clock):
    await store.upsert_profile({"id": "ann", "displayName": "Ann"})
    mine = await create(store, author_id="ann")
    other = await create(store)

    for text in ("one", "two"):
        clock.advance(seconds=1)
        await store.add_comment(other.id, {"userId": "ann", "text": text})
    await store.toggle_reaction(other.id, "ann", "like")
    await store.toggle_reaction(other.id, "ann", "upvote")
    await store.toggle_reaction(mine.id, "ann", "like")
    await store.toggle_reaction(mine.id, "bob", "like")

    leaderboard = await store.get_weekly_leaderboard()

    assert [(e.user_id, e.score) for e in leaderboard] == [("ann", 12), ("bob", 1)]
    assert leaderboard[0].display_name == "Ann"
    assert leaderboard[1].display_name == "Goose Watcher"


@pytest.mark.asyncio
async def test_leaderboard_ties_prefer_comments_over_reactions(store, clock):
    await store.upsert_profile({"id": "abe", "displayName": "Abe"})
    first = await create(store)
    second = await create(store)

    for text in ("honk", "hiss"):
        clock.advance(seconds=1)
        await store.add_comment(first.id, {"userId": "zara", "userName": "Zara", "text": text})
    for report in (first, second):
        await store.toggle_reaction(report.id, "abe", "like")
        await store.toggle_reaction(report.id, "abe", "upvote")

    leaderboard = await store.get_weekly_leaderboard()

    assert [(e.display_name, e.score, e.rank) for e in leaderboard] == [
        ("Zara", 4, 1),
        ("Abe", 4, 2),
    ]


@pytest.mark.asyncio
async def test_withdrawn_reaction_earns_nothing(store):
    report = await create(store)
    await store.toggle_reaction(report.id, "u1", "like")
    await store.toggle_reaction(report.id, "u1", "like")

    assert await store.get_weekly_leaderboard() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [0, float("nan"), None, "ten"])
async def test_leaderboard_bad_limits_mean_ten(store, limit):
    for i in range(12):
        await create(store, author_id=f"user{i:02d}")

    assert len(await store.get_weekly_leaderboard(limit)) == 10


@pytest.mark.asyncio
async def test_leaderboard_limit_capped(store):
    for i in range(3):
        await create(store, author_id=f"user{i}")

    assert len(await store.get_weekly_leaderboard(1)) == 1
    assert len(await store.get_weekly_leaderboard(500)) == 3


# =============================================================================
# Backend equivalence and file specifics
# =============================================================================


@pytest.mark.asyncio
async def test_backends_project_identically(file_store, sql_store):
    outputs = []
    for backend in (file_store, sql_store):
        report = await backend.create_report({
            "type": "aggressive",
            **CAMPUS_POINT,
            "description": "hissing",
            "author_id": "u1",
        })
        await backend.add_comment(report.id, {"userId": "u2", "userName": "Bo", "text": "yikes"})
        await backend.toggle_reaction(report.id, "u3", "upvote")
        found = await backend.get_report_by_id(report.id, viewer_id="u3")
        outputs.append(found.model_dump(exclude={"id": True, "comments": {"__all__": {"id"}}}))

    assert outputs[0] == outputs[1]


@pytest.mark.asyncio
async def test_file_store_persists_camel_case_json(file_store):
    report = await create(file_store, author_id="u1")
    await file_store.toggle_reaction(report.id, "u2", "like")

    stored = json.loads(file_store.reports_file.read_text(encoding="utf-8"))
    assert stored[0]["id"] == report.id
    assert stored[0]["authorId"] == "u1"
    assert stored[0]["reactions"]["like"][0]["userId"] == "u2"

    profiles = json.loads(file_store.profiles_file.read_text(encoding="utf-8"))
    assert profiles[0]["id"] == "u1"
    assert "createdAt" in profiles[0]


@pytest.mark.asyncio
async def test_file_store_reload_dedupes_and_skips_bad_records(tmp_path, bounds, clock):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    now = clock().isoformat()
    (data_dir / "reports.json").write_text(json.dumps([
        {
            "id": "report_1",
            "type": "poop",
            "latitude": 43.47,
            "longitude": -80.54,
            "timestamp": now,
            "reactions": {
                "like": [
                    {"userId": "u1", "timestamp": now},
                    {"userId": "u1", "timestamp": now},
                    "u2",
                ],
            },
        },
        {"id": "report_bad", "type": "duck", "latitude": 1, "longitude": 2},
        "garbage",
    ]))

    store = FileReportStore(data_dir, bounds=bounds, clock=clock)
    await store.init()

    reports = await store.get_reports(viewer_id="u2")
    assert [r.id for r in reports] == ["report_1"]
    assert reports[0].reactions.like == 2
    assert reports[0].viewer_reactions.like is True


@pytest.mark.asyncio
async def test_file_store_unreadable_file_loads_empty(tmp_path, bounds, clock):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "reports.json").write_text("{not json")

    store = FileReportStore(data_dir, bounds=bounds, clock=clock)
    await store.init()

    assert await store.get_reports() == []


@pytest.mark.asyncio
async def test_file_store_survives_restart(make_store):
    first = make_store("file")
    await first.init()
    report = await create(first)
    await first.add_comment(report.id, {"userId": "u1", "text": "still here"})

    second = make_store("file")
    await second.init()

    assert await second.get_report_by_id(report.id) == await first.get_report_by_id(report.id)


@pytest.mark.asyncio
async def test_file_store_failed_write_leaves_memory_untouched(file_store, monkeypatch):
    report = await create(file_store)

    def fail(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr("goosewatch.storage.file_store.os.replace", fail)

    with pytest.raises(StorageError):
        await file_store.toggle_reaction(report.id, "u1", "like")
    with pytest.raises(StorageError):
        await create(file_store)

    monkeypatch.undo()
    found = await file_store.get_report_by_id(report.id, viewer_id="u1")
    assert found.reactions.like == 0
    assert len(await file_store.get_reports()) == 1


@pytest.mark.asyncio
async def test_file_store_failed_report_write_drops_new_profile(file_store, monkeypatch):
    report = await create(file_store)
    real_replace = os.replace

    def fail_reports(src, dst):
        if Path(dst).name == "reports.json":
            raise OSError("disk full")
        real_replace(src, dst)

    monkeypatch.setattr("goosewatch.storage.file_store.os.replace", fail_reports)

    with pytest.raises(StorageError):
        await file_store.add_comment(report.id, {"userId": "u_new", "text": "hello"})
    with pytest.raises(StorageError):
        await create(file_store, author_id="u_author")

    monkeypatch.undo()
    assert await file_store.get_profile_by_id("u_new") is None
    assert await file_store.get_profile_by_id("u_author") is None
    on_disk = json.loads(file_store.profiles_file.read_text(encoding="utf-8"))
    assert [p["id"] for p in on_disk] == []
    found = await file_store.get_report_by_id(report.id)
    assert found.comment_count == 0


@pytest.mark.asyncio
async def test_sql_store_survives_restart(make_store):
    first = make_store("sql")
    await first.init()
    report = await create(first, author_id="u1")
    await first.toggle_reaction(report.id, "u2", "upvote")
    await first.close()

    second = make_store("sql")
    await second.init()
    try:
        found = await second.get_report_by_id(report.id, viewer_id="u2")
        assert found.reactions.upvote == 1
        assert found.viewer_reactions.upvote is True
        assert (await second.get_profile_by_id("u1")) is not None
    finally:
        await second.close()


@pytest.mark.asyncio
async def test_store_modes(file_store, sql_store):
    assert file_store.mode == "file"
    assert sql_store.mode == "sql"
    assert isinstance(sql_store, SqlReportStore)
    assert await file_store.ping() is True
    assert await sql_store.ping() is True
