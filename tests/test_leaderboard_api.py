import pytest
from httpx import AsyncClient


async def submit_as(client: AsyncClient, report_data: dict, user_id: str) -> str:
    response = await client.post("/api/reports", data={**report_data, "userId": user_id})
    return response.json()["id"]


@pytest.mark.asyncio
async def test_weekly_leaderboard_envelope(client: AsyncClient, report_data: dict, clock):
    await client.put("/api/profiles/alice", json={"displayName": "Alice", "avatarEmoji": "🦆"})
    report_id = await submit_as(client, report_data, "alice")
    await client.post(
        f"/api/reports/{report_id}/comments",
        json={"userId": "bob", "userName": "Bob", "text": "saw it too"},
    )
    await client.post(
        f"/api/reports/{report_id}/reactions",
        json={"userId": "bob", "reactionType": "upvote"},
    )

    response = await client.get("/api/leaderboard/weekly")

    assert response.status_code == 200
    data = response.json()
    assert data["windowDays"] == 7
    assert "generatedAt" in data
    assert data["leaderboard"] == [
        {
            "rank": 1,
            "userId": "alice",
            "displayName": "Alice",
            "avatarEmoji": "🦆",
            "bio": "",
            "reportCount": 1,
            "commentCount": 0,
            "reactionCount": 0,
            "score": 5,
        },
        {
            "rank": 2,
            "userId": "bob",
            "displayName": "Bob",
            "avatarEmoji": "🦢",
            "bio": "",
            "reportCount": 0,
            "commentCount": 1,
            "reactionCount": 1,
            "score": 3,
        },
    ]


@pytest.mark.asyncio
async def test_leaderboard_limit_query(client: AsyncClient, report_data: dict):
    for i in range(30):
        await submit_as(client, report_data, f"user{i:02d}")

    default = await client.get("/api/leaderboard/weekly")
    assert len(default.json()["leaderboard"]) == 10

    limited = await client.get("/api/leaderboard/weekly", params={"limit": 3})
    assert [e["rank"] for e in limited.json()["leaderboard"]] == [1, 2, 3]

    clamped = await client.get("/api/leaderboard/weekly", params={"limit": 100})
    assert len(clamped.json()["leaderboard"]) == 25

    for bad in ("0", "-5", "abc", "NaN"):
        response = await client.get("/api/leaderboard/weekly", params={"limit": bad})
        assert response.status_code == 200
        assert len(response.json()["leaderboard"]) == 10


@pytest.mark.asyncio
async def test_leaderboard_drops_activity_outside_window(
    client: AsyncClient, report_data: dict, clock
):
    await submit_as(client, report_data, "early")
    clock.advance(days=7, minutes=1)
    await submit_as(client, report_data, "late")

    response = await client.get("/api/leaderboard/weekly")

    assert [e["userId"] for e in response.json()["leaderboard"]] == ["late"]
