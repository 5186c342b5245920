# tests/test_api_leaderboard.py

"""Tests for the leaderboard endpoint and its pagination."""

import pytest
from httpx import AsyncClient

# =============================================================================
# Helper Functions
# =============================================================================


async def create_player(client: AsyncClient, username: str) -> int:
    """Helper to register a player and return its ID."""
    response = await client.post("/players/", json={"username": username})
    assert response.status_code == 201, response.text
    return response.json()["player"]["id"]


async def set_rating(client: AsyncClient, player_id: int, rating: int) -> None:
    response = await client.post(
        f"/players/{player_id}/corrections", json={"rating": rating, "reason": "seed"}
    )
    assert response.status_code == 200, response.text


# =============================================================================
# Tests
# =============================================================================


@pytest.mark.asyncio
async def test_leaderboard_orders_by_rating(async_client: AsyncClient):
    """Test that the leaderboard is sorted by rating with ranks from 1."""
    # 1. ARRANGE
    ratings = {"bronze": 900, "gold": 1800, "silver": 1300}
    for name, rating in ratings.items():
        await set_rating(async_client, await create_player(async_client, name), rating)

    # 2. ACT
    response = await async_client.get("/leaderboard")

    # 3. ASSERT
    assert response.status_code == 200
    data = response.json()
    assert [e["player"]["username"] for e in data["items"]] == ["gold", "silver", "bronze"]
    assert [e["rank"] for e in data["items"]] == [1, 2, 3]
    assert data["total"] == 3
    assert data["limit"] == 50
    assert data["has_more"] is False


@pytest.mark.asyncio
async def test_leaderboard_pagination(async_client: AsyncClient):
    """Test that ranks continue across pages and has_more is accurate."""
    for i in range(5):
        await set_rating(async_client, await create_player(async_client, f"p{i:02d}"), 1000 + i)

    first = (await async_client.get("/leaderboard", params={"limit": 2})).json()
    last = (await async_client.get("/leaderboard", params={"limit": 2, "offset": 4})).json()

    assert [e["rank"] for e in first["items"]] == [1, 2]
    assert first["has_more"] is True
    assert [e["rank"] for e in last["items"]] == [5]
    assert last["items"][0]["player"]["username"] == "p00"
    assert last["has_more"] is False
    assert last["total"] == 5


@pytest.mark.asyncio
async def test_leaderboard_limit_is_clamped(async_client: AsyncClient):
    await create_player(async_client, "only")

    high = (await async_client.get("/leaderboard", params={"limit": 1000})).json()
    low = (await async_client.get("/leaderboard", params={"limit": 0})).json()

    assert high["limit"] == 100
    assert low["limit"] == 1


@pytest.mark.asyncio
async def test_leaderboard_include_anonymous(async_client: AsyncClient):
    await create_player(async_client, "named")
    await async_client.post("/players/anonymous")

    default = (await async_client.get("/leaderboard")).json()
    everyone = (
        await async_client.get("/leaderboard", params={"include_anonymous": True})
    ).json()

    assert default["total"] == 1
    assert everyone["total"] == 2


@pytest.mark.asyncio
async def test_leaderboard_class_filter(async_client: AsyncClient):
    a = await create_player(async_client, "demo_main")
    b = await create_player(async_client, "other")
    await async_client.post(
        "/matches/results",
        json={
            "match_id": "class-1",
            "participants": [
                {"player_id": a, "outcome": "win", "class_played": "demolitionist"},
                {"player_id": b, "outcome": "loss", "class_played": "buckshot"},
            ],
        },
    )

    response = await async_client.get(
        "/leaderboard", params={"class_filter": "demolitionist"}
    )

    items = response.json()["items"]
    assert [e["player"]["username"] for e in items] == ["demo_main"]
    assert items[0]["damage_per_match"] == 0.0
    assert items[0]["win_rate"] == 1.0


@pytest.mark.asyncio
async def test_negative_offset_returns_422(async_client: AsyncClient):
    response = await async_client.get("/leaderboard", params={"offset": -1})

    assert response.status_code == 422
    assert response.json()["error_type"] == "InvalidRangeError"
