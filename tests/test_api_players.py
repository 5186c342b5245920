# tests/test_api_players.py

"""Tests for the player API endpoints."""

import pytest
from httpx import AsyncClient

# =============================================================================
# Helper Functions
# =============================================================================


async def create_player(client: AsyncClient, username: str, **extra) -> dict:
    """Helper to register a player and return the response body."""
    response = await client.post("/players/", json={"username": username, **extra})
    assert response.status_code == 201, response.text
    return response.json()


async def submit(client: AsyncClient, match_id: str, winner: int, loser: int, cls: str) -> None:
    response = await client.post(
        "/matches/results",
        json={
            "match_id": match_id,
            "participants": [
                {"player_id": winner, "outcome": "win", "class_played": cls, "damage_dealt": 30},
                {"player_id": loser, "outcome": "loss"},
            ],
        },
    )
    assert response.status_code == 201, response.text


# =============================================================================
# Create / read / delete
# =============================================================================


@pytest.mark.asyncio
async def test_create_player(async_client: AsyncClient):
    """Test registering a player via the API."""
    # 1. ARRANGE
    payload = {"username": "api_player", "email": "api@example.com", "password_hash": "h"}

    # 2. ACT
    response = await async_client.post("/players/", json=payload)

    # 3. ASSERT
    assert response.status_code == 201
    data = response.json()
    assert data["player"]["username"] == "api_player"
    assert data["player"]["email"] == "api@example.com"
    assert "password_hash" not in data["player"]
    assert data["stats"]["rating"] == 1000
    assert data["stats"]["version"] == 1
    assert data["win_rate"] == 0.0


@pytest.mark.asyncio
async def test_create_anonymous_player(async_client: AsyncClient):
    response = await async_client.post("/players/anonymous")

    assert response.status_code == 201
    data = response.json()
    assert data["player"]["is_anonymous"] is True
    assert data["player"]["username"] is None


@pytest.mark.asyncio
async def test_create_anonymous_player_accepts_empty_body(async_client: AsyncClient):
    response = await async_client.post("/players/anonymous", json={})

    assert response.status_code == 201
    assert response.json()["player"]["is_anonymous"] is True


@pytest.mark.parametrize(
    "payload",
    [{"username": "sneaky"}, {"email": "anon@example.com"}, {"password_hash": "h"}],
)
@pytest.mark.asyncio
async def test_create_anonymous_player_rejects_identity_fields(
    async_client: AsyncClient, payload: dict
):
    """Test that an anonymous player cannot be given a username, email or password."""
    response = await async_client.post("/players/anonymous", json=payload)

    assert response.status_code == 422
    board = (
        await async_client.get("/leaderboard", params={"include_anonymous": True})
    ).json()
    assert board["total"] == 0


@pytest.mark.asyncio
async def test_read_player(async_client: AsyncClient):
    created = await create_player(async_client, "reader")
    player_id = created["player"]["id"]

    response = await async_client.get(f"/players/{player_id}")

    assert response.status_code == 200
    assert response.json()["player"]["username"] == "reader"
    assert response.json()["stats"]["player_id"] == player_id


@pytest.mark.asyncio
async def test_delete_player_is_soft(async_client: AsyncClient):
    """Test that DELETE deactivates the player instead of removing it."""
    created = await create_player(async_client, "leaver")
    player_id = created["player"]["id"]

    response = await async_client.delete(f"/players/{player_id}")
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    # Still readable by ID, hidden from the leaderboard
    assert (await async_client.get(f"/players/{player_id}")).status_code == 200
    board = (await async_client.get("/leaderboard")).json()
    assert all(e["player"]["id"] != player_id for e in board["items"])


# =============================================================================
# Search and suggestions
# =============================================================================


@pytest.mark.asyncio
async def test_search_players(async_client: AsyncClient):
    for name in ("sniper_one", "sniper_two", "tank"):
        await create_player(async_client, name)

    response = await async_client.get("/players/search", params={"username": "SNIPER"})

    assert response.status_code == 200
    names = sorted(p["player"]["username"] for p in response.json())
    assert names == ["sniper_one", "sniper_two"]


@pytest.mark.asyncio
async def test_search_rating_range(async_client: AsyncClient):
    created = await create_player(async_client, "climber")
    await async_client.post(
        f"/players/{created['player']['id']}/corrections",
        json={"rating": 1700, "reason": "placement"},
    )
    await create_player(async_client, "stayer")

    response = await async_client.get(
        "/players/search", params={"min_rating": 1500, "max_rating": 2000}
    )

    assert [p["player"]["username"] for p in response.json()] == ["climber"]


@pytest.mark.asyncio
async def test_username_suggestions(async_client: AsyncClient):
    for name in ("mira", "miranda", "milo", "zane"):
        await create_player(async_client, name)

    response = await async_client.get("/players/suggestions", params={"prefix": "mi"})

    assert response.status_code == 200
    assert response.json() == ["milo", "mira", "miranda"]


@pytest.mark.asyncio
async def test_suggestions_require_prefix(async_client: AsyncClient):
    response = await async_client.get("/players/suggestions")
    assert response.status_code == 422


# =============================================================================
# Corrections
# =============================================================================


@pytest.mark.asyncio
async def test_admin_correction(async_client: AsyncClient):
    created = await create_player(async_client, "corrected")
    player_id = created["player"]["id"]

    response = await async_client.post(
        f"/players/{player_id}/corrections",
        json={"rating": 9000, "reason": "data repair"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["rating"] == 5000
    assert data["highest_rating"] == 5000
    assert data["version"] == 2


@pytest.mark.asyncio
async def test_correction_requires_reason(async_client: AsyncClient):
    created = await create_player(async_client, "no_reason")
    response = await async_client.post(
        f"/players/{created['player']['id']}/corrections", json={"rating": 1200}
    )
    assert response.status_code == 422


# =============================================================================
# Match history and per-class stats
# =============================================================================


@pytest.mark.asyncio
async def test_read_match_history(async_client: AsyncClient):
    """Test that a player's matches are paged newest first."""
    # 1. ARRANGE
    a = (await create_player(async_client, "historian"))["player"]["id"]
    b = (await create_player(async_client, "opponent"))["player"]["id"]
    await submit(async_client, "api-h-1", a, b, "buckshot")
    await submit(async_client, "api-h-2", b, a, "gunslinger")
    await submit(async_client, "api-h-3", a, b, "gunslinger")

    # 2. ACT
    response = await async_client.get(f"/players/{a}/matches", params={"limit": 2})

    # 3. ASSERT
    assert response.status_code == 200
    data = response.json()
    assert [m["match_id"] for m in data["items"]] == ["api-h-3", "api-h-2"]
    assert data["total"] == 3
    assert data["limit"] == 2
    assert data["has_more"] is True
    assert {p["player_id"] for p in data["items"][0]["participants"]} == {a, b}


@pytest.mark.asyncio
async def test_read_match_history_class_filter(async_client: AsyncClient):
    a = (await create_player(async_client, "filtered"))["player"]["id"]
    b = (await create_player(async_client, "other_side"))["player"]["id"]
    await submit(async_client, "api-f-1", a, b, "buckshot")
    await submit(async_client, "api-f-2", a, b, "demolitionist")

    response = await async_client.get(
        f"/players/{a}/matches", params={"class_filter": "demolitionist"}
    )

    assert [m["match_id"] for m in response.json()["items"]] == ["api-f-2"]


@pytest.mark.asyncio
async def test_match_history_for_missing_player_returns_404(async_client: AsyncClient):
    response = await async_client.get("/players/999999/matches")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_read_class_stats(async_client: AsyncClient):
    a = (await create_player(async_client, "class_act"))["player"]["id"]
    b = (await create_player(async_client, "foil"))["player"]["id"]
    await submit(async_client, "api-k-1", a, b, "gunslinger")
    await submit(async_client, "api-k-2", a, b, "gunslinger")
    await submit(async_client, "api-k-3", a, b, "buckshot")

    response = await async_client.get(f"/players/{a}/classes")

    assert response.status_code == 200
    data = response.json()
    assert [e["class_type"] for e in data] == ["gunslinger", "buckshot"]
    assert data[0]["matches_played"] == 2
    assert data[0]["wins"] == 2
    assert data[0]["win_rate"] == 1.0
    assert data[0]["total_damage_dealt"] == 60
    assert data[0]["damage_per_match"] == 30.0

    # The raw per-class totals also ride along on the player read
    stats = (await async_client.get(f"/players/{a}")).json()["stats"]
    assert stats["class_stats"]["buckshot"]["matches_played"] == 1
