import csv
from datetime import datetime, timezone
from io import StringIO

import pytest
from httpx import ASGITransport, AsyncClient

from volleyuttak.api import create_app
from volleyuttak.config import Settings
from volleyuttak.ingest import FeedResult
from volleyuttak.ingest.sheets import SOURCE_FALLBACK, SOURCE_SHEETS
from volleyuttak.models import Player
from volleyuttak.persistence import MemoryStorage


PLAYERS = (
    Player(name="Anna Johansen", gender="kvinne / female", desired_positions="Libero", registration_number="3", email="anna@example.com", row_number=2),
    Player(name="Bjørn Olsen", gender="mann / male", desired_positions="Midt", registration_number="1", row_number=3),
    Player(name="Cecilie Hansen", gender="kvinne / female", desired_positions="Outside hitter", registration_number="2", row_number=4),
)


class Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class CountingFeed:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> FeedResult:
        self.calls += 1
        return FeedResult(players=PLAYERS, source=SOURCE_SHEETS, fetched_at=datetime.now(timezone.utc))


def _settings(**overrides) -> Settings:
    values = {"session_secret": "test-secret", "revalidation_secret": "s3cret"}
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def feed() -> CountingFeed:
    return CountingFeed()


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
async def client(feed: CountingFeed, clock: Clock):
    app = create_app(_settings(), feed_loader=feed, storage=MemoryStorage(), clock=clock)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        async_client.app = app
        yield async_client


async def _login(client: AsyncClient, name: str = "Coach") -> None:
    resp = await client.post("/login", data={"name": name})
    assert resp.status_code == 303
    assert resp.headers["location"] == "/dashboard"


@pytest.mark.anyio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.anyio
async def test_anonymous_requests_are_sent_to_login(client: AsyncClient):
    resp = await client.get("/")
    assert resp.headers["location"] == "/login"
    for path in ("/dashboard", "/uttak", "/spiller-info"):
        resp = await client.get(path)
        assert resp.status_code == 303
        assert resp.headers["location"] == "/login"

    resp = await client.get("/api/selection")
    assert resp.status_code == 401

    resp = await client.get("/login")
    assert resp.status_code == 200
    assert "Log in" in resp.text


@pytest.mark.anyio
async def test_login_redirects_away_from_login(client: AsyncClient):
    resp = await client.post("/login", data={"name": "  "})
    assert resp.status_code == 401

    await _login(client)
    resp = await client.get("/login")
    assert resp.status_code == 303
    assert resp.headers["location"] == "/dashboard"
    resp = await client.get("/")
    assert resp.headers["location"] == "/dashboard"

    resp = await client.post("/logout")
    assert resp.headers["location"] == "/login"
    resp = await client.get("/api/selection")
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_access_code_is_checked(feed: CountingFeed):
    app = create_app(_settings(access_code="volley"), feed_loader=feed, storage=MemoryStorage())
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        resp = await client.post("/login", data={"name": "Coach", "access_code": "wrong"})
        assert resp.status_code == 401
        assert "Wrong access code" in resp.text

        resp = await client.post("/login", data={"name": "Coach", "access_code": "volley"})
        assert resp.status_code == 303


@pytest.mark.anyio
async def test_players_endpoint(client: AsyncClient):
    resp = await client.get("/api/players")
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_registrations"] == 3
    assert body["source"] == SOURCE_SHEETS
    assert [item["name"] for item in body["players"]] == [player.name for player in PLAYERS]
    assert body["detailed_players"][0]["email"] == "anna@example.com"


@pytest.mark.anyio
async def test_filter_endpoint(client: AsyncClient):
    resp = await client.get("/api/players/filter", params={"gender": "female", "search": "cil"})
    body = resp.json()
    assert [player["name"] for player in body["players"]] == ["Cecilie Hansen"]
    assert body["active_filters"] == {"gender": "female"}


@pytest.mark.anyio
async def test_revalidate_requires_secret_and_reloads_feed(client: AsyncClient, feed: CountingFeed):
    await client.get("/api/players")
    await client.get("/api/players")
    assert feed.calls == 1

    resp = await client.post("/api/revalidate-dashboard")
    assert resp.status_code == 401
    resp = await client.post("/api/revalidate-dashboard", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401

    resp = await client.post("/api/revalidate-dashboard", headers={"Authorization": "Bearer s3cret"})
    assert resp.status_code == 200
    assert resp.json()["message"] == "Dashboard revalidated successfully"

    await client.get("/api/players")
    assert feed.calls == 2


@pytest.mark.anyio
async def test_logged_in_refresh_pushes_notification(client: AsyncClient):
    await _login(client)
    resp = await client.post("/api/revalidate-dashboard")
    assert resp.status_code == 200

    resp = await client.get("/api/selection")
    assert resp.json()["notifications"][-1]["severity"] == "success"


@pytest.mark.anyio
async def test_selection_operations(client: AsyncClient):
    await _login(client)

    resp = await client.post("/api/selection/assign", json={"name": "Bjørn Olsen", "position": "Midt"})
    assert resp.status_code == 200
    assert resp.json()["selection"]["Midt"] == ["Bjørn Olsen"]

    resp = await client.post(
        "/api/selection/move",
        json={"name": "Bjørn Olsen", "from_position": "Midt", "to_position": "Dia"},
    )
    assert resp.json()["selection"]["Dia"] == ["Bjørn Olsen"]
    assert resp.json()["changed"] is True

    resp = await client.post("/api/potential/add", json={"name": "Bjørn Olsen"})
    body = resp.json()
    assert body["action"] == "move_to_potential_from_selection"
    assert body["potential"]["Midt"] == ["Bjørn Olsen"]
    assert body["selection"]["Dia"] == []

    resp = await client.post("/api/potential/add", json={"name": "Cecilie Hansen"})
    assert resp.json()["potential"]["Kant"] == ["Cecilie Hansen"]

    resp = await client.post("/api/potential/move", json={"name": "Cecilie Hansen", "bucket": "Ukjent"})
    assert resp.json()["potential"]["Ukjent"] == ["Cecilie Hansen"]

    resp = await client.post("/api/potential/remove", json={"name": "Cecilie Hansen"})
    assert resp.json()["potential"]["Ukjent"] == []

    resp = await client.post("/api/selection/unassign", json={"name": "Bjørn Olsen", "position": "Dia"})
    assert resp.json()["changed"] is False


@pytest.mark.anyio
async def test_invalid_position_is_rejected(client: AsyncClient):
    await _login(client)
    resp = await client.post("/api/selection/assign", json={"name": "Anna Johansen", "position": "Keeper"})
    assert resp.status_code == 422


@pytest.mark.anyio
async def test_selection_is_per_user_and_persisted(client: AsyncClient):
    await _login(client, "Coach")
    await client.post("/api/selection/assign", json={"name": "Anna Johansen", "position": "Libero"})

    await client.post("/logout")
    await _login(client, "Assistant")
    resp = await client.get("/api/selection")
    assert resp.json()["selection"]["Libero"] == []

    client.app.state.sessions.discard("Coach")
    await client.post("/logout")
    await _login(client, "Coach")
    resp = await client.get("/api/selection")
    assert resp.json()["selection"]["Libero"] == ["Anna Johansen"]


@pytest.mark.anyio
async def test_drag_endpoints(client: AsyncClient):
    await _login(client)

    resp = await client.post("/api/drag/start", json={"source_id": "available-Anna Johansen"})
    assert resp.json() == {"dragging": True}

    resp = await client.post(
        "/api/drag/end",
        json={"source_id": "available-Anna Johansen", "target_id": "position-Kant"},
    )
    body = resp.json()
    assert body["action"] == "assign_to_position"
    assert body["selection"]["Kant"] == ["Anna Johansen"]

    resp = await client.post(
        "/api/drag/end",
        json={"source_id": "player-Kant-Anna Johansen", "target_id": "potential-drop"},
    )
    assert resp.json()["potential"]["Libero"] == ["Anna Johansen"]

    resp = await client.post("/api/drag/end", json={"source_id": "potential-Anna Johansen", "target_id": None})
    body = resp.json()
    assert body["action"] is None
    assert body["changed"] is False


@pytest.mark.anyio
async def test_view_applies_debounced_search(client: AsyncClient, clock: Clock):
    await _login(client)
    await client.post("/api/selection/assign", json={"name": "Anna Johansen", "position": "Libero"})

    resp = await client.put("/api/search", json={"term": "olsen"})
    assert resp.json()["pending"] is True

    resp = await client.get("/api/view")
    body = resp.json()
    assert [player["name"] for player in body["available"]] == ["Bjørn Olsen", "Cecilie Hansen"]
    assert body["search_pending"] is True

    clock.now += 1.0
    resp = await client.get("/api/view")
    body = resp.json()
    assert [player["name"] for player in body["available"]] == ["Bjørn Olsen"]
    assert body["selection"]["Libero"] == ["Anna Johansen"]
    assert body["stats"] == {"total_registrations": 3, "selected": 1, "available": 1, "potential": 0}

    resp = await client.get("/api/view", params={"gender": "female"})
    assert resp.json()["available"] == []
    assert resp.json()["active_filters"] == {"gender": "female"}


@pytest.mark.anyio
async def test_notifications_can_be_dismissed(client: AsyncClient, clock: Clock):
    await _login(client)
    resp = await client.post("/api/selection/assign", json={"name": "Anna Johansen", "position": "Libero"})
    [notification] = resp.json()["notifications"]
    assert notification["message"] == "Anna Johansen added as Libero"

    resp = await client.delete(f"/api/notifications/{notification['id']}")
    assert resp.status_code == 200
    resp = await client.delete(f"/api/notifications/{notification['id']}")
    assert resp.status_code == 404

    await client.post("/api/selection/assign", json={"name": "Bjørn Olsen", "position": "Midt"})
    clock.now += 3.0
    resp = await client.get("/api/selection")
    assert resp.json()["notifications"] == []


@pytest.mark.anyio
async def test_export_csv(client: AsyncClient):
    await _login(client)
    await client.post("/api/selection/assign", json={"name": "Anna Johansen", "position": "Libero"})
    await client.post("/api/selection/assign", json={"name": "Bjørn Olsen", "position": "Midt"})

    resp = await client.get("/api/export.csv")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    rows = list(csv.reader(StringIO(resp.text)))
    assert rows[0] == ["Name", "Email", "Played last year"]
    assert [row[0] for row in rows[1:]] == ["Bjørn Olsen", "Anna Johansen"]
    assert rows[2][1] == "anna@example.com"

    resp = await client.get("/api/export.csv", params={"f_position": "Libero"})
    rows = list(csv.reader(StringIO(resp.text)))
    assert [row[0] for row in rows[1:]] == ["Anna Johansen"]

    resp = await client.get("/api/export.csv", params={"scope": "all"})
    assert len(list(csv.reader(StringIO(resp.text)))) == 4

    resp = await client.get("/api/export.csv", params={"scope": "bogus"})
    assert resp.status_code == 400


@pytest.mark.anyio
async def test_pages_render(client: AsyncClient):
    await _login(client)
    await client.post("/api/selection/assign", json={"name": "Anna Johansen", "position": "Libero"})

    resp = await client.get("/dashboard", params={"gender": "male"})
    assert resp.status_code == 200
    assert "Available players" in resp.text
    assert 'data-drag-id="available-Bjørn Olsen"' in resp.text
    assert 'data-drag-id="available-Cecilie Hansen"' not in resp.text
    assert 'data-drop-id="potential-pos-Ukjent"' in resp.text

    resp = await client.get("/uttak")
    assert resp.status_code == 200
    assert "Anna Johansen" in resp.text
    assert "/api/export.csv" in resp.text

    resp = await client.get("/spiller-info", params={"f_name": "cecilie"})
    assert resp.status_code == 200
    assert "Cecilie Hansen" in resp.text
    assert "Bjørn Olsen" not in resp.text


@pytest.mark.anyio
async def test_failed_refresh_shows_error_banner_once(client: AsyncClient):
    await _login(client)
    resp = await client.get("/dashboard", params={"refresh": "failed", "search": "cil"})
    assert resp.status_code == 303
    assert resp.headers["location"] == "/dashboard?search=cil"

    await client.get("/dashboard")
    resp = await client.get("/dashboard")
    assert resp.text.count("Could not refresh the dashboard") == 1


@pytest.mark.anyio
async def test_fetch_error_fallback_shows_error_on_player_info(clock: Clock):
    def broken_feed() -> FeedResult:
        return FeedResult(
            players=PLAYERS,
            source=SOURCE_FALLBACK,
            fetched_at=datetime.now(timezone.utc),
            message="Could not fetch from Google Sheets. Showing sample data.",
            error="quota exceeded",
        )

    app = create_app(_settings(), feed_loader=broken_feed, storage=MemoryStorage(), clock=clock)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as async_client:
        await _login(async_client)
        resp = await async_client.get("/api/players")
        assert resp.json()["source"] == "fallback"
        assert resp.json()["error"] == "quota exceeded"

        resp = await async_client.get("/spiller-info")
        assert "Could not fetch from Google Sheets" in resp.text
