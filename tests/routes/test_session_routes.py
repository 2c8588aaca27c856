"""Tests for game session CRUD endpoints and health/settings."""

import asyncio

from backend import sessions


# ── Health and settings ──────────────────────────────────────


async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_settings_roundtrip(client):
    resp = await client.get("/api/settings")
    assert resp.json()["auto_enemy_turns"] is True

    resp = await client.patch("/api/settings", json={"max_enemy_turns": 2, "log_level": "warning"})
    assert resp.status_code == 200
    assert resp.json()["max_enemy_turns"] == 2
    assert resp.json()["log_level"] == "warning"
    assert (await client.get("/api/settings")).json()["max_enemy_turns"] == 2


async def test_settings_validation(client):
    resp = await client.patch("/api/settings", json={"max_enemy_turns": -1})
    assert resp.status_code == 422


# ── Sessions ─────────────────────────────────────────────────


class TestSessions:
    async def test_create_with_chapter(self, client, new_session) -> None:
        data = await new_session()
        assert data["player"]["name"] == "Aria"
        assert data["player"]["health"] == {"current": 100, "maximum": 100}
        assert data["chapter"]["title"] == "El Despertar del Héroe"
        assert data["phase"] == "HOOK"
        assert data["tension"] == 30
        assert data["combat_id"] is None

    async def test_create_without_chapter(self, client, new_session) -> None:
        data = await new_session(start_chapter=False)
        assert data["chapter"] is None
        assert data["tension"] == 0

    async def test_player_context_flows_into_selection(self, client, new_session) -> None:
        data = await new_session(template_id=None, player={"level": 3})
        session = sessions.get_session(data["id"])
        assert session.narrative.player_level == 3
        assert session.narrative.player_name == "Aria"
        assert data["chapter"]["template_id"] != "chapter_tutorial"

    async def test_missing_player_name(self, client) -> None:
        resp = await client.post("/api/sessions", json={"player": {}})
        assert resp.status_code == 422

    async def test_list_get_delete(self, client, new_session) -> None:
        a = await new_session()
        b = await new_session(name="Bran")

        listed = (await client.get("/api/sessions")).json()
        assert {s["id"] for s in listed} == {a["id"], b["id"]}

        resp = await client.get(f"/api/sessions/{b['id']}")
        assert resp.json()["player"]["name"] == "Bran"

        resp = await client.delete(f"/api/sessions/{a['id']}")
        assert resp.json() == {"ok": True}
        assert (await client.get(f"/api/sessions/{a['id']}")).status_code == 404

    async def test_unknown_session(self, client) -> None:
        resp = await client.get("/api/sessions/nope")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Session not found"
        assert (await client.delete("/api/sessions/nope")).status_code == 404


async def test_concurrent_mutations_are_serialised(client, new_session):
    data = await new_session()
    url = f"/api/sessions/{data['id']}/narrative/tension/adjust"
    responses = await asyncio.gather(*(client.post(url, json={"value": 10}) for _ in range(5)))
    assert all(r.status_code == 200 for r in responses)
    assert sessions.get_session(data["id"]).narrative.tension == 80
