from pathlib import Path

import httpx
import pytest

from backend.app import create_app

TEST_DATA_DIR = Path("data-tests")


@pytest.fixture
async def client():
    transport = httpx.ASGITransport(app=create_app(TEST_DATA_DIR))
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def new_session(client):
    """Factory: create a game session and return its summary."""

    async def _create(name="Aria", template_id="chapter_tutorial", **body):
        player = {"name": name, **body.pop("player", {})}
        payload = {"player": player, "template_id": template_id, **body}
        resp = await client.post("/api/sessions", json=payload)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create
