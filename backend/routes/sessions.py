"""Game session CRUD endpoints."""

import logging
from uuid import uuid4

from fastapi import APIRouter, HTTPException

from backend import sessions
from rpg_supreme.models import PlayerCharacter

from .models import CreateSession

logger = logging.getLogger(__name__)

router = APIRouter()


def require_session(session_id: str) -> sessions.GameSession:
    session = sessions.get_session(session_id)
    if session is None:
        raise HTTPException(404, "Session not found")
    return session


@router.post("/sessions", status_code=201)
async def create_session(body: CreateSession):
    """Create a game session and, by default, open its first chapter."""
    player = PlayerCharacter(id=str(uuid4()), **body.player.model_dump())
    session = sessions.create_session(player)
    session.narrative.update_player_context(
        completed_chapters=body.completed_chapters,
        location=body.location,
        inventory=body.inventory,
    )
    if body.start_chapter:
        session.narrative.start_new_chapter(body.template_id)
        session.narrative.pop_events()
    logger.info("Session %s created for %s", session.id, player.name)
    return session.summary()


@router.get("/sessions")
async def list_sessions():
    """List all game sessions."""
    return [s.summary() for s in sessions.list_sessions()]


@router.get("/sessions/{session_id}")
async def get_session(session_id: str):
    """Get a single game session."""
    return require_session(session_id).summary()


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
    """Delete a session and end its combat, if any."""
    if not sessions.delete_session(session_id):
        raise HTTPException(404, "Session not found")
    return {"ok": True}
