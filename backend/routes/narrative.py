"""Narrative endpoints, nested under a game session.

Every mutation answers with the domain events it produced (chapter,
phase, tension, thread, complication and hook changes), oldest first.
"""

from fastapi import APIRouter, HTTPException

from backend import sessions
from rpg_supreme.narrative import ALL_CHAPTER_TEMPLATES

from .models import (
    AdvanceThreadBody,
    CompleteChapterBody,
    IntroduceThreadBody,
    NamedSignalBody,
    PhaseProgressBody,
    PhaseTransitionBody,
    PlayerContextBody,
    StartChapterBody,
    TensionBody,
)
from .sessions import require_session

router = APIRouter()


def _with_events(session: sessions.GameSession, **payload) -> dict:
    return {
        **payload,
        "state": session.narrative.state,
        "events": session.narrative.pop_events(),
    }


@router.get("/chapter-templates")
async def list_chapter_templates():
    """Chapter template catalog (summary fields only)."""
    return [
        {
            "id": t.id,
            "type": t.type,
            "name": t.name,
            "description": t.description,
            "weight": t.weight,
            "requirements": t.requirements,
        }
        for t in ALL_CHAPTER_TEMPLATES
    ]


@router.get("/sessions/{session_id}/narrative")
async def get_narrative_state(session_id: str):
    """Current narrative state and template id."""
    narrative = require_session(session_id).narrative
    return {
        "state": narrative.state,
        "template_id": narrative.template.id if narrative.template else None,
    }


# ── Chapters ────────────────────────────────────────────


@router.post("/sessions/{session_id}/narrative/chapter", status_code=201)
async def start_chapter(session_id: str, body: StartChapterBody):
    """Start a new chapter, optionally forcing a template."""
    session = require_session(session_id)
    async with session.lock:
        chapter = session.narrative.start_new_chapter(body.template_id)
        return _with_events(session, chapter=chapter)


@router.post("/sessions/{session_id}/narrative/chapter/complete")
async def complete_chapter(session_id: str, body: CompleteChapterBody):
    """Close the running chapter with one of its template's outcomes."""
    session = require_session(session_id)
    async with session.lock:
        completion = session.narrative.complete_chapter(body.outcome)
        return _with_events(session, completion=completion)


# ── Phases ──────────────────────────────────────────────


@router.post("/sessions/{session_id}/narrative/evaluate")
async def evaluate_progress(session_id: str):
    """Run one pacing pass (complications, tension drift, transitions)."""
    session = require_session(session_id)
    async with session.lock:
        progress = session.narrative.evaluate_progress()
        return _with_events(session, progress=progress)


@router.post("/sessions/{session_id}/narrative/progress")
async def advance_phase_progress(session_id: str, body: PhaseProgressBody):
    """Add to the current phase's progress, then evaluate."""
    session = require_session(session_id)
    async with session.lock:
        session.narrative.advance_phase_progress(body.amount)
        return _with_events(session)


@router.post("/sessions/{session_id}/narrative/phase")
async def force_phase(session_id: str, body: PhaseTransitionBody):
    """Jump straight to a phase."""
    session = require_session(session_id)
    async with session.lock:
        session.narrative.force_phase_transition(body.phase)
        return _with_events(session)


# ── Threads ─────────────────────────────────────────────


@router.post("/sessions/{session_id}/narrative/threads", status_code=201)
async def introduce_thread(session_id: str, body: IntroduceThreadBody):
    """Open a new narrative thread."""
    session = require_session(session_id)
    async with session.lock:
        thread = session.narrative.introduce_thread(**body.model_dump())
        return _with_events(session, thread=thread)


@router.patch("/sessions/{session_id}/narrative/threads/{thread_id}")
async def advance_thread(session_id: str, thread_id: str, body: AdvanceThreadBody):
    """Move a thread to a new status, optionally adding foreshadowing."""
    session = require_session(session_id)
    async with session.lock:
        thread = session.narrative.advance_thread(thread_id, body.status, body.foreshadowing)
        if thread is None:
            raise HTTPException(404, "Thread not found")
        return _with_events(session, thread=thread)


@router.post("/sessions/{session_id}/narrative/threads/{thread_id}/resolve")
async def resolve_thread(session_id: str, thread_id: str):
    """Mark a thread resolved."""
    session = require_session(session_id)
    async with session.lock:
        thread = session.narrative.resolve_thread(thread_id)
        if thread is None:
            raise HTTPException(404, "Thread not found")
        return _with_events(session, thread=thread)


# ── Tension ─────────────────────────────────────────────


@router.post("/sessions/{session_id}/narrative/tension/adjust")
async def adjust_tension(session_id: str, body: TensionBody):
    """Shift tension by `value` (clamped to 0-100)."""
    session = require_session(session_id)
    async with session.lock:
        session.narrative.adjust_tension(body.value, body.reason)
        return _with_events(session)


@router.put("/sessions/{session_id}/narrative/tension")
async def set_tension(session_id: str, body: TensionBody):
    """Set tension to `value` (clamped to 0-100)."""
    session = require_session(session_id)
    async with session.lock:
        session.narrative.set_tension(body.value, body.reason)
        return _with_events(session)


# ── Gameplay signals ────────────────────────────────────


@router.post("/sessions/{session_id}/narrative/actions")
async def register_player_action(session_id: str, body: NamedSignalBody):
    """Record a player action (accepted_quest, completed_quest, defeated_enemy, ...)."""
    session = require_session(session_id)
    async with session.lock:
        session.narrative.register_player_action(body.name)
        return _with_events(session)


@router.post("/sessions/{session_id}/narrative/events")
async def register_event(session_id: str, body: NamedSignalBody):
    """Record a named story event (e.g. hook_resolved)."""
    session = require_session(session_id)
    async with session.lock:
        session.narrative.register_event(body.name)
        return _with_events(session)


@router.post("/sessions/{session_id}/narrative/boss-defeated")
async def register_boss_defeated(session_id: str):
    session = require_session(session_id)
    async with session.lock:
        session.narrative.register_boss_defeated()
        return _with_events(session)


@router.post("/sessions/{session_id}/narrative/main-objective")
async def register_main_objective(session_id: str):
    session = require_session(session_id)
    async with session.lock:
        session.narrative.register_main_objective_complete()
        return _with_events(session)


@router.patch("/sessions/{session_id}/narrative/player-context")
async def update_player_context(session_id: str, body: PlayerContextBody):
    """Update level, location, inventory, name or completed chapters."""
    session = require_session(session_id)
    async with session.lock:
        session.narrative.update_player_context(**body.model_dump())
        return {"ok": True}


# ── Reads for other systems ─────────────────────────────


@router.get("/sessions/{session_id}/narrative/context")
async def get_narrative_context(session_id: str):
    """Structured context for text generation."""
    return require_session(session_id).narrative.generate_narrative_context()


@router.get("/sessions/{session_id}/narrative/context/prompt")
async def get_context_prompt(session_id: str):
    """The context rendered as a ready-to-send prompt."""
    return {"prompt": require_session(session_id).narrative.generate_context_prompt()}


@router.get("/sessions/{session_id}/narrative/modifiers")
async def get_modifiers(session_id: str):
    """Combat scaling, loot modifiers and suggested quests for the current phase."""
    narrative = require_session(session_id).narrative
    return {
        "combat_scaling": narrative.get_combat_scaling(),
        "loot_modifiers": narrative.get_loot_modifiers(),
        "suggested_quests": narrative.get_suggested_quests(),
    }
