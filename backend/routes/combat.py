"""Combat endpoints, nested under a game session.

Player actions run the enemy turns that follow them automatically while
the `auto_enemy_turns` setting is on, so one request usually brings the
fight back to the player's turn (or to its end).
"""

import logging

from fastapi import APIRouter, HTTPException

from backend import config, sessions
from rpg_supreme.models import CombatAction, CombatActionResult, CombatOptions

from .models import CombatActionBody, StartCombatBody
from .sessions import require_session

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_combat_id(session: sessions.GameSession) -> str:
    if not session.combat_id or sessions.combat_manager.get_combat(session.combat_id) is None:
        raise HTTPException(404, "No combat in this session")
    return session.combat_id


def _run_enemy_turns(combat_id: str) -> list[CombatActionResult]:
    cfg = config.get_config()
    if not cfg["auto_enemy_turns"]:
        return []
    results: list[CombatActionResult] = []
    for _ in range(cfg["max_enemy_turns"]):
        combat = sessions.combat_manager.get_combat(combat_id)
        if combat is None or not combat.is_active or combat.phase != "ENEMY_TURN":
            break
        result, _combat = sessions.combat_manager.execute_enemy_turn(combat_id)
        results.append(result)
    return results


def _turn_response(
    session: sessions.GameSession,
    result: CombatActionResult | None,
    enemy_turns: list[CombatActionResult],
) -> dict:
    combat_id = session.combat_id
    combat = sessions.combat_manager.get_combat(combat_id)
    if combat is not None and not combat.is_active and session.combat_result is None:
        outcome = sessions.combat_manager.get_combat_result(combat_id)
        if outcome is not None:
            session.apply_combat_result(outcome)
            logger.info("Combat %s finished: %s", combat_id, outcome.outcome)
    return {
        "result": result,
        "enemy_turns": enemy_turns,
        "state": sessions.combat_manager.get_combat_ui_state(combat_id),
        "combat_result": session.combat_result,
        "narrative_events": session.narrative.pop_events(),
    }


@router.post("/sessions/{session_id}/combat", status_code=201)
async def start_combat(session_id: str, body: StartCombatBody):
    """Start a combat against the given enemy template ids."""
    session = require_session(session_id)
    async with session.lock:
        if session.combat_id:
            current = sessions.combat_manager.get_combat(session.combat_id)
            if current is not None and current.is_active:
                raise HTTPException(409, "Combat already in progress")
            sessions.combat_manager.end_combat(session.combat_id)

        combat = sessions.combat_manager.start_combat(
            session.player, CombatOptions(enemy_ids=body.enemy_ids, is_ambush=body.is_ambush),
        )
        session.combat_id = combat.id
        session.combat_result = None
        return _turn_response(session, None, _run_enemy_turns(combat.id))


@router.get("/sessions/{session_id}/combat")
async def get_combat_state(session_id: str):
    """Current combat as the UI shows it."""
    session = require_session(session_id)
    state = sessions.combat_manager.get_combat_ui_state(_require_combat_id(session))
    if state is None:
        raise HTTPException(404, "No combat in this session")
    return state


@router.post("/sessions/{session_id}/combat/action")
async def player_action(session_id: str, body: CombatActionBody):
    """Resolve the player's action, then any enemy turns that follow."""
    session = require_session(session_id)
    async with session.lock:
        combat_id = _require_combat_id(session)
        action = CombatAction(actor_id=session.player.id, **body.model_dump())
        result, _combat = sessions.combat_manager.execute_player_action(combat_id, action)
        return _turn_response(session, result, _run_enemy_turns(combat_id))


@router.post("/sessions/{session_id}/combat/enemy-turn")
async def enemy_turn(session_id: str):
    """Resolve a single enemy turn (for clients that step enemies manually)."""
    session = require_session(session_id)
    async with session.lock:
        combat_id = _require_combat_id(session)
        result, _combat = sessions.combat_manager.execute_enemy_turn(combat_id)
        return _turn_response(session, result, [])


@router.get("/sessions/{session_id}/combat/result")
async def combat_result(session_id: str):
    """Outcome of the finished combat; null while it is still running."""
    session = require_session(session_id)
    _require_combat_id(session)
    return session.combat_result


@router.delete("/sessions/{session_id}/combat")
async def end_combat(session_id: str):
    """Drop the session's combat, finished or not."""
    session = require_session(session_id)
    async with session.lock:
        combat_id = _require_combat_id(session)
        sessions.combat_manager.end_combat(combat_id)
        session.combat_id = None
        return {"ok": True}
