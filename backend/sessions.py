"""In-memory game session registry.

A game session owns one NarrativeManager and at most one combat id in the
shared CombatManager. Nothing is persisted; reset() empties everything.
Route handlers serialise mutations of a session with its `lock`.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from rpg_supreme.combat import CombatManager
from rpg_supreme.models import CombatResult, PlayerCharacter
from rpg_supreme.narrative import NarrativeManager

combat_manager = CombatManager()
_sessions: dict[str, "GameSession"] = {}


class GameSession:
    def __init__(self, player: PlayerCharacter) -> None:
        self.id = str(uuid4())
        self.player = player
        self.narrative = NarrativeManager()
        self.narrative.update_player_context(level=player.level, name=player.name)
        self.combat_id: str | None = None
        self.combat_result: CombatResult | None = None
        self.created_at = datetime.now(timezone.utc)
        self.lock = asyncio.Lock()

    def summary(self) -> dict[str, Any]:
        chapter = self.narrative.state.chapter
        return {
            "id": self.id,
            "player": self.player.model_dump(),
            "created_at": self.created_at.isoformat(),
            "combat_id": self.combat_id,
            "chapter": chapter.model_dump(mode="json") if chapter.template_id else None,
            "phase": self.narrative.phase,
            "tension": self.narrative.tension,
        }

    def apply_combat_result(self, result: CombatResult) -> None:
        """Carry a finished combat back into the player and the story, once."""
        self.combat_result = result
        session = combat_manager.get_combat(self.combat_id) if self.combat_id else None
        if session is not None:
            fighter = next((c for c in session.turn_order if c.is_player), None)
            if fighter is not None:
                self.player.health.current = fighter.current_hp
                self.player.stamina.current = fighter.current_stamina
                self.player.mana.current = fighter.current_mana
        if result.outcome == "victory" and self.narrative.template is not None:
            for _ in result.enemies_defeated:
                self.narrative.register_player_action("defeated_enemy")


def create_session(player: PlayerCharacter) -> GameSession:
    session = GameSession(player)
    _sessions[session.id] = session
    return session


def get_session(session_id: str) -> GameSession | None:
    return _sessions.get(session_id)


def list_sessions() -> list[GameSession]:
    return list(_sessions.values())


def delete_session(session_id: str) -> bool:
    session = _sessions.pop(session_id, None)
    if session is None:
        return False
    if session.combat_id:
        combat_manager.end_combat(session.combat_id)
    return True


def reset() -> None:
    """Drop every session and every combat (tests, dev reloads)."""
    global combat_manager
    _sessions.clear()
    combat_manager = CombatManager()
