"""Game error hierarchy.

Precondition violations raised by the combat and narrative cores. Each error
carries the HTTP-equivalent status the route layer should answer with; soft
content misses (unknown enemy, item, skill or loot table) never raise.
"""

from __future__ import annotations

from typing import Any


class GameError(Exception):
    """Base class for caller errors raised by the game core."""

    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"error": type(self).__name__, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data


class CombatError(GameError):
    """Wrong turn, missing actor, or other combat precondition failure."""


class CombatNotFoundError(CombatError):
    status_code = 404

    def __init__(self, combat_id: str) -> None:
        super().__init__("Combate no encontrado o inactivo", {"combat_id": combat_id})


class NarrativeError(GameError):
    """No active chapter, unsupported outcome, or empty template catalog."""
