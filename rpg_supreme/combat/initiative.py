"""Initiative: turn order and next-turn lookup.

Roll = 1d20 + dexterity modifier + bonuses, floored at 1. Bonuses:
  +5  enemies in an ambush
  +5  an "alert" status effect
  -4  a "slow" status effect
  +floor((luck - 10) / 5)

Order is total descending, then dexterity descending, then random.
"""

from __future__ import annotations

import logging
import random

from pydantic import BaseModel

from rpg_supreme.models import Combatant

logger = logging.getLogger(__name__)


class InitiativeRoll(BaseModel):
    combatant_id: str
    base_roll: int
    dex_modifier: int
    bonuses: int
    total: int


class SurpriseCheck(BaseModel):
    surprised: bool
    attacker_bonus: int


def _has_effect(combatant: Combatant, name: str) -> bool:
    return any(e.name == name for e in combatant.status_effects)


def roll_initiative(combatant: Combatant, is_ambush: bool = False) -> InitiativeRoll:
    base_roll = random.randint(1, 20)
    dex_modifier = (combatant.attributes.dexterity - 10) // 2

    bonuses = 0
    if is_ambush and not combatant.is_player:
        bonuses += 5
    if _has_effect(combatant, "alert"):
        bonuses += 5
    if _has_effect(combatant, "slow"):
        bonuses -= 4
    bonuses += (combatant.attributes.luck - 10) // 5

    total = max(1, base_roll + dex_modifier + bonuses)
    return InitiativeRoll(
        combatant_id=combatant.id,
        base_roll=base_roll,
        dex_modifier=dex_modifier,
        bonuses=bonuses,
        total=total,
    )


def calculate_initiative(combatants: list[Combatant], is_ambush: bool = False) -> list[Combatant]:
    """Roll for everyone and return the combatants in turn order.

    Each combatant's `initiative` is set to its rolled total.
    """
    rolled: list[tuple[Combatant, InitiativeRoll]] = []
    for combatant in combatants:
        roll = roll_initiative(combatant, is_ambush)
        combatant.initiative = roll.total
        rolled.append((combatant, roll))
        logger.debug(
            "initiative %s: d20=%d dex=%+d bonus=%+d total=%d",
            combatant.name, roll.base_roll, roll.dex_modifier, roll.bonuses, roll.total,
        )

    rolled.sort(key=lambda r: (-r[1].total, -r[0].attributes.dexterity, random.random()))
    return [c for c, _ in rolled]


def check_surprise(attacker: Combatant, defender: Combatant) -> SurpriseCheck:
    """Stealth (dexterity) against perception (wisdom); surprise needs a margin over 5."""
    stealth = random.randint(1, 20) + (attacker.attributes.dexterity - 10) // 2
    perception = random.randint(1, 20) + (defender.attributes.wisdom - 10) // 2
    surprised = stealth > perception + 5
    return SurpriseCheck(surprised=surprised, attacker_bonus=10 if surprised else 0)


def format_turn_order(turn_order: list[Combatant], current_index: int) -> str:
    parts = []
    for i, c in enumerate(turn_order):
        marker = "►" if i == current_index else " "
        kind = "👤" if c.is_player else "👾"
        parts.append(f"{marker}{kind} {c.name} ({c.initiative})")
    return " → ".join(parts)


def get_next_turn(turn_order: list[Combatant], current_index: int) -> tuple[int, bool]:
    """Find the next combatant able to act.

    Returns (next_index, is_new_round). next_index is -1 when nobody can act;
    stunned ("cc") combatants don't count towards that check.
    """
    able = [
        c for c in turn_order
        if c.current_hp > 0 and c.can_act and not any(e.type == "cc" for e in c.status_effects)
    ]
    if not able:
        return -1, False

    next_index = current_index + 1
    is_new_round = False
    iterations = 0
    while iterations < len(turn_order) + 1:
        if next_index >= len(turn_order):
            next_index = 0
            is_new_round = True

        candidate = turn_order[next_index]
        if candidate.current_hp > 0 and candidate.can_act:
            break

        next_index += 1
        iterations += 1
        if next_index == current_index:
            break

    return next_index, is_new_round
