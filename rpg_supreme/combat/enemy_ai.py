"""Enemy AI: picks an intention for an enemy and turns it into an action.

Decision cascade (order matters):
  1. Low HP (hp / max_hp <= low_hp_threshold):
       coward    → roll flee_chance   → flee
       defensive → roll defend_chance → defend
       berserker → always             → furious attack
  2. support with an ally under 50% HP → heal that ally
  3. roll skill_use_chance            → random configured skill
  4. plain attack on the player

Only coward/defensive/berserker consume the low-HP branch; every other
profile falls through to steps 2-4 whatever its HP.
"""

from __future__ import annotations

import random
from typing import Literal

from pydantic import BaseModel, Field

from rpg_supreme.models import Combatant, CombatAction, EnemyIntention

BehaviorType = Literal["aggressive", "defensive", "tactical", "coward", "berserker", "support"]


class AIBehavior(BaseModel):
    type: BehaviorType
    low_hp_threshold: float
    flee_chance: float = 0.0
    defend_chance: float = 0.0
    skills: list[str] = Field(default_factory=list)
    skill_use_chance: float = 0.0


BEHAVIORS: dict[str, AIBehavior] = {
    "enemy_giant_rat": AIBehavior(
        type="coward", low_hp_threshold=0.3, flee_chance=0.4, defend_chance=0.1,
    ),
    "enemy_wolf": AIBehavior(
        type="aggressive", low_hp_threshold=0.2, flee_chance=0.1, defend_chance=0.05,
        skills=["skill_bite", "skill_howl"], skill_use_chance=0.3,
    ),
    "enemy_bandit": AIBehavior(
        type="tactical", low_hp_threshold=0.25, flee_chance=0.3, defend_chance=0.2,
        skills=["skill_dirty_trick", "skill_backstab"], skill_use_chance=0.4,
    ),
    "enemy_goblin": AIBehavior(
        type="coward", low_hp_threshold=0.4, flee_chance=0.5, defend_chance=0.15,
        skills=["skill_throw_rock"], skill_use_chance=0.25,
    ),
    "enemy_skeleton": AIBehavior(
        type="aggressive", low_hp_threshold=0.1, flee_chance=0.0, defend_chance=0.1,
        skills=["skill_bone_strike"], skill_use_chance=0.2,
    ),
    "default": AIBehavior(type="aggressive", low_hp_threshold=0.25),
}

SKILL_DESCRIPTIONS: dict[str, str] = {
    "skill_bite": "Preparando mordisco...",
    "skill_howl": "Preparando aullido...",
    "skill_dirty_trick": "Planeando truco sucio...",
    "skill_backstab": "Buscando punto débil...",
    "skill_throw_rock": "Recogiendo piedra...",
    "skill_bone_strike": "Levantando hueso...",
    "skill_heal": "Canalizando curación...",
    "skill_buff": "Preparando mejora...",
}


def get_behavior(template_id: str | None) -> AIBehavior:
    return BEHAVIORS.get(template_id or "default", BEHAVIORS["default"])


def get_skill_description(skill_id: str) -> str:
    return SKILL_DESCRIPTIONS.get(skill_id, "Preparando habilidad...")


def determine_intention(
    enemy: Combatant,
    player: Combatant,
    allies: list[Combatant] | None = None,
) -> EnemyIntention:
    """Decide what `enemy` will do next. `allies` excludes the enemy itself."""
    allies = allies or []
    behavior = get_behavior(enemy.template_id)
    hp_percent = enemy.current_hp / enemy.max_hp if enemy.max_hp else 0.0

    if hp_percent <= behavior.low_hp_threshold:
        if behavior.type == "coward" and random.random() < behavior.flee_chance:
            return EnemyIntention(type="flee", description="Preparándose para huir...", icon="🏃")
        if behavior.type == "defensive" and random.random() < behavior.defend_chance:
            return EnemyIntention(type="defend", description="Tomando postura defensiva", icon="🛡️")
        if behavior.type == "berserker":
            return EnemyIntention(
                type="attack", target_id=player.id,
                description="¡Atacará con furia!", icon="💢",
            )

    if behavior.type == "support":
        wounded = next((a for a in allies if a.max_hp and a.current_hp / a.max_hp < 0.5), None)
        if wounded is not None:
            return EnemyIntention(
                type="heal", target_id=wounded.id,
                description="Preparando curación...", icon="💚",
            )

    if behavior.skills and random.random() < behavior.skill_use_chance:
        skill_id = random.choice(behavior.skills)
        return EnemyIntention(
            type="skill", target_id=player.id, skill_id=skill_id,
            description=get_skill_description(skill_id), icon="✨",
        )

    return EnemyIntention(
        type="attack", target_id=player.id,
        description="Preparando ataque...", icon="⚔️",
    )


def intention_to_action(enemy: Combatant, intention: EnemyIntention) -> CombatAction:
    kind = intention.type
    if kind == "defend":
        return CombatAction(type="DEFEND", actor_id=enemy.id)
    if kind == "flee":
        return CombatAction(type="FLEE", actor_id=enemy.id)
    if kind == "skill":
        return CombatAction(
            type="SKILL", actor_id=enemy.id,
            target_id=intention.target_id, skill_id=intention.skill_id,
        )
    if kind in ("heal", "buff"):
        # Neither skill is in the combat skill table; both resolve as unrecognised.
        return CombatAction(
            type="SKILL", actor_id=enemy.id,
            target_id=intention.target_id, skill_id=f"skill_{kind}",
        )
    return CombatAction(type="ATTACK", actor_id=enemy.id, target_id=intention.target_id)
