"""Core combat and item models.

The combat engine, enemy AI and loot engine operate on these types.
Pydantic is used for validation and serialisation at every data boundary;
the narrative types live in rpg_supreme.narrative.models.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field

AttributeName = Literal[
    "strength",
    "dexterity",
    "constitution",
    "intelligence",
    "wisdom",
    "charisma",
    "luck",
]

CombatPhase = Literal[
    "INITIATIVE",
    "PLAYER_TURN",
    "ENEMY_TURN",
    "VICTORY",
    "DEFEAT",
    "FLED",
]

CombatActionType = Literal["ATTACK", "DEFEND", "SKILL", "ITEM", "FLEE", "WAIT"]

StatusEffectType = Literal["buff", "debuff", "dot", "hot", "cc"]

IntentionType = Literal["attack", "defend", "skill", "flee", "heal", "buff"]

CombatOutcome = Literal["victory", "defeat", "fled"]

ItemType = Literal["weapon", "armor", "consumable", "material", "quest"]

Rarity = Literal["COMMON", "UNCOMMON", "RARE", "EPIC", "LEGENDARY"]


def _new_id() -> str:
    return str(uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Attributes(BaseModel):
    """The seven core attributes; 10 is the human baseline."""

    strength: int = 10
    dexterity: int = 10
    constitution: int = 10
    intelligence: int = 10
    wisdom: int = 10
    charisma: int = 10
    luck: int = 10


class ResourcePool(BaseModel):
    current: int
    maximum: int


class PlayerCharacter(BaseModel):
    """The character record the combat engine snapshots into a combatant."""

    id: str
    name: str
    level: int = 1
    health: ResourcePool
    stamina: ResourcePool
    mana: ResourcePool
    attributes: Attributes = Field(default_factory=Attributes)


class StatusEffect(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    type: StatusEffectType
    duration: int  # rounds left; removed when it reaches 0
    magnitude: int = 0
    affected_stat: AttributeName | None = None
    icon: str | None = None


class EnemyIntention(BaseModel):
    """What an enemy plans to do on its next turn, shown to the player."""

    type: IntentionType
    target_id: str | None = None
    skill_id: str | None = None
    description: str
    icon: str


class Combatant(BaseModel):
    """A participant snapshot inside one combat session."""

    id: str
    name: str
    is_player: bool
    template_id: str | None = None  # enemies only
    initiative: int = 0
    current_hp: int
    max_hp: int
    current_stamina: int
    max_stamina: int
    current_mana: int
    max_mana: int
    attributes: Attributes = Field(default_factory=Attributes)
    level: int = 1
    status_effects: list[StatusEffect] = Field(default_factory=list)
    is_defending: bool = False
    can_act: bool = True
    intention: EnemyIntention | None = None


class CombatAction(BaseModel):
    type: CombatActionType
    actor_id: str
    target_id: str | None = None
    skill_id: str | None = None
    item_id: str | None = None


class CombatActionResult(BaseModel):
    success: bool
    action: CombatAction
    damage: int = 0
    healing: int = 0
    is_critical: bool = False
    is_miss: bool = False
    status_effects_applied: list[StatusEffect] = Field(default_factory=list)
    message: str
    target_killed: bool = False
    fled: bool = False


class CombatLogEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    round: int
    actor_id: str
    actor_name: str
    action: CombatActionType
    target_id: str | None = None
    target_name: str | None = None
    result: CombatActionResult | None = None
    message: str
    timestamp: datetime = Field(default_factory=_now)


class CombatSession(BaseModel):
    id: str = Field(default_factory=_new_id)
    round: int = 1
    phase: CombatPhase = "INITIATIVE"
    turn_order: list[Combatant]
    current_turn_index: int = 0
    actions_remaining: int = 1
    combat_log: list[CombatLogEntry] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=_now)
    is_active: bool = True


class CombatOptions(BaseModel):
    enemy_ids: list[str]
    is_ambush: bool = False


class DefeatedEnemy(BaseModel):
    id: str
    name: str
    level: int


class LootedItem(BaseModel):
    item_id: str
    template_id: str
    name: str
    quantity: int


class CombatResult(BaseModel):
    outcome: CombatOutcome
    rounds: int = 1
    experience_gained: int = 0
    gold_gained: int = 0
    items_looted: list[LootedItem] = Field(default_factory=list)
    enemies_defeated: list[DefeatedEnemy] = Field(default_factory=list)
    duration_ms: int


# ── UI projection ───────────────────────────────────────────


class EffectView(BaseModel):
    name: str
    icon: str
    duration: int


class IntentionView(BaseModel):
    description: str
    icon: str


class CombatantView(BaseModel):
    id: str
    name: str
    level: int
    current_hp: int
    max_hp: int
    hp_percent: int
    current_stamina: int
    max_stamina: int
    stamina_percent: int
    current_mana: int
    max_mana: int
    mana_percent: int
    status_effects: list[EffectView] = Field(default_factory=list)
    is_defending: bool = False
    intention: IntentionView | None = None


class TurnSlot(BaseModel):
    id: str
    name: str
    is_player: bool


class LogLine(BaseModel):
    message: str
    timestamp: str


class CombatUIState(BaseModel):
    combat_id: str
    round: int
    phase: CombatPhase
    is_player_turn: bool
    player: CombatantView
    enemies: list[CombatantView]
    turn_order: list[TurnSlot]
    current_turn_id: str
    available_actions: list[CombatActionType]
    combat_log: list[LogLine]


# ── Items ───────────────────────────────────────────────────


class Item(BaseModel):
    """A concrete item instance; `template_id` points back at the registry."""

    id: str = Field(default_factory=_new_id)
    template_id: str
    name: str
    description: str = ""
    type: ItemType
    rarity: Rarity = "COMMON"
    value: int = 0
    weight: float = 0.0
    stackable: bool = False
    quantity: int = 1
    stats: dict[str, int] = Field(default_factory=dict)
