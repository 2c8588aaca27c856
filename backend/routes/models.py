"""Pydantic request models for API endpoints."""

from pydantic import BaseModel, Field

from rpg_supreme.models import Attributes, CombatActionType, ResourcePool
from rpg_supreme.narrative.models import ChapterOutcome, NarrativePhase, ThreadImportance, ThreadStatus


class CreatePlayer(BaseModel):
    name: str
    level: int = 1
    health: ResourcePool = Field(default_factory=lambda: ResourcePool(current=100, maximum=100))
    stamina: ResourcePool = Field(default_factory=lambda: ResourcePool(current=50, maximum=50))
    mana: ResourcePool = Field(default_factory=lambda: ResourcePool(current=30, maximum=30))
    attributes: Attributes = Field(default_factory=Attributes)


class CreateSession(BaseModel):
    player: CreatePlayer
    start_chapter: bool = True
    template_id: str | None = None
    completed_chapters: list[str] = Field(default_factory=list)
    location: str | None = None
    inventory: list[str] = Field(default_factory=list)


class StartCombatBody(BaseModel):
    enemy_ids: list[str]
    is_ambush: bool = False


class CombatActionBody(BaseModel):
    type: CombatActionType
    target_id: str | None = None
    skill_id: str | None = None
    item_id: str | None = None


class StartChapterBody(BaseModel):
    template_id: str | None = None


class CompleteChapterBody(BaseModel):
    outcome: ChapterOutcome


class PhaseProgressBody(BaseModel):
    amount: float


class PhaseTransitionBody(BaseModel):
    phase: NarrativePhase


class IntroduceThreadBody(BaseModel):
    description: str
    importance: ThreadImportance = "SIDE"
    related_quests: list[str] = Field(default_factory=list)
    characters: list[str] = Field(default_factory=list)
    foreshadowing: list[str] = Field(default_factory=list)


class AdvanceThreadBody(BaseModel):
    status: ThreadStatus
    foreshadowing: str | None = None


class TensionBody(BaseModel):
    value: int
    reason: str = "Ajuste manual"


class NamedSignalBody(BaseModel):
    name: str


class PlayerContextBody(BaseModel):
    level: int | None = None
    completed_chapters: list[str] | None = None
    location: str | None = None
    inventory: list[str] | None = None
    name: str | None = None


class GenerateLootBody(BaseModel):
    enemy_id: str
    experience: int = 0
    drop_chance_multiplier: float = 1.0
    gold_multiplier: float = 1.0
    quantity_multiplier: float = 1.0
    luck: int = 10


class UpdateSettings(BaseModel):
    log_level: str | None = None
    rng_seed: int | None = None
    auto_enemy_turns: bool | None = None
    max_enemy_turns: int | None = Field(default=None, ge=0)
