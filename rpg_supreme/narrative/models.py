"""Narrative domain models: chapters, threads, hooks, events and templates.

Variant records (complication triggers, phase-transition conditions,
resolution conditions) are discriminated unions on their `type` field.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Literal, Union
from uuid import uuid4

from pydantic import BaseModel, Field

NarrativePhase = Literal["HOOK", "DEVELOPMENT", "CLIMAX", "RESOLUTION"]

ChapterType = Literal["ACTION", "MYSTERY", "SOCIAL", "EXPLORATION", "HORROR", "HEIST"]

ChapterOutcome = Literal["VICTORY", "PYRRHIC_VICTORY", "PARTIAL_SUCCESS", "ESCAPE", "DEFEAT"]

ThreadImportance = Literal["MAIN", "SIDE", "BACKGROUND"]

ThreadStatus = Literal["INTRODUCED", "DEVELOPING", "READY_FOR_RESOLUTION", "RESOLVED"]

HookType = Literal["CLIFFHANGER", "MYSTERY", "THREAT", "OPPORTUNITY", "RELATIONSHIP"]

HookUrgency = Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]

AntagonistType = Literal["CREATURE", "NPC", "FACTION", "FORCE", "SELF"]

NarrativeImpact = Literal["MINOR", "MODERATE", "MAJOR", "PIVOTAL"]

NarrativeEventType = Literal[
    "HOOK_TRIGGERED",
    "COMPLICATION_ADDED",
    "ALLY_GAINED",
    "ALLY_LOST",
    "REVELATION",
    "SETBACK",
    "BREAKTHROUGH",
    "CONFRONTATION",
    "RESOLUTION",
    "CLIFFHANGER",
]


def _new_id() -> str:
    return str(uuid4())


# ── Runtime state ───────────────────────────────────────────


class Antagonist(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    type: AntagonistType
    motivation: str
    threat_level: int = Field(ge=1, le=10)
    is_recurring: bool = False


class ChapterState(BaseModel):
    id: str = Field(default_factory=_new_id)
    number: int
    type: ChapterType
    title: str
    main_conflict: str
    setting: str
    antagonist: Antagonist | None = None
    started_at: datetime
    completed: bool = False
    outcome: ChapterOutcome | None = None
    template_id: str


class NarrativeThread(BaseModel):
    id: str = Field(default_factory=_new_id)
    description: str
    importance: ThreadImportance = "SIDE"
    status: ThreadStatus = "INTRODUCED"
    related_quests: list[str] = Field(default_factory=list)
    characters: list[str] = Field(default_factory=list)
    foreshadowing: list[str] = Field(default_factory=list)


class ChapterHook(BaseModel):
    """A dangling plot element carried into the next chapter."""

    id: str = Field(default_factory=_new_id)
    type: HookType = "MYSTERY"
    description: str
    urgency: HookUrgency = "MEDIUM"
    expires_in: int | None = None  # chapters


class NarrativeEvent(BaseModel):
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    phase: NarrativePhase
    type: NarrativeEventType
    description: str
    impact: NarrativeImpact
    tension_change: int = 0


class NarrativeState(BaseModel):
    chapter: ChapterState
    phase: NarrativePhase = "HOOK"
    phase_progress: float = 0.0  # 0-100 within the current phase
    tension_level: int = 0  # 0-100
    threads: list[NarrativeThread] = Field(default_factory=list)
    next_chapter_hooks: list[ChapterHook] = Field(default_factory=list)
    session_time: int = 0  # ms since the manager was created
    narrative_log: list[NarrativeEvent] = Field(default_factory=list)


# ── Chapter templates ───────────────────────────────────────


class ChapterRequirements(BaseModel):
    min_level: int | None = None
    max_level: int | None = None
    completed_chapters: list[str] = Field(default_factory=list)
    has_item: list[str] = Field(default_factory=list)
    in_location: list[str] = Field(default_factory=list)


class HookConfig(BaseModel):
    type: Literal["ATTACK", "DISCOVERY", "REQUEST", "OMEN", "ARRIVAL"]
    tension_boost: int
    prompt_template: str
    possible_quests: list[str] = Field(default_factory=list)


class TimeTrigger(BaseModel):
    type: Literal["time"] = "time"
    after_minutes: float


class ProgressTrigger(BaseModel):
    type: Literal["progress"] = "progress"
    at_percent: float


class ActionTrigger(BaseModel):
    type: Literal["action"] = "action"
    player_action: str


class RandomTrigger(BaseModel):
    type: Literal["random"] = "random"
    chance: float


ComplicationTrigger = Annotated[
    Union[TimeTrigger, ProgressTrigger, ActionTrigger, RandomTrigger],
    Field(discriminator="type"),
]


class ThreadSpec(BaseModel):
    """Partial thread a complication introduces; text is interpolated."""

    id: str | None = None
    description: str | None = None
    importance: ThreadImportance = "SIDE"
    characters: list[str] = Field(default_factory=list)
    related_quests: list[str] = Field(default_factory=list)
    foreshadowing: list[str] = Field(default_factory=list)


class Complication(BaseModel):
    id: str
    trigger: ComplicationTrigger
    description: str
    tension_change: int = 0
    new_thread: ThreadSpec | None = None


class ClimaxConfig(BaseModel):
    type: Literal["BOSS_FIGHT", "FINAL_CHOICE", "REVELATION", "ESCAPE", "SHOWDOWN"]
    enemy_scaling: float = 1.0
    required_threads_resolved: int = 0
    prompt_template: str = ""


class BossDefeatedCondition(BaseModel):
    type: Literal["boss_defeated"] = "boss_defeated"


class MysterySolvedCondition(BaseModel):
    type: Literal["mystery_solved"] = "mystery_solved"


class MainObjectiveCondition(BaseModel):
    type: Literal["main_objective_complete"] = "main_objective_complete"


class ObjectiveCondition(BaseModel):
    type: Literal["objective_complete"] = "objective_complete"
    objective_id: str


class TimeElapsedResolution(BaseModel):
    type: Literal["time_elapsed"] = "time_elapsed"
    minutes: float


class ChoiceMadeCondition(BaseModel):
    type: Literal["choice_made"] = "choice_made"
    choice_id: str


class AntagonistDealtCondition(BaseModel):
    type: Literal["antagonist_dealt"] = "antagonist_dealt"


ResolutionCondition = Annotated[
    Union[
        BossDefeatedCondition,
        MysterySolvedCondition,
        MainObjectiveCondition,
        ObjectiveCondition,
        TimeElapsedResolution,
        ChoiceMadeCondition,
        AntagonistDealtCondition,
    ],
    Field(discriminator="type"),
]


class ReputationChange(BaseModel):
    faction: str
    amount: int


class ChapterReward(BaseModel):
    xp_multiplier: float = 1.0
    gold_multiplier: float = 1.0
    bonus_items: list[str] = Field(default_factory=list)
    reputation_changes: list[ReputationChange] = Field(default_factory=list)
    unlocked_content: list[str] = Field(default_factory=list)


class HookSpec(BaseModel):
    """Partial next-chapter hook; missing fields default at completion."""

    id: str | None = None
    type: HookType | None = None
    description: str = ""
    urgency: HookUrgency | None = None
    expires_in: int | None = None


class ResolutionConfig(BaseModel):
    outcome: ChapterOutcome
    conditions: list[ResolutionCondition] = Field(default_factory=list)
    rewards: ChapterReward = Field(default_factory=ChapterReward)
    next_hooks: list[HookSpec] = Field(default_factory=list)
    epilogue_prompt: str = ""


class ChapterTemplate(BaseModel):
    id: str
    type: ChapterType
    name: str
    description: str = ""
    requirements: ChapterRequirements | None = None
    hook_config: HookConfig
    complications: list[Complication] = Field(default_factory=list)
    climax_config: ClimaxConfig
    resolutions: list[ResolutionConfig] = Field(default_factory=list)
    weight: int = 1
    variables: dict[str, list[str]] = Field(default_factory=dict)


# ── Phase transitions ───────────────────────────────────────


class TimeElapsedCondition(BaseModel):
    type: Literal["time_elapsed"] = "time_elapsed"
    min: float  # minutes
    max: float | None = None


class EventTriggeredCondition(BaseModel):
    type: Literal["event_triggered"] = "event_triggered"
    event: str


class PlayerActionCondition(BaseModel):
    type: Literal["player_action"] = "player_action"
    action: str


class ProgressCondition(BaseModel):
    type: Literal["progress"] = "progress"
    min: float


class ThreadsReadyCondition(BaseModel):
    type: Literal["narrative_threads_ready"] = "narrative_threads_ready"
    count: int


class BossDefeatedFlag(BaseModel):
    type: Literal["boss_defeated"] = "boss_defeated"
    required: bool = True


class MainObjectiveFlag(BaseModel):
    type: Literal["main_objective_complete"] = "main_objective_complete"
    required: bool = True


TransitionCondition = Annotated[
    Union[
        TimeElapsedCondition,
        EventTriggeredCondition,
        PlayerActionCondition,
        ProgressCondition,
        ThreadsReadyCondition,
        BossDefeatedFlag,
        MainObjectiveFlag,
    ],
    Field(discriminator="type"),
]


class PhaseTransition(BaseModel):
    from_phase: NarrativePhase
    to_phase: NarrativePhase
    conditions: list[TransitionCondition]
    require_all: bool = False
    min_conditions: int | None = None


class NarrativeProgress(BaseModel):
    should_transition: bool = False
    next_phase: NarrativePhase | None = None
    triggered_complications: list[Complication] = Field(default_factory=list)
    tension_delta: int = 0
    reason: str = ""


class NarrativeContext(BaseModel):
    state: NarrativeState
    phase_instructions: str
    tension_guidance: str
    threads_summary: str
    recent_events: list[NarrativeEvent]


class LootModifiers(BaseModel):
    quality_bonus: float = 0.0
    unique_chance: float = 0.02


# ── Domain events ───────────────────────────────────────────


class ChapterStarted(BaseModel):
    kind: Literal["chapter_started"] = "chapter_started"
    chapter: ChapterState


class ChapterCompleted(BaseModel):
    kind: Literal["chapter_completed"] = "chapter_completed"
    chapter: ChapterState
    outcome: ChapterOutcome
    rewards: ChapterReward
    next_hooks: list[ChapterHook]
    duration_ms: int


class PhaseChanged(BaseModel):
    kind: Literal["phase_changed"] = "phase_changed"
    previous_phase: NarrativePhase
    new_phase: NarrativePhase
    time_in_previous_phase: float  # minutes


class TensionChanged(BaseModel):
    kind: Literal["tension_changed"] = "tension_changed"
    previous_tension: int
    new_tension: int
    reason: str
    phase: NarrativePhase


class ThreadIntroduced(BaseModel):
    kind: Literal["thread_introduced"] = "thread_introduced"
    thread: NarrativeThread


class ThreadResolved(BaseModel):
    kind: Literal["thread_resolved"] = "thread_resolved"
    thread: NarrativeThread


class ComplicationTriggered(BaseModel):
    kind: Literal["complication_triggered"] = "complication_triggered"
    complication: Complication


class HookCreated(BaseModel):
    kind: Literal["hook_created"] = "hook_created"
    hook: ChapterHook


NarrativeDomainEvent = Annotated[
    Union[
        ChapterStarted,
        ChapterCompleted,
        PhaseChanged,
        TensionChanged,
        ThreadIntroduced,
        ThreadResolved,
        ComplicationTriggered,
        HookCreated,
    ],
    Field(discriminator="kind"),
]
