"""Narrative phase tracker.

Evaluates whether the chapter should move to its next phase
(HOOK → DEVELOPMENT → CLIMAX → RESOLUTION) from a table of transitions,
each firing once enough of its conditions hold. While in DEVELOPMENT it
also picks which template complications fire, and it proposes a tension
delta that drifts tension towards the band of the implied phase.

Carries per-chapter memory: fired event names, recorded player actions,
the phase start time and the boss/objective flags.
"""

from __future__ import annotations

import math
import random
import time
from collections.abc import Callable

from pydantic import BaseModel

from .models import (
    BossDefeatedFlag,
    ChapterTemplate,
    Complication,
    EventTriggeredCondition,
    MainObjectiveFlag,
    NarrativeEvent,
    NarrativeEventType,
    NarrativeImpact,
    NarrativePhase,
    NarrativeProgress,
    NarrativeState,
    PhaseTransition,
    PlayerActionCondition,
    ProgressCondition,
    ThreadsReadyCondition,
    TimeElapsedCondition,
    TransitionCondition,
)

PHASE_ORDER: list[NarrativePhase] = ["HOOK", "DEVELOPMENT", "CLIMAX", "RESOLUTION"]


class TensionBand(BaseModel):
    min: int
    target: int
    max: int


DEFAULT_PHASE_TRANSITIONS: list[PhaseTransition] = [
    PhaseTransition(
        from_phase="HOOK",
        to_phase="DEVELOPMENT",
        conditions=[
            TimeElapsedCondition(min=2, max=5),
            EventTriggeredCondition(event="hook_resolved"),
            PlayerActionCondition(action="accepted_quest"),
        ],
        min_conditions=1,
    ),
    PhaseTransition(
        from_phase="DEVELOPMENT",
        to_phase="CLIMAX",
        conditions=[
            ProgressCondition(min=60),
            TimeElapsedCondition(min=15),
            ThreadsReadyCondition(count=2),
        ],
        min_conditions=2,
    ),
    PhaseTransition(
        from_phase="CLIMAX",
        to_phase="RESOLUTION",
        conditions=[
            BossDefeatedFlag(),
            MainObjectiveFlag(),
        ],
        min_conditions=1,
    ),
]

# Share of overall chapter progress each phase covers.
PHASE_PROGRESS_RANGES: dict[NarrativePhase, tuple[float, float]] = {
    "HOOK": (0, 15),
    "DEVELOPMENT": (15, 65),
    "CLIMAX": (65, 85),
    "RESOLUTION": (85, 100),
}

PHASE_BASE_TENSION: dict[NarrativePhase, TensionBand] = {
    "HOOK": TensionBand(min=20, target=35, max=50),
    "DEVELOPMENT": TensionBand(min=30, target=50, max=70),
    "CLIMAX": TensionBand(min=60, target=80, max=100),
    "RESOLUTION": TensionBand(min=10, target=30, max=50),
}

_IMPACT_MULTIPLIER: dict[NarrativeImpact, float] = {
    "MINOR": 0.5,
    "MODERATE": 1.0,
    "MAJOR": 1.5,
    "PIVOTAL": 2.0,
}

_EVENT_BASE_TENSION: dict[NarrativeEventType, int] = {
    "HOOK_TRIGGERED": 15,
    "COMPLICATION_ADDED": 10,
    "ALLY_GAINED": -5,
    "ALLY_LOST": 12,
    "REVELATION": 8,
    "SETBACK": 10,
    "BREAKTHROUGH": -8,
    "CONFRONTATION": 15,
    "RESOLUTION": -15,
    "CLIFFHANGER": 5,
}

_PHASE_NAMES: dict[NarrativePhase, str] = {
    "HOOK": "Gancho Inicial",
    "DEVELOPMENT": "Desarrollo",
    "CLIMAX": "Clímax",
    "RESOLUTION": "Resolución",
}


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def homeostatic_nudge(tension: int, phase: NarrativePhase) -> int:
    """±5 outside the phase's tension band, ±2 inside it but off target."""
    band = PHASE_BASE_TENSION[phase]
    if tension < band.min:
        return 5
    if tension > band.max:
        return -5
    if tension < band.target:
        return 2
    if tension > band.target:
        return -2
    return 0


class PhaseTracker:
    def __init__(
        self,
        transitions: list[PhaseTransition] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.transitions = transitions if transitions is not None else DEFAULT_PHASE_TRANSITIONS
        self._clock = clock
        self.triggered_events: set[str] = set()
        self.player_actions: list[str] = []
        self.phase_start_time: float = clock()
        self.boss_defeated = False
        self.main_objective_complete = False

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate_transition(self, state: NarrativeState, template: ChapterTemplate) -> NarrativeProgress:
        current = state.phase
        transition = next((t for t in self.transitions if t.from_phase == current), None)
        if transition is None:
            return NarrativeProgress(reason="No hay transición definida para esta fase")

        met = 0
        details: list[str] = []
        for condition in transition.conditions:
            ok, reason = self._evaluate_condition(condition, state)
            if ok:
                met += 1
                details.append(reason)

        if transition.require_all:
            threshold = len(transition.conditions)
        else:
            threshold = 1 if transition.min_conditions is None else transition.min_conditions
        should_transition = met >= threshold

        complications = self._evaluate_complications(state, template) if current == "DEVELOPMENT" else []
        target = transition.to_phase if should_transition else current
        tension_delta = sum(c.tension_change for c in complications)
        tension_delta += homeostatic_nudge(state.tension_level, target)

        if should_transition:
            reason = f"Transición a {transition.to_phase}: {', '.join(details)}"
        else:
            reason = f"Condiciones: {met}/{threshold} cumplidas"
        return NarrativeProgress(
            should_transition=should_transition,
            next_phase=transition.to_phase if should_transition else None,
            triggered_complications=complications,
            tension_delta=tension_delta,
            reason=reason,
        )

    def _evaluate_condition(self, condition: TransitionCondition, state: NarrativeState) -> tuple[bool, str]:
        if isinstance(condition, TimeElapsedCondition):
            minutes = self.get_time_in_phase()
            if minutes >= condition.min:
                return True, f"Tiempo transcurrido: {minutes:.1f} min"
            return False, f"Tiempo insuficiente: {minutes:.1f}/{condition.min:g} min"

        if isinstance(condition, EventTriggeredCondition):
            if condition.event in self.triggered_events:
                return True, f"Evento '{condition.event}' ocurrió"
            return False, f"Evento '{condition.event}' pendiente"

        if isinstance(condition, PlayerActionCondition):
            if condition.action in self.player_actions:
                return True, f"Acción '{condition.action}' realizada"
            return False, f"Acción '{condition.action}' pendiente"

        if isinstance(condition, ProgressCondition):
            progress = self.calculate_chapter_progress(state)
            if progress >= condition.min:
                return True, f"Progreso: {progress:.0f}%"
            return False, f"Progreso insuficiente: {progress:.0f}/{condition.min:g}%"

        if isinstance(condition, ThreadsReadyCondition):
            ready = sum(1 for t in state.threads if t.status == "READY_FOR_RESOLUTION")
            if ready >= condition.count:
                return True, f"{ready} hilos listos para resolución"
            return False, f"Hilos listos: {ready}/{condition.count}"

        if isinstance(condition, BossDefeatedFlag):
            return self.boss_defeated, "Boss derrotado" if self.boss_defeated else "Boss pendiente"

        if isinstance(condition, MainObjectiveFlag):
            done = self.main_objective_complete
            return done, "Objetivo principal completado" if done else "Objetivo principal pendiente"

        return False, "Condición desconocida"

    def _evaluate_complications(self, state: NarrativeState, template: ChapterTemplate) -> list[Complication]:
        progress = self.calculate_chapter_progress(state)
        minutes = self.get_time_in_phase()
        fired: list[Complication] = []
        for complication in template.complications:
            # Already fired if its id shows up in any logged description.
            if any(complication.id in e.description for e in state.narrative_log):
                continue
            if self._should_trigger(complication, progress, minutes):
                fired.append(complication)
        return fired

    def _should_trigger(self, complication: Complication, progress: float, minutes: float) -> bool:
        trigger = complication.trigger
        if trigger.type == "time":
            return minutes >= trigger.after_minutes
        if trigger.type == "progress":
            return progress >= trigger.at_percent
        if trigger.type == "action":
            return trigger.player_action in self.player_actions
        if trigger.type == "random":
            return random.random() < trigger.chance
        return False

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def register_event(self, name: str) -> None:
        self.triggered_events.add(name)

    def register_player_action(self, action: str) -> None:
        self.player_actions.append(action)

    def mark_boss_defeated(self) -> None:
        self.boss_defeated = True

    def mark_main_objective_complete(self) -> None:
        self.main_objective_complete = True

    def reset_for_new_phase(self) -> None:
        self.phase_start_time = self._clock()

    def reset_for_new_chapter(self) -> None:
        self.triggered_events.clear()
        self.player_actions = []
        self.phase_start_time = self._clock()
        self.boss_defeated = False
        self.main_objective_complete = False

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    def get_time_in_phase(self) -> float:
        """Minutes since the current phase began."""
        return (self._clock() - self.phase_start_time) / 60

    def calculate_chapter_progress(self, state: NarrativeState) -> float:
        low, high = PHASE_PROGRESS_RANGES[state.phase]
        return min(100.0, low + state.phase_progress / 100 * (high - low))

    def create_narrative_event(
        self,
        type: NarrativeEventType,
        description: str,
        phase: NarrativePhase,
        impact: NarrativeImpact = "MODERATE",
    ) -> NarrativeEvent:
        tension_change = _round_half_up(_EVENT_BASE_TENSION[type] * _IMPACT_MULTIPLIER[impact])
        return NarrativeEvent(
            phase=phase,
            type=type,
            description=description,
            impact=impact,
            tension_change=tension_change,
        )


def get_next_phase(current: NarrativePhase) -> NarrativePhase | None:
    index = PHASE_ORDER.index(current)
    return PHASE_ORDER[index + 1] if index + 1 < len(PHASE_ORDER) else None


def is_phase_after(phase: NarrativePhase, after: NarrativePhase) -> bool:
    return PHASE_ORDER.index(phase) > PHASE_ORDER.index(after)


def get_phase_name(phase: NarrativePhase) -> str:
    return _PHASE_NAMES[phase]
