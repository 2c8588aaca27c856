"""Tests for phase transition evaluation, complications and tension drift."""

from unittest.mock import patch

import pytest

from rpg_supreme.narrative.chapters import CHAPTER_TEMPLATES_BY_ID
from rpg_supreme.narrative.models import (
    BossDefeatedFlag,
    Complication,
    NarrativeEvent,
    NarrativeThread,
    PhaseTransition,
    PlayerActionCondition,
    ProgressCondition,
)
from rpg_supreme.narrative.phase_tracker import (
    PhaseTracker,
    get_next_phase,
    get_phase_name,
    homeostatic_nudge,
    is_phase_after,
)

TUTORIAL = CHAPTER_TEMPLATES_BY_ID["chapter_tutorial"]
HORDE = CHAPTER_TEMPLATES_BY_ID["chapter_incoming_horde"]


@pytest.fixture
def tracker(clock) -> PhaseTracker:
    return PhaseTracker(clock=clock)


# ── HOOK → DEVELOPMENT ───────────────────────────────────────


class TestHookTransition:
    def test_nothing_happened_yet(self, tracker, make_state) -> None:
        progress = tracker.evaluate_transition(make_state(), TUTORIAL)
        assert progress.should_transition is False
        assert progress.next_phase is None
        assert progress.reason == "Condiciones: 0/1 cumplidas"
        assert progress.tension_delta == 0  # 35 is HOOK's target

    def test_time_in_phase(self, tracker, make_state, clock) -> None:
        clock.advance(2)
        progress = tracker.evaluate_transition(make_state(), TUTORIAL)
        assert progress.should_transition is True
        assert progress.next_phase == "DEVELOPMENT"
        assert progress.reason.startswith("Transición a DEVELOPMENT: Tiempo transcurrido")

    def test_accepted_quest(self, tracker, make_state) -> None:
        tracker.register_player_action("accepted_quest")
        assert tracker.evaluate_transition(make_state(), TUTORIAL).next_phase == "DEVELOPMENT"

    def test_hook_resolved_event(self, tracker, make_state) -> None:
        tracker.register_event("hook_resolved")
        assert tracker.evaluate_transition(make_state(), TUTORIAL).should_transition

    def test_tension_drifts_towards_implied_phase(self, tracker, make_state) -> None:
        tracker.register_player_action("accepted_quest")
        # 35 is inside DEVELOPMENT's band but below its target of 50
        assert tracker.evaluate_transition(make_state(tension=35), TUTORIAL).tension_delta == 2


# ── Later phases ─────────────────────────────────────────────


class TestLaterPhases:
    def test_development_needs_two_conditions(self, tracker, make_state, clock) -> None:
        state = make_state(phase="DEVELOPMENT", phase_progress=100, tension=50)
        assert tracker.evaluate_transition(state, HORDE).should_transition is False
        clock.advance(15)
        assert tracker.evaluate_transition(state, HORDE).next_phase == "CLIMAX"

    def test_ready_threads_count(self, tracker, make_state) -> None:
        ready = [NarrativeThread(description=f"t{i}", status="READY_FOR_RESOLUTION") for i in range(2)]
        state = make_state(phase="DEVELOPMENT", phase_progress=100, tension=50, threads=ready)
        assert tracker.evaluate_transition(state, HORDE).should_transition

    def test_climax_waits_for_boss(self, tracker, make_state) -> None:
        state = make_state(phase="CLIMAX", tension=80)
        assert not tracker.evaluate_transition(state, TUTORIAL).should_transition
        tracker.mark_boss_defeated()
        progress = tracker.evaluate_transition(state, TUTORIAL)
        assert progress.next_phase == "RESOLUTION"
        assert "Boss derrotado" in progress.reason

    def test_main_objective_also_ends_climax(self, tracker, make_state) -> None:
        tracker.mark_main_objective_complete()
        assert tracker.evaluate_transition(make_state(phase="CLIMAX"), TUTORIAL).should_transition

    def test_resolution_has_no_transition(self, tracker, make_state) -> None:
        progress = tracker.evaluate_transition(make_state(phase="RESOLUTION"), TUTORIAL)
        assert progress.should_transition is False
        assert progress.reason == "No hay transición definida para esta fase"

    def test_require_all(self, clock, make_state) -> None:
        tracker = PhaseTracker(
            transitions=[PhaseTransition(
                from_phase="HOOK",
                to_phase="DEVELOPMENT",
                conditions=[PlayerActionCondition(action="talked"), BossDefeatedFlag()],
                require_all=True,
            )],
            clock=clock,
        )
        tracker.register_player_action("talked")
        assert not tracker.evaluate_transition(make_state(), TUTORIAL).should_transition
        tracker.mark_boss_defeated()
        assert tracker.evaluate_transition(make_state(), TUTORIAL).should_transition

    @pytest.mark.parametrize("min_conditions, fires, reason", [
        (0, True, None),
        (None, False, "Condiciones: 0/1 cumplidas"),
    ])
    def test_min_conditions(self, clock, make_state, min_conditions, fires, reason) -> None:
        tracker = PhaseTracker(
            transitions=[PhaseTransition(
                from_phase="HOOK",
                to_phase="DEVELOPMENT",
                conditions=[BossDefeatedFlag()],
                min_conditions=min_conditions,
            )],
            clock=clock,
        )
        progress = tracker.evaluate_transition(make_state(), TUTORIAL)
        assert progress.should_transition is fires
        if reason is not None:
            assert progress.reason == reason


# ── Complications ────────────────────────────────────────────


class TestComplications:
    def test_progress_trigger(self, tracker, make_state) -> None:
        # 15 + 50% of DEVELOPMENT's 50-point span = 40% chapter progress
        state = make_state(phase="DEVELOPMENT", phase_progress=50, tension=50)
        progress = tracker.evaluate_transition(state, TUTORIAL)
        assert [c.id for c in progress.triggered_complications] == ["tutorial_first_ally"]
        assert progress.tension_delta == -10

    def test_already_logged_complication_is_skipped(self, tracker, make_state) -> None:
        logged = NarrativeEvent(
            phase="DEVELOPMENT", type="COMPLICATION_ADDED", impact="MODERATE",
            description="tutorial_first_ally: Un misterioso extraño aparece",
        )
        state = make_state(phase="DEVELOPMENT", phase_progress=50, tension=50, narrative_log=[logged])
        assert tracker.evaluate_transition(state, TUTORIAL).triggered_complications == []

    def test_time_trigger(self, tracker, make_state, clock) -> None:
        state = make_state(phase="DEVELOPMENT", tension=50, template_id=HORDE.id)
        assert tracker.evaluate_transition(state, HORDE).triggered_complications == []
        clock.advance(10)
        fired = tracker.evaluate_transition(state, HORDE).triggered_complications
        assert "horde_early_scouts" in [c.id for c in fired]

    def test_action_and_random_triggers(self, tracker, make_state) -> None:
        template = TUTORIAL.model_copy(update={"complications": [
            Complication.model_validate({
                "id": "c_action", "description": "x",
                "trigger": {"type": "action", "player_action": "opened_door"},
            }),
            Complication.model_validate({
                "id": "c_random", "description": "y", "tension_change": 4,
                "trigger": {"type": "random", "chance": 0.5},
            }),
        ]})
        state = make_state(phase="DEVELOPMENT", tension=50)
        with patch("random.random", return_value=0.9):
            assert tracker.evaluate_transition(state, template).triggered_complications == []
        tracker.register_player_action("opened_door")
        with patch("random.random", return_value=0.1):
            fired = tracker.evaluate_transition(state, template).triggered_complications
        assert [c.id for c in fired] == ["c_action", "c_random"]

    def test_only_in_development(self, tracker, make_state) -> None:
        state = make_state(phase="HOOK", phase_progress=100)
        assert tracker.evaluate_transition(state, TUTORIAL).triggered_complications == []


# ── Progress, timers and events ──────────────────────────────


@pytest.mark.parametrize("phase,phase_progress,expected", [
    ("HOOK", 0, 0),
    ("HOOK", 100, 15),
    ("DEVELOPMENT", 50, 40),
    ("CLIMAX", 50, 75),
    ("RESOLUTION", 100, 100),
])
def test_chapter_progress(tracker, make_state, phase, phase_progress, expected):
    state = make_state(phase=phase, phase_progress=phase_progress)
    assert tracker.calculate_chapter_progress(state) == expected


def test_progress_condition_uses_chapter_progress(clock, make_state):
    tracker = PhaseTracker(
        transitions=[PhaseTransition(
            from_phase="HOOK", to_phase="DEVELOPMENT", conditions=[ProgressCondition(min=10)],
        )],
        clock=clock,
    )
    assert not tracker.evaluate_transition(make_state(phase_progress=50), TUTORIAL).should_transition
    assert tracker.evaluate_transition(make_state(phase_progress=80), TUTORIAL).should_transition


def test_reset_for_new_phase_restarts_timer(tracker, clock):
    clock.advance(7)
    assert tracker.get_time_in_phase() == 7
    tracker.reset_for_new_phase()
    assert tracker.get_time_in_phase() == 0
    assert tracker.phase_start_time == clock.now


def test_reset_for_new_chapter_clears_memory(tracker, clock):
    tracker.register_event("hook_resolved")
    tracker.register_player_action("accepted_quest")
    tracker.mark_boss_defeated()
    tracker.mark_main_objective_complete()
    clock.advance(3)
    tracker.reset_for_new_chapter()
    assert tracker.triggered_events == set()
    assert tracker.player_actions == []
    assert tracker.boss_defeated is False
    assert tracker.main_objective_complete is False
    assert tracker.get_time_in_phase() == 0


@pytest.mark.parametrize("event_type,impact,expected", [
    ("COMPLICATION_ADDED", "MODERATE", 10),
    ("HOOK_TRIGGERED", "MAJOR", 23),
    ("RESOLUTION", "PIVOTAL", -30),
    ("ALLY_GAINED", "MINOR", -2),
])
def test_narrative_event_tension_change(tracker, event_type, impact, expected):
    event = tracker.create_narrative_event(event_type, "algo", "HOOK", impact)
    assert event.tension_change == expected
    assert event.phase == "HOOK"


# ── Helpers ──────────────────────────────────────────────────


@pytest.mark.parametrize("tension,phase,expected", [
    (10, "HOOK", 5),
    (60, "HOOK", -5),
    (30, "HOOK", 2),
    (40, "HOOK", -2),
    (35, "HOOK", 0),
    (95, "CLIMAX", -2),
    (5, "RESOLUTION", 5),
])
def test_homeostatic_nudge(tension, phase, expected):
    assert homeostatic_nudge(tension, phase) == expected


def test_phase_helpers():
    assert get_next_phase("HOOK") == "DEVELOPMENT"
    assert get_next_phase("RESOLUTION") is None
    assert is_phase_after("CLIMAX", "HOOK")
    assert not is_phase_after("HOOK", "HOOK")
    assert get_phase_name("CLIMAX") == "Clímax"
