"""Tests for NarrativeManager: chapter lifecycle, pacing, threads and context."""

from unittest.mock import patch

import pytest

from rpg_supreme.errors import NarrativeError
from rpg_supreme.narrative import CHAPTER_TEMPLATES_BY_ID, NarrativeManager, PhaseTracker
from rpg_supreme.narrative.manager import tension_guidance
from rpg_supreme.narrative.models import (
    ChapterCompleted,
    ChapterRequirements,
    ChapterStarted,
    HookCreated,
    HookSpec,
    PhaseChanged,
    ResolutionConfig,
    TensionChanged,
    ThreadResolved,
)

TUTORIAL = CHAPTER_TEMPLATES_BY_ID["chapter_tutorial"]


@pytest.fixture
def manager(clock) -> NarrativeManager:
    return NarrativeManager(clock=clock)


@pytest.fixture
def tutorial(manager) -> NarrativeManager:
    manager.start_new_chapter("chapter_tutorial")
    manager.pop_events()
    return manager


def kinds(events) -> list[str]:
    return [e.kind for e in events]


# ── Starting chapters ────────────────────────────────────────


class TestStartChapter:
    def test_forced_tutorial(self, manager) -> None:
        chapter = manager.start_new_chapter("chapter_tutorial")
        assert chapter.title == "El Despertar del Héroe"
        assert chapter.template_id == "chapter_tutorial"
        assert chapter.number == 1
        assert chapter.antagonist is None
        assert chapter.setting in TUTORIAL.variables["setting"]
        assert "{{" not in chapter.main_conflict
        assert manager.phase == "HOOK"
        assert manager.tension == 30
        assert manager.state.phase_progress == 0

        assert [e.description for e in manager.state.narrative_log] == [
            "Capítulo iniciado: El Despertar del Héroe",
        ]
        events = manager.pop_events()
        assert len(events) == 1
        assert isinstance(events[0], ChapterStarted)
        assert manager.pop_events() == []

    def test_level_one_gets_tutorial(self, manager) -> None:
        assert manager.start_new_chapter().template_id == "chapter_tutorial"

    def test_weighted_pick_from_eligible(self, manager) -> None:
        manager.update_player_context(level=5)
        with patch("random.random", return_value=0.0):
            chapter = manager.start_new_chapter()
        assert chapter.template_id == "chapter_hidden_threat"

    def test_antagonist_and_player_name(self, manager) -> None:
        manager.update_player_context(level=2, name="Aria")
        chapter = manager.start_new_chapter("chapter_hidden_threat")
        assert chapter.main_conflict.startswith("Mientras Aria explora")
        assert chapter.antagonist is not None
        assert chapter.antagonist.type == "NPC"
        assert chapter.antagonist.threat_level == 3
        assert chapter.antagonist.name == manager.template_variables["antagonist"]

    def test_threat_level_is_capped(self, manager) -> None:
        manager.update_player_context(level=20)
        chapter = manager.start_new_chapter("chapter_hidden_threat")
        assert chapter.antagonist.threat_level == 10

    def test_default_player_name(self, manager) -> None:
        chapter = manager.start_new_chapter("chapter_hidden_threat")
        assert chapter.main_conflict.startswith("Mientras el héroe explora")

    def test_unknown_forced_id_falls_back(self, manager, caplog) -> None:
        chapter = manager.start_new_chapter("chapter_does_not_exist")
        assert chapter.template_id == "chapter_tutorial"
        assert "chapter_does_not_exist" in caplog.text

    def test_nothing_eligible_uses_first_template(self, clock) -> None:
        lone = TUTORIAL.model_copy(update={
            "id": "chapter_lone",
            "requirements": ChapterRequirements(min_level=10),
        })
        manager = NarrativeManager(templates=[lone], clock=clock)
        assert manager.start_new_chapter().template_id == "chapter_lone"

    def test_empty_catalog_raises(self, clock) -> None:
        manager = NarrativeManager(templates=[], clock=clock)
        with pytest.raises(NarrativeError, match="No se pudo seleccionar"):
            manager.start_new_chapter()

    def test_chapter_number_follows_completed_count(self, manager) -> None:
        manager.update_player_context(completed_chapters=["a", "b"])
        assert manager.start_new_chapter("chapter_tutorial").number == 3

    def test_new_chapter_resets_tracker(self, tutorial, clock) -> None:
        tutorial.tracker.mark_boss_defeated()
        clock.advance(4)
        tutorial.start_new_chapter("chapter_tutorial")
        assert tutorial.tracker.boss_defeated is False
        assert tutorial.tracker.get_time_in_phase() == 0


# ── Completing chapters ──────────────────────────────────────


class TestCompleteChapter:
    def test_requires_active_chapter(self, manager) -> None:
        with pytest.raises(NarrativeError, match="No hay capítulo activo para completar"):
            manager.complete_chapter("VICTORY")

    def test_outcome_without_resolution(self, clock) -> None:
        partial_only = TUTORIAL.model_copy(update={
            "resolutions": [r for r in TUTORIAL.resolutions if r.outcome != "VICTORY"],
        })
        manager = NarrativeManager(templates=[partial_only], clock=clock)
        manager.start_new_chapter("chapter_tutorial")
        with pytest.raises(NarrativeError, match="No se encontró resolución para outcome: VICTORY"):
            manager.complete_chapter("VICTORY")

    def test_victory(self, tutorial, clock) -> None:
        clock.advance(5)
        completed = tutorial.complete_chapter("VICTORY")

        assert completed.outcome == "VICTORY"
        assert completed.rewards.xp_multiplier == 1.2
        assert completed.duration_ms == 300_000
        assert [h.id for h in completed.next_hooks] == ["hook_master_mention"]
        assert completed.chapter.completed is True
        assert tutorial.state.next_chapter_hooks == completed.next_hooks
        assert tutorial.completed_chapters == [completed.chapter.id]
        assert tutorial.state.narrative_log[-1].description == "Capítulo completado: VICTORY"

        events = tutorial.pop_events()
        assert isinstance(events[0], ChapterCompleted)
        assert isinstance(events[1], HookCreated)
        assert events[1].hook.id == "hook_master_mention"

    def test_hook_defaults_and_interpolation(self, clock) -> None:
        bare = TUTORIAL.model_copy(update={"resolutions": [
            ResolutionConfig(outcome="ESCAPE", next_hooks=[HookSpec(description="{{player_name}} huye")]),
        ]})
        manager = NarrativeManager(templates=[bare], clock=clock)
        manager.start_new_chapter("chapter_tutorial")
        hook = manager.complete_chapter("ESCAPE").next_hooks[0]
        assert hook.description == "el héroe huye"
        assert hook.type == "MYSTERY"
        assert hook.urgency == "MEDIUM"
        assert hook.id


# ── Phases and pacing ────────────────────────────────────────


class TestPhases:
    def test_no_chapter_no_evaluation(self, manager) -> None:
        assert manager.evaluate_progress() is None

    def test_progress_is_clamped(self, tutorial) -> None:
        tutorial.advance_phase_progress(250)
        assert tutorial.state.phase_progress == 100
        tutorial.advance_phase_progress(-500)
        assert tutorial.state.phase_progress == 0

    def test_forced_transition(self, tutorial, clock) -> None:
        tutorial.advance_phase_progress(50)
        tutorial.pop_events()
        clock.advance(3)
        tutorial.force_phase_transition("DEVELOPMENT")

        assert tutorial.phase == "DEVELOPMENT"
        assert tutorial.state.phase_progress == 0
        assert tutorial.tracker.phase_start_time == clock.now
        assert tutorial.tension == 34  # 32 after the HOOK nudge, +2 toward DEVELOPMENT
        assert tutorial.state.narrative_log[-1].description == "Transición a fase: Desarrollo"

        changed = [e for e in tutorial.pop_events() if isinstance(e, PhaseChanged)]
        assert len(changed) == 1
        assert changed[0].previous_phase == "HOOK"
        assert changed[0].time_in_previous_phase == 3

    def test_time_drives_hook_to_development(self, tutorial, clock) -> None:
        clock.advance(2)
        progress = tutorial.evaluate_progress()
        assert progress.should_transition
        assert tutorial.phase == "DEVELOPMENT"
        assert tutorial.tension == 34
        assert kinds(tutorial.pop_events()) == ["tension_changed", "tension_changed", "phase_changed"]
        assert tutorial.state.session_time == 120_000

    def test_complication_fires_once(self, tutorial) -> None:
        tutorial.force_phase_transition("DEVELOPMENT")
        assert tutorial.tension == 32
        tutorial.pop_events()

        # 35% chapter progress passes the 30% complication trigger
        tutorial.advance_phase_progress(40)
        thread = tutorial.state.threads[0]
        assert thread.description == "Alianza con el misterioso extraño"
        assert thread.characters[0] in TUTORIAL.variables["ally_name"]
        assert tutorial.state.narrative_log[-1].description.startswith("tutorial_first_ally: ")
        assert tutorial.tension == 14
        assert kinds(tutorial.pop_events()) == [
            "tension_changed",
            "thread_introduced",
            "complication_triggered",
            "tension_changed",
        ]

        tutorial.evaluate_progress()
        assert len(tutorial.state.threads) == 1

    def test_complication_thread_keeps_id_and_quests(self, manager) -> None:
        manager.start_new_chapter("chapter_hidden_threat")
        manager.force_phase_transition("DEVELOPMENT")

        # 50% chapter progress fires the disappearance
        manager.advance_phase_progress(70)
        assert manager.phase == "DEVELOPMENT"
        thread = next(t for t in manager.state.threads if t.id == "thread_missing_person")
        assert thread.description == "Búsqueda del desaparecido"
        assert thread.related_quests == ["quest_find_missing"]
        assert manager.get_suggested_quests() == ["quest_find_missing"]

    def test_custom_tracker_is_used(self, clock) -> None:
        tracker = PhaseTracker(transitions=[], clock=clock)
        manager = NarrativeManager(tracker=tracker, clock=clock)
        manager.start_new_chapter("chapter_tutorial")
        assert manager.evaluate_progress().reason == "No hay transición definida para esta fase"


# ── Tension ──────────────────────────────────────────────────


class TestTension:
    def test_adjust_is_clamped(self, tutorial) -> None:
        tutorial.adjust_tension(500, "pico")
        assert tutorial.tension == 100
        tutorial.adjust_tension(-1000, "calma")
        assert tutorial.tension == 0

    def test_event_only_on_change(self, tutorial) -> None:
        tutorial.set_tension(100, "máximo")
        tutorial.adjust_tension(10, "sin efecto")
        events = tutorial.pop_events()
        assert len(events) == 1
        assert isinstance(events[0], TensionChanged)
        assert (events[0].previous_tension, events[0].new_tension) == (30, 100)
        assert events[0].reason == "máximo"

    def test_set_tension_clamps(self, tutorial) -> None:
        tutorial.set_tension(150, "x")
        assert tutorial.tension == 100


@pytest.mark.parametrize("tension,heading", [
    (0, "TENSIÓN BAJA"),
    (19, "TENSIÓN BAJA"),
    (20, "TENSIÓN MEDIA"),
    (50, "TENSIÓN ALTA"),
    (80, "TENSIÓN MÁXIMA"),
    (100, "TENSIÓN MÁXIMA"),
])
def test_tension_guidance(tension, heading):
    assert tension_guidance(tension).startswith(heading)


# ── Threads ──────────────────────────────────────────────────


class TestThreads:
    def test_lifecycle(self, tutorial) -> None:
        thread = tutorial.introduce_thread("Encontrar al herrero", importance="MAIN", related_quests=["q1"])
        assert thread.status == "INTRODUCED"

        tutorial.advance_thread(thread.id, "DEVELOPING", "Huellas de hollín")
        assert thread.foreshadowing == ["Huellas de hollín"]

        tutorial.resolve_thread(thread.id)
        assert thread.status == "RESOLVED"
        assert tutorial.active_threads() == []
        assert kinds(tutorial.pop_events()) == ["thread_introduced", "thread_resolved"]

    def test_unknown_thread_is_ignored(self, tutorial) -> None:
        assert tutorial.advance_thread("missing", "RESOLVED") is None
        assert tutorial.pop_events() == []

    def test_resolved_event_carries_thread(self, tutorial) -> None:
        thread = tutorial.introduce_thread("x")
        tutorial.pop_events()
        tutorial.resolve_thread(thread.id)
        (event,) = tutorial.pop_events()
        assert isinstance(event, ThreadResolved)
        assert event.thread.id == thread.id


# ── Gameplay signals ─────────────────────────────────────────


class TestSignals:
    def test_accepted_quest_ends_hook(self, tutorial) -> None:
        tutorial.register_player_action("accepted_quest")
        assert tutorial.phase == "DEVELOPMENT"
        assert tutorial.state.phase_progress == 0

    def test_completed_quest_adds_progress(self, tutorial) -> None:
        tutorial.register_player_action("completed_quest")
        assert tutorial.phase == "HOOK"
        assert tutorial.state.phase_progress == 15

    def test_defeated_enemy(self, tutorial) -> None:
        tutorial.register_player_action("defeated_enemy")
        assert tutorial.state.phase_progress == 5
        assert tutorial.tension == 35  # +2 drift toward HOOK's target, then +3
        assert tutorial.pop_events()[-1].reason == "Enemigo derrotado"

    def test_unknown_action_is_only_recorded(self, tutorial) -> None:
        tutorial.register_player_action("looked_around")
        assert tutorial.tracker.player_actions == ["looked_around"]
        assert tutorial.state.phase_progress == 0

    def test_named_event(self, tutorial) -> None:
        tutorial.register_event("hook_resolved")
        assert tutorial.phase == "DEVELOPMENT"

    def test_boss_defeated_ends_climax(self, tutorial) -> None:
        tutorial.force_phase_transition("CLIMAX")
        tutorial.register_boss_defeated()
        assert tutorial.phase == "RESOLUTION"
        assert "Boss derrotado" in [e.description for e in tutorial.state.narrative_log]

    def test_main_objective_ends_climax(self, tutorial) -> None:
        tutorial.force_phase_transition("CLIMAX")
        tutorial.register_main_objective_complete()
        assert tutorial.phase == "RESOLUTION"

    def test_log_is_capped(self, tutorial) -> None:
        for _ in range(60):
            tutorial.register_main_objective_complete()
        assert len(tutorial.state.narrative_log) == 50


# ── Context and integration ──────────────────────────────────


class TestContext:
    def test_narrative_context(self, tutorial) -> None:
        context = tutorial.generate_narrative_context()
        assert context.phase_instructions.startswith("OBJETIVO: Capturar la atención")
        assert context.tension_guidance.startswith("TENSIÓN MEDIA")
        assert context.threads_summary == "HILOS NARRATIVOS: Ninguno introducido aún"
        assert len(context.recent_events) == 1

    def test_recent_events_are_the_last_five(self, tutorial) -> None:
        for _ in range(8):
            tutorial.register_main_objective_complete()
        context = tutorial.generate_narrative_context()
        assert context.recent_events == tutorial.state.narrative_log[-5:]

    def test_threads_summary(self, tutorial) -> None:
        tutorial.introduce_thread("La profecía", importance="MAIN")
        summary = tutorial.generate_narrative_context().threads_summary
        assert summary == "HILOS NARRATIVOS ACTIVOS:\n🆕 [PRINCIPAL] La profecía"

    def test_context_prompt(self, tutorial) -> None:
        prompt = tutorial.generate_context_prompt()
        assert "CONTEXTO NARRATIVO - CAPÍTULO 1: El Despertar del Héroe" in prompt
        assert "FASE ACTUAL: Gancho Inicial (0% completado)" in prompt
        assert "TENSIÓN DRAMÁTICA: 30/100" in prompt
        assert "- [MAJOR] Capítulo iniciado: El Despertar del Héroe" in prompt
        assert "ANTAGONISTA" not in prompt
        assert prompt.rstrip().endswith("Ofrece opciones con consecuencias significativas")

    def test_context_prompt_with_antagonist(self, manager) -> None:
        manager.update_player_context(level=2)
        manager.start_new_chapter("chapter_hidden_threat")
        prompt = manager.generate_context_prompt()
        assert f"ANTAGONISTA: {manager.state.chapter.antagonist.name}" in prompt
        assert "Nivel de amenaza: 3/10" in prompt


class TestIntegration:
    def test_scaling_without_chapter(self, manager) -> None:
        assert manager.get_combat_scaling() == 1.0

    @pytest.mark.parametrize("phase,expected", [
        ("HOOK", 0.56),
        ("DEVELOPMENT", 0.72),
        ("CLIMAX", 0.96),
        ("RESOLUTION", 0.4),
    ])
    def test_scaling_by_phase(self, tutorial, phase, expected) -> None:
        tutorial.state.phase = phase
        assert tutorial.get_combat_scaling() == pytest.approx(expected)

    @pytest.mark.parametrize("phase,quality,unique", [
        ("HOOK", 0.0, 0.02),
        ("CLIMAX", 0.0, 0.1),
        ("RESOLUTION", 0.3, 0.02),
    ])
    def test_loot_modifiers(self, tutorial, phase, quality, unique) -> None:
        tutorial.state.phase = phase
        modifiers = tutorial.get_loot_modifiers()
        assert modifiers.quality_bonus == quality
        assert modifiers.unique_chance == unique

    def test_suggested_quests(self, tutorial) -> None:
        assert tutorial.get_suggested_quests() == ["quest_survive_awakening", "quest_find_shelter"]

        tutorial.force_phase_transition("DEVELOPMENT")
        assert tutorial.get_suggested_quests() == []
        done = tutorial.introduce_thread("a", related_quests=["quest_a"])
        tutorial.introduce_thread("b", related_quests=["quest_b1", "quest_b2"])
        tutorial.resolve_thread(done.id)
        assert tutorial.get_suggested_quests() == ["quest_b1", "quest_b2"]

        tutorial.force_phase_transition("CLIMAX")
        assert tutorial.get_suggested_quests() == []

    def test_no_quests_without_chapter(self, manager) -> None:
        assert manager.get_suggested_quests() == []
