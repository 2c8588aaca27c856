"""Chapter lifecycle orchestration on top of the phase tracker.

A NarrativeManager owns one game session's narrative state: the running
chapter, its phase and tension, open threads and the narrative log.
Listeners are not called back; every change queues a domain event that
the caller drains with pop_events(), in emission order.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from datetime import datetime, timezone
from uuid import uuid4

from rpg_supreme.errors import NarrativeError
from rpg_supreme.prompts import NARRATIVE_CONTEXT_TEMPLATE, render_prompt

from .chapters import (
    ALL_CHAPTER_TEMPLATES,
    get_eligible_templates,
    interpolate,
    select_template_variables,
    select_weighted_template,
)
from .models import (
    Antagonist,
    ChapterCompleted,
    ChapterHook,
    ChapterOutcome,
    ChapterStarted,
    ChapterState,
    ChapterTemplate,
    Complication,
    ComplicationTriggered,
    HookCreated,
    LootModifiers,
    NarrativeContext,
    NarrativeDomainEvent,
    NarrativeEventType,
    NarrativeImpact,
    NarrativePhase,
    NarrativeProgress,
    NarrativeState,
    NarrativeThread,
    PhaseChanged,
    TensionChanged,
    ThreadImportance,
    ThreadIntroduced,
    ThreadResolved,
    ThreadStatus,
)
from .phase_tracker import PhaseTracker, get_phase_name, homeostatic_nudge

logger = logging.getLogger(__name__)

TUTORIAL_TEMPLATE_ID = "chapter_tutorial"
DEFAULT_PLAYER_NAME = "el héroe"
NARRATIVE_LOG_LIMIT = 50
RECENT_EVENTS = 5

COMBAT_PHASE_SCALING: dict[NarrativePhase, float] = {
    "HOOK": 0.7,
    "DEVELOPMENT": 0.9,
    "CLIMAX": 1.2,
    "RESOLUTION": 0.5,
}

# action -> (phase progress, tension)
_ACTION_EFFECTS: dict[str, tuple[float, int]] = {
    "accepted_quest": (10, 0),
    "completed_quest": (15, 0),
    "defeated_enemy": (5, 3),
}

_THREAD_ICONS: dict[ThreadStatus, str] = {
    "INTRODUCED": "🆕",
    "DEVELOPING": "📈",
    "READY_FOR_RESOLUTION": "⚡",
    "RESOLVED": "✅",
}

PHASE_INSTRUCTIONS: dict[NarrativePhase, str] = {
    "HOOK": """\
OBJETIVO: Capturar la atención del jugador inmediatamente.

HACER:
- Comenzar con acción, misterio o revelación impactante
- Establecer las stakes (qué está en juego)
- Introducir el conflicto principal rápidamente
- Dar al jugador una razón personal para involucrarse

NO HACER:
- Exposición larga o lenta
- Introducir demasiados personajes de golpe
- Dar toda la información de una vez
- Resolver el misterio inicial""",
    "DEVELOPMENT": """\
OBJETIVO: Construir tensión gradualmente mientras el jugador investiga/avanza.

HACER:
- Añadir complicaciones que aumenten las stakes
- Revelar información parcial (pistas)
- Desarrollar personajes secundarios
- Crear momentos de respiro entre tensión
- Preparar elementos para el clímax

NO HACER:
- Resolver el conflicto principal todavía
- Mantener tensión máxima constante
- Introducir demasiados hilos nuevos
- Hacer que el jugador se sienta perdido""",
    "CLIMAX": """\
OBJETIVO: Llevar la tensión al máximo con el enfrentamiento principal.

HACER:
- Convergir todos los hilos hacia el momento decisivo
- Hacer que las decisiones del jugador importen
- Crear un enfrentamiento memorable
- Subir las stakes al máximo
- Permitir que el jugador use todo lo aprendido

NO HACER:
- Resolución fácil o anticlimática
- Introducir elementos nuevos importantes
- Quitar agencia al jugador
- Extender demasiado después del pico de tensión""",
    "RESOLUTION": """\
OBJETIVO: Cerrar satisfactoriamente mientras siembras interés futuro.

HACER:
- Mostrar consecuencias de las acciones del jugador
- Resolver los hilos principales (dejar 1-2 abiertos)
- Dar recompensas tangibles y emocionales
- Plantar semillas para el próximo capítulo
- Crear un momento de cierre natural

NO HACER:
- Terminar abruptamente sin cierre
- Introducir nuevos conflictos grandes
- Resolver TODO (necesitamos ganchos)
- Extender innecesariamente""",
}

# Upper bound (exclusive) -> guidance; the last entry catches everything else.
TENSION_GUIDANCE: list[tuple[int, str]] = [
    (20, """\
TENSIÓN BAJA - Momento de respiro
- Permite exploración tranquila
- Desarrollo de personajes
- Preparación para lo que viene
- Puede subir tensión gradualmente"""),
    (50, """\
TENSIÓN MEDIA - Avance con propósito
- Mantén sensación de progreso
- Añade complicaciones menores
- Mezcla acción con investigación
- Prepara revelaciones"""),
    (80, """\
TENSIÓN ALTA - Camino al clímax
- Eventos se aceleran
- Decisiones tienen peso
- Menos tiempo para descanso
- Convergencia de hilos"""),
    (101, """\
TENSIÓN MÁXIMA - Clímax inminente
- Todo converge ahora
- Cada acción es crucial
- No hay marcha atrás
- El momento definitivo"""),
]


def tension_guidance(tension: int) -> str:
    for bound, text in TENSION_GUIDANCE:
        if tension < bound:
            return text
    return TENSION_GUIDANCE[-1][1]


class NarrativeManager:
    def __init__(
        self,
        templates: list[ChapterTemplate] | None = None,
        tracker: PhaseTracker | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.templates = templates if templates is not None else ALL_CHAPTER_TEMPLATES
        self._clock = clock
        self.tracker = tracker or PhaseTracker(clock=clock)
        self.template: ChapterTemplate | None = None
        self.template_variables: dict[str, str] = {}
        self.session_start_time = clock()
        self._events: list[NarrativeDomainEvent] = []

        # Player context for template eligibility and text
        self.player_level = 1
        self.player_name = DEFAULT_PLAYER_NAME
        self.completed_chapters: list[str] = []
        self.location: str | None = None
        self.inventory: list[str] = []

        self.state = NarrativeState(chapter=ChapterState(
            number=1,
            type="ACTION",
            title="Capítulo sin iniciar",
            main_conflict="",
            setting="",
            started_at=self._now(),
            template_id="",
        ))

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), timezone.utc)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def phase(self) -> NarrativePhase:
        return self.state.phase

    @property
    def tension(self) -> int:
        return self.state.tension_level

    def active_threads(self) -> list[NarrativeThread]:
        return [t for t in self.state.threads if t.status != "RESOLVED"]

    def pop_events(self) -> list[NarrativeDomainEvent]:
        """Return and clear the queued domain events, oldest first."""
        events, self._events = self._events, []
        return events

    # ------------------------------------------------------------------
    # Player context
    # ------------------------------------------------------------------

    def update_player_context(
        self,
        level: int | None = None,
        completed_chapters: list[str] | None = None,
        location: str | None = None,
        inventory: list[str] | None = None,
        name: str | None = None,
    ) -> None:
        if level is not None:
            self.player_level = level
        if completed_chapters is not None:
            self.completed_chapters = list(completed_chapters)
        if location is not None:
            self.location = location
        if inventory is not None:
            self.inventory = list(inventory)
        if name:
            self.player_name = name

    # ------------------------------------------------------------------
    # Chapters
    # ------------------------------------------------------------------

    def start_new_chapter(self, force_template_id: str | None = None) -> ChapterState:
        """Pick a template, roll its variables and reset the narrative state.

        A forced id that is not in the catalog falls back to normal
        selection. With nothing eligible the tutorial (or the first
        template) is used.
        """
        self.tracker.reset_for_new_chapter()
        template = self._select_template(force_template_id)

        self.template = template
        self.template_variables = select_template_variables(template)
        chapter = self._create_chapter(template, len(self.completed_chapters) + 1)

        self.state = NarrativeState(
            chapter=chapter,
            phase="HOOK",
            phase_progress=0,
            tension_level=template.hook_config.tension_boost,
        )
        self._add_event("HOOK_TRIGGERED", f"Capítulo iniciado: {chapter.title}", "MAJOR")
        logger.info("Chapter %d started from template %s", chapter.number, template.id)
        self._events.append(ChapterStarted(chapter=chapter))
        return chapter

    def _select_template(self, force_template_id: str | None) -> ChapterTemplate:
        by_id = {t.id: t for t in self.templates}
        if force_template_id:
            template = by_id.get(force_template_id)
            if template is not None:
                return template
            logger.warning(f"Unknown chapter template {force_template_id!r}; selecting by weight")

        if not self.templates:
            raise NarrativeError("No se pudo seleccionar ninguna plantilla de capítulo")

        eligible = get_eligible_templates(
            self.templates,
            self.player_level,
            self.completed_chapters,
            self.location,
            self.inventory,
        )
        if not eligible:
            logger.debug("No eligible chapter templates for level %d", self.player_level)
            return by_id.get(TUTORIAL_TEMPLATE_ID, self.templates[0])
        return select_weighted_template(eligible)

    def _create_chapter(self, template: ChapterTemplate, number: int) -> ChapterState:
        chapter = ChapterState(
            number=number,
            type=template.type,
            title=self._interpolate(template.name),
            main_conflict=self._interpolate(template.hook_config.prompt_template),
            setting=self.template_variables.get("setting", "un lugar misterioso"),
            started_at=self._now(),
            template_id=template.id,
        )
        if "antagonist" in self.template_variables:
            chapter.antagonist = Antagonist(
                name=self.template_variables["antagonist"],
                type="NPC",
                motivation=self.template_variables.get("motivation", "desconocida"),
                threat_level=min(10, math.ceil(self.player_level * 1.5)),
            )
        return chapter

    def complete_chapter(self, outcome: ChapterOutcome) -> ChapterCompleted:
        if self.template is None or not self.state.chapter.template_id:
            raise NarrativeError("No hay capítulo activo para completar")

        resolution = next((r for r in self.template.resolutions if r.outcome == outcome), None)
        if resolution is None:
            raise NarrativeError(f"No se encontró resolución para outcome: {outcome}")

        chapter = self.state.chapter
        chapter.completed = True
        chapter.outcome = outcome
        duration_ms = int((self._clock() - chapter.started_at.timestamp()) * 1000)

        hooks = [
            ChapterHook(
                id=hook_spec.id or str(uuid4()),
                type=hook_spec.type or "MYSTERY",
                description=self._interpolate(hook_spec.description),
                urgency=hook_spec.urgency or "MEDIUM",
                expires_in=hook_spec.expires_in,
            )
            for hook_spec in resolution.next_hooks
        ]
        self.state.next_chapter_hooks = hooks
        self._add_event("RESOLUTION", f"Capítulo completado: {outcome}", "PIVOTAL")
        self.completed_chapters.append(chapter.id)

        completed = ChapterCompleted(
            chapter=chapter,
            outcome=outcome,
            rewards=resolution.rewards,
            next_hooks=hooks,
            duration_ms=duration_ms,
        )
        logger.info("Chapter %d completed: %s", chapter.number, outcome)
        self._events.append(completed)
        for hook in hooks:
            self._events.append(HookCreated(hook=hook))
        return completed

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def evaluate_progress(self) -> NarrativeProgress | None:
        """Run one pacing pass. Returns None while no chapter is running."""
        if self.template is None:
            return None

        self.state.session_time = int((self._clock() - self.session_start_time) * 1000)
        progress = self.tracker.evaluate_transition(self.state, self.template)

        for complication in progress.triggered_complications:
            self._trigger_complication(complication)

        if progress.tension_delta != 0:
            self.adjust_tension(progress.tension_delta, progress.reason)

        if progress.should_transition and progress.next_phase:
            self._transition_to(progress.next_phase)
        return progress

    def advance_phase_progress(self, amount: float) -> None:
        self.state.phase_progress = max(0.0, min(100.0, self.state.phase_progress + amount))
        self.evaluate_progress()

    def force_phase_transition(self, phase: NarrativePhase) -> None:
        self._transition_to(phase)

    def _transition_to(self, new_phase: NarrativePhase) -> None:
        previous = self.state.phase
        minutes = self.tracker.get_time_in_phase()

        self.state.phase = new_phase
        self.state.phase_progress = 0
        self.tracker.reset_for_new_phase()

        nudge = homeostatic_nudge(self.state.tension_level, new_phase)
        if nudge:
            self.adjust_tension(nudge, f"Ajuste para fase {new_phase}")

        self._add_event(
            "RESOLUTION" if new_phase == "RESOLUTION" else "BREAKTHROUGH",
            f"Transición a fase: {get_phase_name(new_phase)}",
            "MAJOR",
        )
        logger.info("Narrative phase %s -> %s after %.1f min", previous, new_phase, minutes)
        self._events.append(PhaseChanged(
            previous_phase=previous,
            new_phase=new_phase,
            time_in_previous_phase=minutes,
        ))

    def _trigger_complication(self, complication: Complication) -> None:
        # The "<id>: " prefix is what the tracker looks for to skip repeats.
        self._add_event(
            "COMPLICATION_ADDED",
            f"{complication.id}: {self._interpolate(complication.description)}",
            "MODERATE",
        )
        self.adjust_tension(complication.tension_change, f"Complicación: {complication.id}")

        thread_spec = complication.new_thread
        if thread_spec is not None:
            thread = NarrativeThread(
                id=thread_spec.id or str(uuid4()),
                description=self._interpolate(thread_spec.description or ""),
                importance=thread_spec.importance,
                related_quests=list(thread_spec.related_quests),
                characters=[self._interpolate(c) for c in thread_spec.characters],
                foreshadowing=[self._interpolate(f) for f in thread_spec.foreshadowing],
            )
            self.state.threads.append(thread)
            self._events.append(ThreadIntroduced(thread=thread))

        logger.debug("Complication %s triggered", complication.id)
        self._events.append(ComplicationTriggered(complication=complication))

    # ------------------------------------------------------------------
    # Threads
    # ------------------------------------------------------------------

    def introduce_thread(
        self,
        description: str,
        importance: ThreadImportance = "SIDE",
        related_quests: list[str] | None = None,
        characters: list[str] | None = None,
        foreshadowing: list[str] | None = None,
    ) -> NarrativeThread:
        thread = NarrativeThread(
            description=description,
            importance=importance,
            related_quests=related_quests or [],
            characters=characters or [],
            foreshadowing=foreshadowing or [],
        )
        self.state.threads.append(thread)
        self._events.append(ThreadIntroduced(thread=thread))
        return thread

    def advance_thread(
        self,
        thread_id: str,
        status: ThreadStatus,
        foreshadowing: str | None = None,
    ) -> NarrativeThread | None:
        """Move a thread to `status`. Unknown ids are ignored (returns None)."""
        thread = next((t for t in self.state.threads if t.id == thread_id), None)
        if thread is None:
            return None
        thread.status = status
        if foreshadowing:
            thread.foreshadowing.append(foreshadowing)
        if status == "RESOLVED":
            self._events.append(ThreadResolved(thread=thread))
        return thread

    def resolve_thread(self, thread_id: str) -> NarrativeThread | None:
        return self.advance_thread(thread_id, "RESOLVED")

    # ------------------------------------------------------------------
    # Tension
    # ------------------------------------------------------------------

    def adjust_tension(self, delta: int, reason: str) -> None:
        previous = self.state.tension_level
        self.state.tension_level = max(0, min(100, previous + delta))
        if self.state.tension_level != previous:
            self._events.append(TensionChanged(
                previous_tension=previous,
                new_tension=self.state.tension_level,
                reason=reason,
                phase=self.state.phase,
            ))

    def set_tension(self, value: int, reason: str) -> None:
        self.adjust_tension(value - self.state.tension_level, reason)

    # ------------------------------------------------------------------
    # Gameplay signals
    # ------------------------------------------------------------------

    def register_player_action(self, action: str) -> None:
        self.tracker.register_player_action(action)
        effect = _ACTION_EFFECTS.get(action)
        if effect is None:
            return
        progress, tension = effect
        self.advance_phase_progress(progress)
        if tension:
            self.adjust_tension(tension, "Enemigo derrotado")

    def register_event(self, name: str) -> None:
        """Record a named story event (e.g. ``hook_resolved``) and re-evaluate."""
        self.tracker.register_event(name)
        self.evaluate_progress()

    def register_boss_defeated(self) -> None:
        self.tracker.mark_boss_defeated()
        self._add_event("CONFRONTATION", "Boss derrotado", "PIVOTAL")
        self.evaluate_progress()

    def register_main_objective_complete(self) -> None:
        self.tracker.mark_main_objective_complete()
        self._add_event("BREAKTHROUGH", "Objetivo principal completado", "MAJOR")
        self.evaluate_progress()

    # ------------------------------------------------------------------
    # Context for text generation
    # ------------------------------------------------------------------

    def generate_narrative_context(self) -> NarrativeContext:
        return NarrativeContext(
            state=self.state,
            phase_instructions=PHASE_INSTRUCTIONS[self.state.phase],
            tension_guidance=tension_guidance(self.state.tension_level),
            threads_summary=self._threads_summary(),
            recent_events=self.state.narrative_log[-RECENT_EVENTS:],
        )

    def generate_context_prompt(self) -> str:
        context = self.generate_narrative_context()
        chapter = self.state.chapter
        return render_prompt(NARRATIVE_CONTEXT_TEMPLATE, {
            "chapter": {"number": chapter.number, "title": chapter.title or "Sin título"},
            "phase_name": get_phase_name(self.state.phase),
            "progress": f"{self.state.phase_progress:.0f}",
            "tension": self.state.tension_level,
            "conflict": chapter.main_conflict or "Sin definir",
            "antagonist": chapter.antagonist.model_dump() if chapter.antagonist else None,
            "threads_summary": context.threads_summary,
            "phase_instructions": context.phase_instructions,
            "tension_guidance": context.tension_guidance,
            "events": [e.model_dump() for e in context.recent_events],
        }).strip()

    def _threads_summary(self) -> str:
        if not self.state.threads:
            return "HILOS NARRATIVOS: Ninguno introducido aún"
        lines = []
        for t in self.state.threads:
            tag = "[PRINCIPAL]" if t.importance == "MAIN" else ""
            lines.append(f"{_THREAD_ICONS.get(t.status, '❓')} {tag} {t.description}")
        return "HILOS NARRATIVOS ACTIVOS:\n" + "\n".join(lines)

    # ------------------------------------------------------------------
    # Integration with combat and loot
    # ------------------------------------------------------------------

    def get_combat_scaling(self) -> float:
        if self.template is None:
            return 1.0
        return self.template.climax_config.enemy_scaling * COMBAT_PHASE_SCALING[self.state.phase]

    def get_loot_modifiers(self) -> LootModifiers:
        return LootModifiers(
            quality_bonus=0.3 if self.state.phase == "RESOLUTION" else 0.0,
            unique_chance=0.1 if self.state.phase == "CLIMAX" else 0.02,
        )

    def get_suggested_quests(self) -> list[str]:
        if self.template is None:
            return []
        if self.state.phase == "HOOK":
            return list(self.template.hook_config.possible_quests)
        if self.state.phase == "DEVELOPMENT":
            return [q for t in self.active_threads() for q in t.related_quests]
        return []

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _interpolate(self, text: str) -> str:
        return interpolate(text, {**self.template_variables, "player_name": self.player_name})

    def _add_event(self, type: NarrativeEventType, description: str, impact: NarrativeImpact) -> None:
        event = self.tracker.create_narrative_event(type, description, self.state.phase, impact)
        self.state.narrative_log.append(event)
        del self.state.narrative_log[:-NARRATIVE_LOG_LIMIT]
