"""Chapter template catalog and selection helpers.

Each template defines a hook, a set of complications, a climax and the
resolutions it supports. `{{name}}` placeholders in its text are filled from
one randomly picked option per entry in `variables`.
"""

from __future__ import annotations

import random
import re
import textwrap

from .models import ChapterTemplate


def _text(block: str) -> str:
    return textwrap.dedent(block).strip()


CHAPTER_TUTORIAL = ChapterTemplate.model_validate({
    "id": "chapter_tutorial",
    "type": "ACTION",
    "name": "El Despertar del Héroe",
    "description": "Primer encuentro del héroe con el peligro. Introduce mecánicas básicas.",
    "requirements": {"max_level": 1, "completed_chapters": []},
    "hook_config": {
        "type": "ATTACK",
        "tension_boost": 30,
        "prompt_template": _text("""
            El jugador despierta en {{setting}} con recuerdos fragmentados.
            Un peligro inmediato ({{threat}}) lo obliga a actuar sin tiempo para pensar.
            Debe encontrar {{objective}} para sobrevivir las próximas horas.

            TONO: Urgente pero con esperanza. El jugador debe sentir que puede lograrlo.
            OBJETIVO: Enseñar comandos básicos (moverse, atacar, usar objetos).
        """),
        "possible_quests": ["quest_survive_awakening", "quest_find_shelter"],
    },
    "complications": [
        {
            "id": "tutorial_first_ally",
            "trigger": {"type": "progress", "at_percent": 30},
            "description": "Un misterioso extraño aparece y ofrece ayuda. ¿Se puede confiar?",
            "tension_change": -10,
            "new_thread": {
                "id": "thread_mysterious_ally",
                "description": "Alianza con el misterioso extraño",
                "importance": "SIDE",
                "characters": ["{{ally_name}}"],
                "foreshadowing": ["Conoce demasiado sobre tu pasado", "Evita hablar de sí mismo"],
            },
        },
        {
            "id": "tutorial_reveal_threat",
            "trigger": {"type": "progress", "at_percent": 60},
            "description": "La amenaza inicial es solo una avanzadilla de algo mayor",
            "tension_change": 15,
        },
    ],
    "climax_config": {
        "type": "BOSS_FIGHT",
        "enemy_scaling": 0.8,
        "required_threads_resolved": 0,
        "prompt_template": _text("""
            El jugador enfrenta al líder de {{threat}}.
            Este enemigo es más fuerte pero tiene una debilidad obvia.
            El jugador debe usar lo aprendido ({{learned_skill}}) para derrotarlo.

            BALANCE: Victoria posible con estrategia básica. Permitir errores.
            ENSEÑANZA: Reforzar mecánicas de combate.
        """),
    },
    "resolutions": [
        {
            "outcome": "VICTORY",
            "conditions": [{"type": "boss_defeated"}],
            "rewards": {
                "xp_multiplier": 1.2,
                "gold_multiplier": 1,
                "bonus_items": ["item_starter_weapon_upgraded"],
                "unlocked_content": ["location_village", "chapter_templates_tier1"],
            },
            "next_hooks": [{
                "id": "hook_master_mention",
                "type": "MYSTERY",
                "description": 'El líder derrotado menciona un "Maestro" antes de morir',
                "urgency": "MEDIUM",
            }],
            "epilogue_prompt": _text("""
                Con el peligro inmediato resuelto, {{player_name}} puede respirar por primera vez.
                Pero las últimas palabras del enemigo resonan: "El Maestro sabrá de ti..."
                Un nuevo camino se abre. El pueblo cercano podría tener respuestas.

                TONO: Alivio mezclado con intriga. Invitar a continuar.
            """),
        },
        {
            "outcome": "PARTIAL_SUCCESS",
            "conditions": [{"type": "time_elapsed", "minutes": 20}],
            "rewards": {"xp_multiplier": 0.8, "gold_multiplier": 0.5},
            "next_hooks": [{
                "id": "hook_enemy_escaped",
                "type": "THREAT",
                "description": "El líder escapó y buscará venganza",
                "urgency": "HIGH",
            }],
            "epilogue_prompt": _text("""
                {{player_name}} logró sobrevivir, pero el líder enemigo escapó jurando venganza.
                El pueblo podría ofrecer refugio... por ahora.

                TONO: Victoria agridulce. El peligro continúa.
            """),
        },
    ],
    "weight": 100,
    "variables": {
        "setting": ["una cueva oscura", "un bosque en llamas", "las ruinas de una torre"],
        "threat": ["goblins salvajes", "bandidos desesperados", "bestias corrompidas"],
        "objective": ["una salida segura", "agua y comida", "un arma para defenderse"],
        "ally_name": ["Kael el Errante", "Mira la Silenciosa", "Theron el Viejo"],
        "learned_skill": ["esquivar ataques", "usar el entorno", "atacar puntos débiles"],
    },
})


CHAPTER_HIDDEN_THREAT = ChapterTemplate.model_validate({
    "id": "chapter_hidden_threat",
    "type": "MYSTERY",
    "name": "La Amenaza Oculta",
    "description": "Algo siniestro acecha en un pueblo aparentemente tranquilo.",
    "requirements": {"min_level": 2},
    "hook_config": {
        "type": "DISCOVERY",
        "tension_boost": 20,
        "prompt_template": _text("""
            Mientras {{player_name}} explora {{location}}, encuentra evidencia perturbadora:
            {{mystery_element}}.
            Los lugareños actúan extraño. Evitan ciertas preguntas. Algo no está bien.

            TONO: Misterio creciente. Sembrar sospechas sobre múltiples personajes.
        """),
        "possible_quests": ["quest_investigate_village", "quest_find_clues", "quest_gain_trust"],
    },
    "complications": [
        {
            "id": "mystery_false_suspect",
            "trigger": {"type": "progress", "at_percent": 25},
            "description": "El sospechoso más obvio resulta ser inocente... o víctima",
            "tension_change": 10,
        },
        {
            "id": "mystery_disappearance",
            "trigger": {"type": "progress", "at_percent": 50},
            "description": "Alguien cercano al jugador desaparece misteriosamente",
            "tension_change": 20,
            "new_thread": {
                "id": "thread_missing_person",
                "description": "Búsqueda del desaparecido",
                "importance": "MAIN",
                "characters": ["{{missing_person}}"],
                "related_quests": ["quest_find_missing"],
            },
        },
        {
            "id": "mystery_true_reveal",
            "trigger": {"type": "progress", "at_percent": 75},
            "description": "El verdadero culpable se revela de forma impactante",
            "tension_change": 15,
        },
    ],
    "climax_config": {
        "type": "REVELATION",
        "enemy_scaling": 1,
        "required_threads_resolved": 1,
        "prompt_template": _text("""
            La verdad sale a la luz. {{antagonist}} era el responsable todo el tiempo.
            Sus motivos son {{motivation}}.
            {{player_name}} debe decidir: ¿justicia o misericordia?

            TONO: Confrontación moral. La decisión del jugador importa.
        """),
    },
    "resolutions": [
        {
            "outcome": "VICTORY",
            "conditions": [{"type": "mystery_solved"}, {"type": "antagonist_dealt"}],
            "rewards": {
                "xp_multiplier": 1.3,
                "gold_multiplier": 1,
                "reputation_changes": [{"faction": "village", "amount": 50}],
            },
            "next_hooks": [{
                "id": "hook_conspiracy",
                "type": "THREAT",
                "description": "El culpable trabajaba para alguien más poderoso",
                "urgency": "HIGH",
            }],
            "epilogue_prompt": _text("""
                La verdad trajo paz al pueblo, pero también reveló una conspiración más profunda.
                El {{antagonist}} era solo un peón. Las sombras tienen un maestro.
                {{player_name}} ahora tiene un nuevo enemigo que conoce su nombre.

                TONO: Satisfacción por resolver el misterio, pero nueva amenaza emerge.
            """),
        },
        {
            "outcome": "PYRRHIC_VICTORY",
            "conditions": [{"type": "mystery_solved"}],
            "rewards": {
                "xp_multiplier": 1.1,
                "gold_multiplier": 0.8,
                "reputation_changes": [{"faction": "village", "amount": -20}],
            },
            "next_hooks": [{
                "id": "hook_consequence",
                "type": "RELATIONSHIP",
                "description": "La forma de resolver el misterio dejó heridas",
                "urgency": "MEDIUM",
            }],
            "epilogue_prompt": _text("""
                El misterio fue resuelto, pero a un costo. El pueblo no olvidará cómo actuó {{player_name}}.
                A veces la verdad duele más que la mentira.

                TONO: Victoria amarga. Las acciones tienen consecuencias.
            """),
        },
    ],
    "weight": 30,
    "variables": {
        "location": ["el pueblo de Ravenhollow", "la aldea de Millbrook", "el asentamiento de Thornwick"],
        "mystery_element": [
            "sangre fresca que no es de ningún animal conocido",
            "símbolos extraños tallados en las puertas",
            "un diario con entradas cada vez más perturbadoras",
        ],
        "missing_person": ["el tabernero amable", "el niño curioso", "el viejo sabio del pueblo"],
        "antagonist": ["el alcalde respetado", "el curandero querido", "el comerciante amigable"],
        "motivation": [
            "desesperación por salvar a un ser querido",
            "pacto con fuerzas oscuras por poder",
            "venganza por una injusticia del pasado",
        ],
    },
})


CHAPTER_INCOMING_HORDE = ChapterTemplate.model_validate({
    "id": "chapter_incoming_horde",
    "type": "ACTION",
    "name": "La Horda se Acerca",
    "description": "Una fuerza enemiga marcha hacia una posición vulnerable. El tiempo es limitado.",
    "requirements": {"min_level": 3},
    "hook_config": {
        "type": "OMEN",
        "tension_boost": 35,
        "prompt_template": _text("""
            Un explorador herido llega con noticias terribles: {{enemy_force}} marcha hacia {{location}}.
            Llegarán en {{time_limit}}. No hay tiempo para huir, solo para prepararse.
            {{player_name}} debe organizar la defensa o todo estará perdido.

            TONO: Urgencia extrema. Cuenta regresiva palpable.
        """),
        "possible_quests": ["quest_fortify_defenses", "quest_gather_allies", "quest_sabotage_enemy"],
    },
    "complications": [
        {
            "id": "horde_traitor",
            "trigger": {"type": "progress", "at_percent": 30},
            "description": "Se descubre un traidor entre los defensores",
            "tension_change": 15,
            "new_thread": {
                "id": "thread_traitor",
                "description": "Desenmascarar y lidiar con el traidor",
                "importance": "SIDE",
                "characters": ["{{traitor}}"],
                "foreshadowing": ["Nerviosismo sospechoso", "Ausencias sin explicar"],
            },
        },
        {
            "id": "horde_early_scouts",
            "trigger": {"type": "time", "after_minutes": 10},
            "description": "Exploradores enemigos llegan antes de tiempo",
            "tension_change": 12,
        },
        {
            "id": "horde_unexpected_ally",
            "trigger": {"type": "progress", "at_percent": 55},
            "description": "Ayuda inesperada llega de una fuente improbable",
            "tension_change": -8,
        },
    ],
    "climax_config": {
        "type": "SHOWDOWN",
        "enemy_scaling": 1.3,
        "required_threads_resolved": 0,
        "prompt_template": _text("""
            La horda llega. El momento de la verdad.
            Las defensas preparadas ({{defenses}}) serán puestas a prueba.
            {{player_name}} debe liderar la defensa y enfrentar al {{enemy_leader}}.

            TONO: Épico y desesperado. Cada acción cuenta.
        """),
    },
    "resolutions": [
        {
            "outcome": "VICTORY",
            "conditions": [{"type": "boss_defeated"}, {"type": "main_objective_complete"}],
            "rewards": {
                "xp_multiplier": 1.5,
                "gold_multiplier": 1.3,
                "bonus_items": ["item_trophy_enemy_banner"],
                "reputation_changes": [{"faction": "defenders", "amount": 100}],
                "unlocked_content": ["title_defender"],
            },
            "next_hooks": [{
                "id": "hook_enemy_retreat",
                "type": "OPPORTUNITY",
                "description": "El enemigo en retirada dejó suministros. ¿Perseguir o consolidar?",
                "urgency": "MEDIUM",
            }],
            "epilogue_prompt": _text("""
                Contra todo pronóstico, {{location}} resistió. {{player_name}} es aclamado como héroe.
                Pero en la distancia, el estandarte enemigo aún ondea. Esto fue solo una batalla.
                La guerra continúa.

                TONO: Triunfo épico. El jugador es un héroe reconocido.
            """),
        },
        {
            "outcome": "ESCAPE",
            "conditions": [{"type": "time_elapsed", "minutes": 25}],
            "rewards": {"xp_multiplier": 0.7, "gold_multiplier": 0.3},
            "next_hooks": [{
                "id": "hook_refugees",
                "type": "RELATIONSHIP",
                "description": "Los supervivientes buscan un nuevo hogar. Te miran para liderarlos.",
                "urgency": "HIGH",
            }],
            "epilogue_prompt": _text("""
                {{location}} cayó, pero no todos perecieron. {{player_name}} logró salvar a algunos.
                El peso de la derrota es real, pero también el valor de cada vida salvada.
                Habrá tiempo para la venganza.

                TONO: Derrota pero no destrucción. Semilla de esperanza.
            """),
        },
    ],
    "weight": 25,
    "variables": {
        "enemy_force": ["una horda de orcos", "un ejército de no-muertos", "mercenarios despiadados"],
        "location": ["el fuerte de Highwatch", "el pueblo de Millbrook", "el paso montañoso"],
        "time_limit": ["el amanecer", "tres días", "antes del anochecer"],
        "traitor": ["el capitán de la guardia", "el comerciante de armas", "el curandero del pueblo"],
        "defenses": ["barricadas improvisadas", "trampas en el camino", "arqueros en las torres"],
        "enemy_leader": ["Warlord Grakk", "el Caballero Negro", "Comandante Vex"],
    },
})


CHAPTER_BEYOND_THE_MAP = ChapterTemplate.model_validate({
    "id": "chapter_beyond_the_map",
    "type": "EXPLORATION",
    "name": "Más Allá del Mapa",
    "description": "Expedición a tierras inexploradas llenas de maravillas y peligros.",
    "requirements": {"min_level": 2},
    "hook_config": {
        "type": "DISCOVERY",
        "tension_boost": 15,
        "prompt_template": _text("""
            Un mapa antiguo revela la existencia de {{lost_place}}.
            Los rumores hablan de {{treasure}}, pero también de {{danger}}.
            {{player_name}} tiene la oportunidad de ser el primero en generaciones en explorarlo.

            TONO: Maravilla y aventura. El mundo es vasto y misterioso.
        """),
        "possible_quests": ["quest_reach_destination", "quest_map_territory", "quest_find_artifacts"],
    },
    "complications": [
        {
            "id": "exploration_terrain",
            "trigger": {"type": "progress", "at_percent": 20},
            "description": "El terreno es más peligroso de lo esperado",
            "tension_change": 10,
        },
        {
            "id": "exploration_not_alone",
            "trigger": {"type": "progress", "at_percent": 45},
            "description": "Señales de que alguien más busca lo mismo",
            "tension_change": 12,
            "new_thread": {
                "id": "thread_rival_explorer",
                "description": "Competencia con otro explorador",
                "importance": "SIDE",
                "characters": ["{{rival}}"],
                "foreshadowing": ["Huellas recientes", "Campamento abandonado"],
            },
        },
        {
            "id": "exploration_guardian",
            "trigger": {"type": "progress", "at_percent": 70},
            "description": "El lugar tiene un guardián ancestral",
            "tension_change": 18,
        },
    ],
    "climax_config": {
        "type": "REVELATION",
        "enemy_scaling": 1.1,
        "required_threads_resolved": 0,
        "prompt_template": _text("""
            {{player_name}} finalmente llega al corazón de {{lost_place}}.
            Lo que encuentra supera las expectativas: {{revelation}}.
            Pero el guardián {{guardian}} exige una prueba antes de permitir el paso.

            TONO: Asombro mezclado con desafío. El descubrimiento tiene un precio.
        """),
    },
    "resolutions": [
        {
            "outcome": "VICTORY",
            "conditions": [{"type": "main_objective_complete"}],
            "rewards": {
                "xp_multiplier": 1.4,
                "gold_multiplier": 1.5,
                "bonus_items": ["item_ancient_artifact"],
                "unlocked_content": ["location_{{lost_place}}", "lore_ancient_civilization"],
            },
            "next_hooks": [{
                "id": "hook_artifact_power",
                "type": "MYSTERY",
                "description": "El artefacto encontrado tiene poderes que apenas comprendes",
                "urgency": "MEDIUM",
            }],
            "epilogue_prompt": _text("""
                {{player_name}} ha logrado lo imposible. {{lost_place}} ya no es leyenda.
                El conocimiento ganado abre puertas a lugares aún más remotos.
                Pero con cada descubrimiento, el mundo se vuelve más grande... y más peligroso.

                TONO: Logro y maravilla. El mundo tiene más secretos esperando.
            """),
        },
        {
            "outcome": "PARTIAL_SUCCESS",
            "conditions": [{"type": "time_elapsed", "minutes": 30}],
            "rewards": {
                "xp_multiplier": 1,
                "gold_multiplier": 0.8,
                "unlocked_content": ["location_{{lost_place}}_partial"],
            },
            "next_hooks": [{
                "id": "hook_return_prepared",
                "type": "OPPORTUNITY",
                "description": "Sabes el camino ahora. Podrás volver mejor preparado.",
                "urgency": "LOW",
            }],
            "epilogue_prompt": _text("""
                El viaje no fue en vano. {{player_name}} ahora conoce el camino a {{lost_place}}.
                Queda mucho por explorar, pero eso será para otro día.
                El mapa personal del héroe se ha expandido.

                TONO: Progreso parcial pero valioso. La aventura continúa.
            """),
        },
    ],
    "weight": 20,
    "variables": {
        "lost_place": ["las Ruinas de Solaria", "el Valle Olvidado", "la Ciudad Flotante de Aether"],
        "treasure": [
            "un artefacto de poder inmenso",
            "conocimiento perdido de los antiguos",
            "una fuente de magia pura",
        ],
        "danger": [
            "criaturas que no deberían existir",
            "trampas ancestrales",
            "la maldición de sus antiguos habitantes",
        ],
        "rival": ["Helena la Cazadora de Reliquias", "el misterioso Colector", "tu antiguo mentor"],
        "guardian": ["un golem de cristal", "el espíritu del último guardián", "una esfinge sabia"],
        "revelation": [
            "una civilización que ascendió a otro plano",
            "el origen del mal que asola la tierra",
            "la tumba de un dios olvidado",
        ],
    },
})


CHAPTER_LURKING_DARKNESS = ChapterTemplate.model_validate({
    "id": "chapter_lurking_darkness",
    "type": "HORROR",
    "name": "Lo que Acecha en la Oscuridad",
    "description": "Algo terrible ha despertado. La supervivencia es la única prioridad.",
    "requirements": {"min_level": 4},
    "hook_config": {
        "type": "ATTACK",
        "tension_boost": 40,
        "prompt_template": _text("""
            Las luces de {{location}} parpadean y mueren. En la oscuridad, algo se mueve.
            Los gritos comienzan. Nadie sabe qué es, pero {{horror_sign}}.
            {{player_name}} debe sobrevivir hasta {{escape_condition}}.

            TONO: Terror creciente. Lo desconocido es el peor enemigo.
        """),
        "possible_quests": ["quest_survive_night", "quest_find_survivors", "quest_discover_weakness"],
    },
    "complications": [
        {
            "id": "horror_first_victim",
            "trigger": {"type": "time", "after_minutes": 3},
            "description": "Alguien cercano cae ante la criatura",
            "tension_change": 20,
        },
        {
            "id": "horror_false_safety",
            "trigger": {"type": "progress", "at_percent": 35},
            "description": "Un refugio aparentemente seguro resulta ser una trampa",
            "tension_change": 15,
        },
        {
            "id": "horror_weakness_hint",
            "trigger": {"type": "progress", "at_percent": 60},
            "description": "Se descubre una pista sobre cómo dañar a la criatura",
            "tension_change": -5,
            "new_thread": {
                "id": "thread_weakness",
                "description": "Descubrir la debilidad del horror",
                "importance": "MAIN",
                "related_quests": ["quest_find_weapon"],
                "foreshadowing": ["La criatura evita {{weakness}}"],
            },
        },
    ],
    "climax_config": {
        "type": "ESCAPE",
        "enemy_scaling": 1.5,
        "required_threads_resolved": 1,
        "prompt_template": _text("""
            La única oportunidad de {{player_name}} es {{climax_action}}.
            El horror está cerca. Puede sentir su presencia helada.
            Es ahora o nunca.

            TONO: Desesperación máxima. Victoria = supervivencia.
        """),
    },
    "resolutions": [
        {
            "outcome": "VICTORY",
            "conditions": [{"type": "boss_defeated"}],
            "rewards": {
                "xp_multiplier": 1.6,
                "gold_multiplier": 0.5,
                "bonus_items": ["item_trophy_horror"],
                "unlocked_content": ["knowledge_eldritch", "resistance_fear"],
            },
            "next_hooks": [{
                "id": "hook_horror_origin",
                "type": "MYSTERY",
                "description": "¿Qué despertó a esta criatura? Hay más donde vino.",
                "urgency": "HIGH",
            }],
            "epilogue_prompt": _text("""
                Contra toda lógica, {{player_name}} destruyó al horror. O al menos, a su forma física.
                Los susurros dicen que estas cosas no mueren realmente.
                Pero por ahora, la oscuridad retrocede. {{player_name}} ha mirado al abismo y sobrevivido.

                TONO: Victoria traumática. Las cicatrices son reales.
            """),
        },
        {
            "outcome": "ESCAPE",
            "conditions": [{"type": "main_objective_complete"}],
            "rewards": {"xp_multiplier": 1.2, "gold_multiplier": 0.3},
            "next_hooks": [{
                "id": "hook_horror_follows",
                "type": "THREAT",
                "description": "El horror no fue destruido. Sigue acechando.",
                "urgency": "CRITICAL",
                "expires_in": 3,
            }],
            "epilogue_prompt": _text("""
                {{player_name}} escapó, pero otros no tuvieron tanta suerte.
                El sol sale, pero no hay alivio. La criatura sigue ahí fuera.
                Volverá. Siempre vuelven.

                TONO: Supervivencia con costo. El horror no ha terminado.
            """),
        },
    ],
    "weight": 15,
    "variables": {
        "location": ["la mansión abandonada", "las minas profundas", "el pueblo durante el eclipse"],
        "horror_sign": [
            "los que mueren no permanecen muertos",
            "el frío antinatural congela el alma",
            "las sombras tienen vida propia",
        ],
        "escape_condition": ["el amanecer", "llegar al santuario", "destruir el foco del mal"],
        "weakness": ["la luz pura", "el sonido de campanas", "la sal bendita"],
        "climax_action": ["alcanzar la salida", "completar el ritual de sellado", "destruir el corazón oscuro"],
    },
})


ALL_CHAPTER_TEMPLATES: list[ChapterTemplate] = [
    CHAPTER_TUTORIAL,
    CHAPTER_HIDDEN_THREAT,
    CHAPTER_INCOMING_HORDE,
    CHAPTER_BEYOND_THE_MAP,
    CHAPTER_LURKING_DARKNESS,
]

CHAPTER_TEMPLATES_BY_ID: dict[str, ChapterTemplate] = {t.id: t for t in ALL_CHAPTER_TEMPLATES}


# ── Selection ───────────────────────────────────────────────


def get_eligible_templates(
    templates: list[ChapterTemplate],
    player_level: int,
    completed_chapters: list[str],
    location: str | None = None,
    inventory: list[str] | None = None,
) -> list[ChapterTemplate]:
    """Templates whose requirements the player meets.

    Location gates apply only when a location is known, item gates only
    when an inventory is given.
    """
    eligible = []
    for template in templates:
        req = template.requirements
        if req is not None:
            if req.min_level is not None and player_level < req.min_level:
                continue
            if req.max_level is not None and player_level > req.max_level:
                continue
            if not all(c in completed_chapters for c in req.completed_chapters):
                continue
            if req.in_location and location and location not in req.in_location:
                continue
            if req.has_item and inventory is not None and not all(i in inventory for i in req.has_item):
                continue
        eligible.append(template)
    return eligible


def select_weighted_template(templates: list[ChapterTemplate]) -> ChapterTemplate:
    if not templates:
        raise ValueError("No hay plantillas elegibles")
    if len(templates) == 1:
        return templates[0]

    roll = random.random() * sum(t.weight for t in templates)
    for template in templates:
        roll -= template.weight
        if roll <= 0:
            return template
    return templates[0]


def select_template_variables(template: ChapterTemplate) -> dict[str, str]:
    return {key: random.choice(options) for key, options in template.variables.items() if options}


def interpolate(text: str, variables: dict[str, str]) -> str:
    """Replace `{{key}}` with its value; unknown placeholders stay as they are."""
    def _sub(match: re.Match) -> str:
        return variables.get(match.group(1), match.group(0))

    return re.sub(r"\{\{(\w+)\}\}", _sub, text)
