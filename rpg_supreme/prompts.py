"""Handlebars rendering for the narrative context prompt."""

from collections.abc import Callable
from typing import Any

import pybars


_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


# ── Custom Handlebars helpers ────────────────────────────


def _helper_last(this, options, items, count):
    """{{#last array N}}...{{/last}} iterates over the last N items."""
    result = []
    for item in list(items)[-int(count):]:
        result.extend(options["fn"](item))
    return result


_HELPERS: dict[str, Callable] = {
    "last": _helper_last,
}


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context, helpers=_HELPERS))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


# Triple-stash for free text so quotes and ampersands are not HTML-escaped.
NARRATIVE_CONTEXT_TEMPLATE = """\
═══════════════════════════════════════════════════════════
CONTEXTO NARRATIVO - CAPÍTULO {{chapter.number}}: {{{chapter.title}}}
═══════════════════════════════════════════════════════════

FASE ACTUAL: {{phase_name}} ({{progress}}% completado)
TENSIÓN DRAMÁTICA: {{tension}}/100

CONFLICTO PRINCIPAL:
{{{conflict}}}

{{#if antagonist}}ANTAGONISTA: {{{antagonist.name}}}
Motivación: {{{antagonist.motivation}}}
Nivel de amenaza: {{antagonist.threat_level}}/10{{/if}}

{{{threads_summary}}}

═══════════════════════════════════════════════════════════
INSTRUCCIONES PARA ESTA FASE ({{phase_name}})
═══════════════════════════════════════════════════════════

{{{phase_instructions}}}

{{{tension_guidance}}}

EVENTOS RECIENTES:
{{#last events 5}}- [{{impact}}] {{{description}}}
{{/last}}
REGLAS NARRATIVAS:
- Mantén consistencia con eventos previos del log
- No resuelvas hilos principales en DEVELOPMENT
- Siembra pistas para revelaciones futuras (foreshadowing)
- Cada respuesta debe avanzar al menos un hilo
- Ofrece opciones con consecuencias significativas
"""
