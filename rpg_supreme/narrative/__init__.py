"""Narrative arc: chapter templates, phase pacing and tension."""

from .chapters import ALL_CHAPTER_TEMPLATES, CHAPTER_TEMPLATES_BY_ID  # noqa: F401
from .manager import NarrativeManager  # noqa: F401
from .phase_tracker import (  # noqa: F401
    DEFAULT_PHASE_TRANSITIONS,
    PhaseTracker,
    get_next_phase,
    get_phase_name,
    is_phase_after,
)
