"""Combat engine: initiative, enemy AI and turn resolution."""

from . import enemy_ai, initiative  # noqa: F401
from .manager import (  # noqa: F401
    SKILL_DAMAGE_MULTIPLIERS,
    CombatManager,
    calculate_crit_chance,
    calculate_damage,
    calculate_hit_chance,
    character_to_combatant,
    create_enemy_combatant,
    effective_attribute,
)
