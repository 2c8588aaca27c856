"""Loot engine: static loot tables and the per-enemy loot roll."""

from .manager import (  # noqa: F401
    LootOptions,
    LootResult,
    LootStack,
    Reward,
    generate_loot,
    loot_to_rewards,
)
from .tables import LOOT_TABLES, LootDrop, LootTable, all_loot_tables, get_loot_table  # noqa: F401
