"""Static loot tables, keyed by enemy template id.

Every drop is rolled independently; several drops from one table can hit
in the same roll. Item ids missing from the item registry fall back to a
generic material (for `material_*` ids) or are skipped.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class GoldRange(BaseModel):
    min: int = 0
    max: int = 0


class LootDrop(BaseModel):
    item_id: str
    chance: float = Field(ge=0, le=1)
    min_quantity: int = 1
    max_quantity: int = 1


class LootTable(BaseModel):
    enemy_id: str
    guaranteed_gold: GoldRange
    drops: list[LootDrop] = Field(default_factory=list)


def _drop(item_id: str, chance: float, lo: int = 1, hi: int = 1) -> LootDrop:
    return LootDrop(item_id=item_id, chance=chance, min_quantity=lo, max_quantity=hi)


LOOT_TABLES: dict[str, LootTable] = {
    # Beasts
    "enemy_giant_rat": LootTable(
        enemy_id="enemy_giant_rat",
        guaranteed_gold=GoldRange(min=2, max=8),
        drops=[
            _drop("material_rat_tail", 0.8, 1, 2),
            _drop("material_small_cheese", 0.3),
            _drop("potion_health_minor", 0.05),
        ],
    ),
    "enemy_wolf": LootTable(
        enemy_id="enemy_wolf",
        guaranteed_gold=GoldRange(min=0, max=0),  # wolves carry no coin
        drops=[
            _drop("material_wolf_pelt", 0.9),
            _drop("material_wolf_fang", 0.6, 1, 3),
            _drop("material_wolf_raw_meat", 0.8, 1, 2),
            _drop("material_pristine_pelt", 0.08),
        ],
    ),
    # Humanoids
    "enemy_bandit": LootTable(
        enemy_id="enemy_bandit",
        guaranteed_gold=GoldRange(min=15, max=35),
        drops=[
            _drop("armor_bandit_cloak", 0.4),
            _drop("weapon_bandit_dagger", 0.15),
            _drop("weapon_iron_dagger", 0.1),
            _drop("potion_health_minor", 0.25, 1, 2),
            _drop("material_stolen_goods", 0.35, 1, 2),
        ],
    ),
    "enemy_goblin": LootTable(
        enemy_id="enemy_goblin",
        guaranteed_gold=GoldRange(min=5, max=15),
        drops=[
            _drop("material_goblin_ear", 0.75, 1, 2),
            _drop("weapon_goblin_shiv", 0.15),
            _drop("armor_goblin_rags", 0.1),
            _drop("potion_health_minor", 0.15),
            _drop("material_shiny_stone", 0.5, 1, 3),
        ],
    ),
    # Undead
    "enemy_skeleton": LootTable(
        enemy_id="enemy_skeleton",
        guaranteed_gold=GoldRange(min=0, max=5),
        drops=[
            _drop("material_bone", 0.9, 2, 5),
            _drop("material_ancient_coin", 0.2, 1, 3),
            _drop("weapon_bone_club", 0.1),
            _drop("weapon_rusty_sword", 0.08),
        ],
    ),
}


def get_loot_table(enemy_id: str) -> LootTable | None:
    return LOOT_TABLES.get(enemy_id)


def all_loot_tables() -> list[LootTable]:
    return list(LOOT_TABLES.values())
