"""Loot generation for defeated enemies.

Gold:  uniform integer in the table's range, times gold_multiplier, then
       times 1 + 1% per luck point above 10 (floored after each step).
Items: each drop rolls independently with chance * drop_chance_multiplier,
       times 1 + 0.5% per luck point above 10, capped at 1. Quantity is
       uniform in [min, max] times quantity_multiplier, at least 1.
"""

from __future__ import annotations

import logging
import math
import random
from typing import Literal

from pydantic import BaseModel, Field

from rpg_supreme.content.items import ITEMS, create_item
from rpg_supreme.models import Item

from .tables import GoldRange, LootDrop, get_loot_table

logger = logging.getLogger(__name__)

NOTHING_FOUND = "No se encontró nada de valor."

# name, description, value
_MATERIALS: dict[str, tuple[str, str, int]] = {
    "material_rat_tail": ("Cola de Rata", "Una cola de rata. Algunos alquimistas la compran.", 2),
    "material_small_cheese": ("Queso Pequeño", "Un trozo de queso mordisqueado.", 1),
    "material_wolf_pelt": ("Piel de Lobo", "Una piel de lobo en buen estado.", 15),
    "material_wolf_fang": ("Colmillo de Lobo", "Un colmillo afilado de lobo.", 5),
    "material_pristine_pelt": ("Piel Prístina", "Una piel de lobo perfecta, muy valiosa.", 50),
    "material_stolen_goods": ("Bienes Robados", "Objetos robados de dudosa procedencia.", 10),
    "material_goblin_ear": ("Oreja de Goblin", "Prueba de goblin derrotado.", 3),
    "material_shiny_stone": ("Piedra Brillante", "Una piedra que brilla. A los goblins les gustan.", 1),
    "material_bone": ("Hueso", "Un hueso antiguo.", 1),
    "material_ancient_coin": ("Moneda Antigua", "Una moneda de una era olvidada.", 8),
}


class LootOptions(BaseModel):
    drop_chance_multiplier: float = 1.0
    gold_multiplier: float = 1.0
    quantity_multiplier: float = 1.0
    luck: int = 10


class LootStack(BaseModel):
    item: Item
    quantity: int


class LootResult(BaseModel):
    gold: int = 0
    items: list[LootStack] = Field(default_factory=list)
    experience_gained: int = 0
    description: str = NOTHING_FOUND


class Reward(BaseModel):
    type: Literal["experience", "gold", "item"]
    amount: int
    item_id: str | None = None
    item: Item | None = None
    description: str


def generate_loot(
    enemy_id: str,
    enemy_experience: int = 0,
    options: LootOptions | None = None,
) -> LootResult:
    """Roll gold and items for one defeated enemy.

    A missing loot table is not an error: the result is empty and the
    experience passes straight through.
    """
    opts = options or LootOptions()
    table = get_loot_table(enemy_id)
    if table is None:
        logger.debug("No loot table for %r", enemy_id)
        return LootResult(experience_gained=enemy_experience)

    gold = _roll_gold(table.guaranteed_gold, opts)
    items = _roll_items(table.drops, opts)
    return LootResult(
        gold=gold,
        items=items,
        experience_gained=enemy_experience,
        description=_describe(gold, items, enemy_experience),
    )


def _roll_gold(gold_range: GoldRange, opts: LootOptions) -> int:
    if gold_range.max <= 0:
        return 0
    base = random.randint(gold_range.min, gold_range.max)
    gold = math.floor(base * opts.gold_multiplier)
    luck_bonus = max(0, opts.luck - 10) * 0.01
    return math.floor(gold * (1 + luck_bonus))


def _roll_items(drops: list[LootDrop], opts: LootOptions) -> list[LootStack]:
    luck_bonus = max(0, opts.luck - 10) * 0.005
    stacks: list[LootStack] = []
    for drop in drops:
        chance = min(1.0, drop.chance * opts.drop_chance_multiplier * (1 + luck_bonus))
        if random.random() > chance:
            continue
        base = random.randint(drop.min_quantity, drop.max_quantity)
        quantity = max(1, math.floor(base * opts.quantity_multiplier))
        item = _create_item_from_drop(drop.item_id)
        if item is not None:
            stacks.append(LootStack(item=item, quantity=quantity))
    return stacks


def _create_item_from_drop(item_id: str) -> Item | None:
    if item_id in ITEMS:
        return create_item(item_id)
    if item_id.startswith("material_"):
        return _create_material(item_id)
    logger.warning(f"Loot table references unknown item {item_id!r}; skipped")
    return None


def _create_material(item_id: str) -> Item:
    fallback_name = item_id.removeprefix("material_").replace("_", " ")
    name, description, value = _MATERIALS.get(
        item_id, (fallback_name, "Un material de utilidad desconocida.", 1),
    )
    return Item(
        template_id=item_id,
        name=name,
        description=description,
        type="material",
        rarity="COMMON",
        value=value,
        weight=0.1,
        stackable=True,
    )


def _describe(gold: int, items: list[LootStack], xp: int) -> str:
    parts: list[str] = []
    if xp > 0:
        parts.append(f"⭐ +{xp} XP")
    if gold > 0:
        parts.append(f"🪙 +{gold} Oro")
    if items:
        names = [
            f"{s.item.name} ×{s.quantity}" if s.quantity > 1 else s.item.name
            for s in items
        ]
        parts.append(f"📦 {', '.join(names)}")
    return "\n".join(parts) if parts else NOTHING_FOUND


def loot_to_rewards(result: LootResult) -> list[Reward]:
    """Flatten a loot roll into reward records for the command layer."""
    rewards: list[Reward] = []
    if result.experience_gained > 0:
        rewards.append(Reward(
            type="experience",
            amount=result.experience_gained,
            description=f"Ganaste {result.experience_gained} puntos de experiencia",
        ))
    if result.gold > 0:
        rewards.append(Reward(
            type="gold",
            amount=result.gold,
            description=f"Encontraste {result.gold} monedas de oro",
        ))
    for stack in result.items:
        label = f"{stack.quantity}x {stack.item.name}" if stack.quantity > 1 else stack.item.name
        rewards.append(Reward(
            type="item",
            amount=stack.quantity,
            item_id=stack.item.id,
            item=stack.item,
            description=f"Obtuviste {label}",
        ))
    return rewards
