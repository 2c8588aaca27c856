"""Item template registry."""

from __future__ import annotations

from pydantic import BaseModel, Field

from rpg_supreme.models import Item, ItemType, Rarity


class ItemTemplate(BaseModel):
    name: str
    description: str = ""
    type: ItemType
    rarity: Rarity = "COMMON"
    value: int = 0
    weight: float = 0.0
    stackable: bool = False
    stats: dict[str, int] = Field(default_factory=dict)


ITEMS: dict[str, ItemTemplate] = {
    "weapon_rusty_sword": ItemTemplate(
        name="Rusty Sword",
        description="An old, chipped blade. Better than nothing.",
        type="weapon",
        value=5,
        weight=2,
        stats={"attack": 5, "critical_chance": 2},
    ),
    "weapon_iron_dagger": ItemTemplate(
        name="Iron Dagger",
        description="A simple but sharp dagger.",
        type="weapon",
        value=10,
        weight=1,
        stats={"attack": 4, "critical_chance": 10},
    ),
    "weapon_oak_staff": ItemTemplate(
        name="Oak Staff",
        description="A sturdy staff made of oak.",
        type="weapon",
        value=8,
        weight=3,
        stats={"attack": 3, "magic_attack": 5},
    ),
    "potion_health_minor": ItemTemplate(
        name="Minor Health Potion",
        description="Restores 20 HP.",
        type="consumable",
        value=15,
        weight=0.5,
        stackable=True,
        stats={"heal": 20},
    ),
    "armor_leather_vest": ItemTemplate(
        name="Leather Vest",
        description="Basic protection for adventurers.",
        type="armor",
        value=20,
        weight=4,
        stats={"defense": 3},
    ),
}


def create_item(template_id: str) -> Item | None:
    """Instantiate a registry item with a fresh id, or None if unknown."""
    template = ITEMS.get(template_id)
    if template is None:
        return None
    return Item(template_id=template_id, quantity=1, **template.model_dump())
