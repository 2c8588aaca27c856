"""Enemy template registry, keyed by template id."""

from __future__ import annotations

from pydantic import BaseModel

from rpg_supreme.models import Attributes


class EnemyTemplate(BaseModel):
    name: str
    level: int = 1
    experience: int = 0
    max_hp: int = 30
    max_mana: int = 0
    max_stamina: int = 20
    attributes: Attributes


ENEMIES: dict[str, EnemyTemplate] = {
    "enemy_giant_rat": EnemyTemplate(
        name="Giant Rat",
        level=1,
        experience=10,
        max_hp=20,
        max_mana=0,
        max_stamina=20,
        attributes=Attributes(
            strength=4, dexterity=12, intelligence=2, wisdom=4,
            constitution=6, charisma=1, luck=5,
        ),
    ),
    "enemy_bandit": EnemyTemplate(
        name="Roadside Bandit",
        level=2,
        experience=25,
        max_hp=40,
        max_mana=10,
        max_stamina=30,
        attributes=Attributes(
            strength=8, dexterity=10, intelligence=8, wisdom=8,
            constitution=10, charisma=8, luck=8,
        ),
    ),
    "enemy_wolf": EnemyTemplate(
        name="Dire Wolf",
        level=3,
        experience=40,
        max_hp=60,
        max_mana=0,
        max_stamina=50,
        attributes=Attributes(
            strength=12, dexterity=14, intelligence=4, wisdom=10,
            constitution=12, charisma=2, luck=5,
        ),
    ),
}


def get_enemy_template(template_id: str) -> EnemyTemplate | None:
    return ENEMIES.get(template_id)
