"""Loot roll and loot table endpoints."""

from fastapi import APIRouter

from rpg_supreme.loot import LootOptions, all_loot_tables, generate_loot, loot_to_rewards

from .models import GenerateLootBody

router = APIRouter()


@router.post("/loot")
async def roll_loot(body: GenerateLootBody):
    """Roll loot for one defeated enemy and list it as rewards."""
    options = LootOptions(
        drop_chance_multiplier=body.drop_chance_multiplier,
        gold_multiplier=body.gold_multiplier,
        quantity_multiplier=body.quantity_multiplier,
        luck=body.luck,
    )
    result = generate_loot(body.enemy_id, body.experience, options)
    return {"loot": result, "rewards": loot_to_rewards(result)}


@router.get("/loot/tables")
async def list_loot_tables():
    """All static loot tables."""
    return all_loot_tables()
