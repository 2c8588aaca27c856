"""Static content registries: enemy and item templates."""

from .enemies import ENEMIES, EnemyTemplate, get_enemy_template  # noqa: F401
from .items import ITEMS, ItemTemplate, create_item  # noqa: F401
