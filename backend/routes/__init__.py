"""FastAPI API endpoints under /api.

Endpoint groups: health/settings, game sessions, combat (per session),
narrative (per session, plus the chapter template catalog) and loot.
"""

from fastapi import APIRouter

from .combat import router as combat_router
from .loot import router as loot_router
from .narrative import router as narrative_router
from .sessions import router as sessions_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(sessions_router)
router.include_router(combat_router)
router.include_router(narrative_router)
router.include_router(loot_router)
