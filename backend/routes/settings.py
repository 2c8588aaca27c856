"""Health check and settings endpoints."""

import logging

from fastapi import APIRouter

from backend import config

from .models import UpdateSettings

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/settings")
async def get_settings():
    """Get global app settings."""
    return config.get_config()


@router.patch("/settings")
async def update_settings(body: UpdateSettings):
    """Update global app settings (partial merge)."""
    updated = config.update_config(body.model_dump(exclude_unset=True))
    if body.log_level:
        logging.getLogger().setLevel(updated["log_level"].upper())
    return updated
