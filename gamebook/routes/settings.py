"""Health check and settings endpoints."""

from fastapi import APIRouter

from gamebook.config import get_config

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/settings")
async def get_settings():
    """Effective configuration (defaults merged with the environment)."""
    return get_config()
