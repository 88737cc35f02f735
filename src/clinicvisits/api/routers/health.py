"""Health check endpoint."""

from fastapi import APIRouter

from ..deps import SettingsDep

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(settings: SettingsDep):
    return {
        "status": "healthy",
        "version": settings.app_version,
        "storage": settings.storage.backend,
    }
