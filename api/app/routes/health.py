from fastapi import APIRouter, Depends

from ..services.backend import get_backend_resolver
from ..services.settings import Settings, get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health(settings: Settings = Depends(get_settings)) -> dict:
    resolver = get_backend_resolver(settings)
    storage = "memory" if resolver.uses_volatile() else "durable"
    return {"ok": True, "version": "0.1.0", "storage": storage, "maxDailySeconds": settings.max_daily_seconds}
