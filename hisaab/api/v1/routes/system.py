from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from hisaab.core.config import Settings
from hisaab.core.dependencies import get_app_settings

router = APIRouter()

@router.get("/health")
async def health(settings: Settings = Depends(get_app_settings)):
    return {
        "ok": True,
        "app": settings.APP_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENVIRONMENT,
    }
