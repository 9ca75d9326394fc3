from fastapi import APIRouter

from recall.dependencies import SettingsDep

router = APIRouter(tags=["health"])


@router.get("/ping")
def ping(settings: SettingsDep):
    return {"status": "ok", "version": settings.app_version}
