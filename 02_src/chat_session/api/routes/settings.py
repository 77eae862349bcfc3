"""Settings API routes."""

from fastapi import APIRouter
from pydantic import BaseModel

from ...app import IApplication


class SettingsModel(BaseModel):
    """Chat backend settings."""

    base_url: str
    api_key: str
    user_id: str


def create_settings_router(app: IApplication) -> APIRouter:
    """Create settings router."""
    router = APIRouter(prefix="/api/settings", tags=["settings"])

    @router.get("", response_model=SettingsModel)
    async def get_settings() -> dict:
        """Current settings. New sessions pick them up."""
        current = await app.settings_store.get_settings()
        return {
            "base_url": current.base_url,
            "api_key": current.api_key,
            "user_id": current.user_id,
        }

    @router.put("", response_model=SettingsModel)
    async def save_settings(request: SettingsModel) -> dict:
        """Replace all settings."""
        await app.settings_store.save_settings(
            base_url=request.base_url,
            api_key=request.api_key,
            user_id=request.user_id,
        )
        return request.model_dump()

    return router
