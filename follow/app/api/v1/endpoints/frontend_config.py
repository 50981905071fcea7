"""
Frontend configuration endpoint.

Hands the browser the settings it needs to draw the follow map.
"""

from fastapi import APIRouter, Depends

from follow.app.core.config import Settings, get_settings
from follow.app.schemas.device import FrontendConfigResponse

router = APIRouter(tags=["Frontend"])


@router.get("/frontend_config", response_model=FrontendConfigResponse)
async def get_frontend_config(settings: Settings = Depends(get_settings)):
    return FrontendConfigResponse(maps_api_key=settings.maps_api_key)
