"""
Unversioned routes: index, device lookup and the human-facing follow page.
"""

from fastapi import APIRouter, Depends, Path, Request, status
from fastapi.responses import HTMLResponse, PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from follow.app.core.config import Settings, get_settings
from follow.app.core.exceptions import ErrorKind, status_text
from follow.app.db.session import get_db
from follow.app.schemas.device import DeviceResponse
from follow.app.services.device_directory import find_device_by_api_key, require_device

router = APIRouter(tags=["Web"])


@router.get("/", response_class=PlainTextResponse)
async def index():
    return "Hello world!"


@router.get("/devices/{api_key}", response_model=DeviceResponse)
async def get_device_by_api_key(
    api_key: str = Path(..., description="Device API key"),
    db: AsyncSession = Depends(get_db),
):
    """Look up a device by API key. Only public fields are returned."""
    device = await require_device(db, api_key)
    return DeviceResponse.model_validate(device)


@router.get("/follow/{api_key}", response_class=HTMLResponse)
async def follow(
    request: Request,
    api_key: str = Path(..., description="Device API key"),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Render the live map page for a device."""
    device = await find_device_by_api_key(db, api_key)
    templates = request.app.state.templates

    if device is None:
        return templates.TemplateResponse(
            request,
            "error.html",
            {
                "status": status_text(status.HTTP_404_NOT_FOUND),
                "message": "There is no device associated with the provided device key",
            },
            status_code=ErrorKind.UNKNOWN_DEVICE.status_code,
        )

    return templates.TemplateResponse(
        request,
        "follow.html",
        {
            "device_api_key": device.api_key,
            "maps_api_key": settings.maps_api_key,
            "api_prefix": settings.api_prefix,
        },
    )
