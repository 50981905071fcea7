"""
Device Pydantic schemas.
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class DeviceResponse(BaseModel):
    """Public view of a device. Never carries the API secret."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    api_key: str


class FrontendConfigResponse(BaseModel):
    maps_api_key: str
