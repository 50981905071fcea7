"""
Device directory.

Resolves the public API key in a request path to the provisioned device.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from follow.app.core.exceptions import AppException, ErrorKind
from follow.app.models.device import Device

logger = logging.getLogger("follow.devices")


async def find_device_by_api_key(db: AsyncSession, api_key: str) -> Optional[Device]:
    """
    Look up a device by its API key.

    Args:
        db: Database session
        api_key: Key taken verbatim from the request path

    Returns:
        The device, or None when no device has this key

    Raises:
        AppException: UNEXPECTED if the lookup itself fails
    """
    try:
        result = await db.execute(select(Device).where(Device.api_key == api_key))
    except SQLAlchemyError as exc:
        raise AppException(
            ErrorKind.UNEXPECTED,
            "Failed to retrieve the device associated with the provided API key",
        ) from exc
    return result.scalar_one_or_none()


async def require_device(db: AsyncSession, api_key: str) -> Device:
    """Like `find_device_by_api_key`, but an unknown key is an UNKNOWN_DEVICE failure."""
    device = await find_device_by_api_key(db, api_key)
    if device is None:
        logger.info("Rejected request for unknown API key")
        raise AppException(ErrorKind.UNKNOWN_DEVICE)
    return device
