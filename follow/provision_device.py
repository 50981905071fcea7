"""
Device provisioning script.

Creates a device with a fresh API secret. Devices are never registered over
HTTP; run this once per device and copy the printed credentials onto it.

Usage:
    python -m follow.provision_device [--api-key KEY]
"""

import argparse
import asyncio
import secrets
import sys
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from follow.app.core.config import Settings
from follow.app.db.session import Base, build_engine, build_session_factory
from follow.app.models.device import Device
from follow.app.models.report import Report  # noqa: F401


class DeviceExistsError(Exception):
    pass


async def provision_device(
    session_factory: async_sessionmaker[AsyncSession],
    api_key: Optional[str] = None,
) -> Tuple[str, str]:
    """
    Create a device.

    Args:
        session_factory: Session factory bound to the target database
        api_key: Public key to use; a random one is generated if omitted

    Returns:
        (api_key, api_secret) as text; the secret is not recoverable later

    Raises:
        DeviceExistsError: If a device already uses the API key
    """
    api_key = api_key or secrets.token_urlsafe(12)
    api_secret = secrets.token_urlsafe(32)

    async with session_factory() as db:
        result = await db.execute(select(Device).where(Device.api_key == api_key))
        if result.scalar_one_or_none():
            raise DeviceExistsError(f"A device with API key '{api_key}' already exists")

        db.add(Device(api_key=api_key, api_secret=api_secret.encode("utf-8")))
        await db.commit()

    return api_key, api_secret


async def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Provision a tracking device")
    parser.add_argument("--api-key", help="API key to assign (random if omitted)")
    args = parser.parse_args(argv)

    engine = build_engine(Settings())
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        try:
            api_key, api_secret = await provision_device(build_session_factory(engine), args.api_key)
        except DeviceExistsError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
    finally:
        await engine.dispose()

    print("Device provisioned")
    print(f"  API key:    {api_key}")
    print(f"  API secret: {api_secret}")
    print("\nStore the secret on the device now; it cannot be shown again.")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
