"""
Device database model.

Devices are provisioned out-of-band and never change afterwards.
"""

import uuid

from sqlalchemy import Column, LargeBinary, String, Uuid

from follow.app.db.session import Base


class Device(Base):
    """
    Tracking device.

    `api_key` is public and appears in URLs. `api_secret` keys report
    signatures and must never be serialized.
    """
    __tablename__ = "devices"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    api_key = Column(String(255), unique=True, index=True, nullable=False)
    api_secret = Column(LargeBinary, nullable=False)

    def __repr__(self):
        return f"<Device(id={self.id}, api_key='{self.api_key}')>"
