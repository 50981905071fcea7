"""
Report database model.

Stores the location reports submitted by devices.
"""

from sqlalchemy import Column, ForeignKey, Index, Uuid

from follow.app.db.session import Base
from follow.app.db.types import ExactDecimal, UTCDateTime


class Report(Base):
    """
    Report model.

    One GPS fix as measured by a device. Rows are immutable once written.
    """
    __tablename__ = "reports"

    # Assigned by the store, never by the client
    id = Column(Uuid, primary_key=True)

    device_id = Column(Uuid, ForeignKey("devices.id"), nullable=False)

    # Timing
    timestamp = Column(UTCDateTime, nullable=False)  # When the fix was taken
    submit_timestamp = Column(UTCDateTime, nullable=True)  # When it reached the server

    # Measurements
    latitude = Column(ExactDecimal, nullable=False)
    longitude = Column(ExactDecimal, nullable=False)
    altitude = Column(ExactDecimal, nullable=False)
    speed = Column(ExactDecimal, nullable=False)
    bearing = Column(ExactDecimal, nullable=False)
    accuracy = Column(ExactDecimal, nullable=False)

    __table_args__ = (
        Index("ix_reports_device_id_timestamp", "device_id", "timestamp"),
    )

    def __repr__(self):
        return f"<Report(id={self.id}, device_id={self.device_id}, timestamp={self.timestamp})>"
