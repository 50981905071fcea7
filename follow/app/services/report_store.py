"""
Report store.

Persistence and windowed queries for reports. Storage failures never leak
out as SQLAlchemy errors; they become UNEXPECTED failures carrying the
original exception as their cause.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from follow.app.core.exceptions import AppException, ErrorKind
from follow.app.models.report import Report
from follow.app.schemas.report import ReportCreate, ReportOrder, ReportWindow, clamp_limit

logger = logging.getLogger("follow.reports")


async def create_report(db: AsyncSession, device_id: uuid.UUID, payload: ReportCreate) -> Report:
    """
    Persist a new report for a device.

    The id and submit timestamp are assigned here. The insert is committed as
    one transaction; on failure it is rolled back and nothing is visible.

    Args:
        db: Database session
        device_id: Owning device
        payload: Parsed, validated, signature-checked report

    Returns:
        The stored report, read back from the database when possible
    """
    report = Report(
        id=uuid.uuid4(),
        device_id=device_id,
        timestamp=payload.timestamp,
        submit_timestamp=datetime.now(timezone.utc),
        latitude=payload.latitude,
        longitude=payload.longitude,
        altitude=payload.altitude,
        speed=payload.speed,
        bearing=payload.bearing,
        accuracy=payload.accuracy,
    )

    try:
        db.add(report)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise AppException(ErrorKind.UNEXPECTED, "Failed to insert report") from exc

    logger.info("Stored report", extra={"report_id": str(report.id), "device_id": str(device_id)})

    # Already committed; a failed read-back is logged, not raised
    try:
        await db.refresh(report)
    except SQLAlchemyError:
        logger.warning(
            "Could not read back stored report",
            extra={"report_id": str(report.id)},
            exc_info=True,
        )
    return report


async def find_report_by_id(db: AsyncSession, report_id: uuid.UUID) -> Optional[Report]:
    try:
        result = await db.execute(select(Report).where(Report.id == report_id))
    except SQLAlchemyError as exc:
        raise AppException(ErrorKind.UNEXPECTED, "Failed to retrieve report") from exc
    return result.scalar_one_or_none()


def _in_window(device_id: uuid.UUID, window: ReportWindow):
    # Both bounds are exclusive
    return (
        Report.device_id == device_id,
        Report.timestamp > window.since,
        Report.timestamp < window.until,
    )


async def find_reports_in_window(
    db: AsyncSession,
    device_id: uuid.UUID,
    window: ReportWindow,
    limit: Optional[int] = None,
    order: ReportOrder = ReportOrder.DESC,
) -> List[Report]:
    """
    List a device's reports with timestamps strictly inside the window.

    Args:
        db: Database session
        device_id: Owning device
        window: Open time range
        limit: Maximum rows; None means the default, larger values are clamped
        order: Timestamp ordering, newest first by default

    Returns:
        Matching reports; ties on timestamp come back in no particular order
    """
    ordering = Report.timestamp.asc() if order == ReportOrder.ASC else Report.timestamp.desc()

    try:
        result = await db.execute(
            select(Report)
            .where(*_in_window(device_id, window))
            .order_by(ordering)
            .limit(clamp_limit(limit))
        )
    except SQLAlchemyError as exc:
        raise AppException(ErrorKind.UNEXPECTED, "Failed to fetch reports") from exc
    return list(result.scalars().all())


async def count_reports_in_window(db: AsyncSession, device_id: uuid.UUID, window: ReportWindow) -> int:
    """Count a device's reports inside the window. Zero, never None, when none match."""
    try:
        result = await db.execute(
            select(func.count(Report.id)).where(*_in_window(device_id, window))
        )
    except SQLAlchemyError as exc:
        raise AppException(ErrorKind.UNEXPECTED, "Failed to fetch report count") from exc
    return result.scalar() or 0
