"""
Report Query Service (Domain Logic).

Read side of the report API. Every query resolves the device first, so a
wrong API key never reveals anything about reports.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from follow.app.core.exceptions import AppException, ErrorKind
from follow.app.models.report import Report
from follow.app.schemas.report import ReportOrder, ReportWindow
from follow.app.services.device_directory import require_device
from follow.app.services.report_store import (
    count_reports_in_window,
    find_report_by_id,
    find_reports_in_window,
)


class QueryService:

    @staticmethod
    async def list_reports(
        db: AsyncSession,
        api_key: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: Optional[int] = None,
        order: Optional[ReportOrder] = None,
    ) -> List[Report]:
        device = await require_device(db, api_key)
        window = ReportWindow.resolve(since, until)
        return await find_reports_in_window(db, device.id, window, limit, order or ReportOrder.DESC)

    @staticmethod
    async def count_reports(
        db: AsyncSession,
        api_key: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> int:
        device = await require_device(db, api_key)
        return await count_reports_in_window(db, device.id, ReportWindow.resolve(since, until))

    @staticmethod
    async def get_report(db: AsyncSession, api_key: str, report_id: str) -> Report:
        """
        Fetch one report of a device.

        A malformed id, a missing report and another device's report all
        fail the same way, with UNKNOWN_REPORT.
        """
        device = await require_device(db, api_key)

        try:
            parsed_id = uuid.UUID(report_id)
        except ValueError:
            raise AppException(ErrorKind.UNKNOWN_REPORT)

        report = await find_report_by_id(db, parsed_id)
        if report is None or report.device_id != device.id:
            raise AppException(ErrorKind.UNKNOWN_REPORT)

        return report
