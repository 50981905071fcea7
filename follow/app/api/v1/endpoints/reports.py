"""
Report API Endpoints.

Devices submit signed reports; anyone holding a device's API key can read
them back.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Path, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from follow.app.core.config import Settings, get_settings
from follow.app.core.exceptions import AppException, ErrorKind
from follow.app.core.signing import SIGNATURE_HEADER
from follow.app.db.session import get_db
from follow.app.domain.reports.ingestion_service import IngestionService
from follow.app.domain.reports.query_service import QueryService
from follow.app.schemas.report import ReportCountResponse, ReportOrder, ReportResponse, is_utc_representable

router = APIRouter(prefix="/devices/{api_key}/reports", tags=["Reports"])


def _require_offset(name: str, value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        raise AppException(ErrorKind.VALIDATION_FAILED, f"{name} must include a UTC offset")
    if not is_utc_representable(value):
        raise AppException(ErrorKind.VALIDATION_FAILED, f"{name} is out of range once converted to UTC")
    return value


@router.get("/count", response_model=ReportCountResponse)
async def get_report_count(
    api_key: str = Path(..., description="Device API key"),
    since: Optional[datetime] = Query(None, description="Only reports after this time"),
    until: Optional[datetime] = Query(None, description="Only reports before this time"),
    db: AsyncSession = Depends(get_db),
):
    """
    Count a device's reports in a time window.

    Both bounds are exclusive; the window defaults to (Unix epoch, now).
    """
    count = await QueryService.count_reports(
        db,
        api_key,
        since=_require_offset("since", since),
        until=_require_offset("until", until),
    )
    return ReportCountResponse(count=count)


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report_by_id(
    api_key: str = Path(..., description="Device API key"),
    report_id: str = Path(..., description="Report ID"),
    db: AsyncSession = Depends(get_db),
):
    """Get one report. Reports of other devices are reported as not found."""
    report = await QueryService.get_report(db, api_key, report_id)
    return ReportResponse.model_validate(report)


@router.get("", response_model=List[ReportResponse])
async def get_reports(
    api_key: str = Path(..., description="Device API key"),
    since: Optional[datetime] = Query(None, description="Only reports after this time"),
    until: Optional[datetime] = Query(None, description="Only reports before this time"),
    limit: Optional[int] = Query(None, ge=0, description="Maximum number of reports (at most 10000)"),
    order: Optional[ReportOrder] = Query(None, description="Timestamp ordering, desc by default"),
    db: AsyncSession = Depends(get_db),
):
    """
    List a device's reports in a time window.

    Defaults: newest first, 100 reports, window (Unix epoch, now).
    """
    reports = await QueryService.list_reports(
        db,
        api_key,
        since=_require_offset("since", since),
        until=_require_offset("until", until),
        limit=limit,
        order=order,
    )
    return [ReportResponse.model_validate(report) for report in reports]


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ReportResponse)
async def post_report(
    request: Request,
    response: Response,
    api_key: str = Path(..., description="Device API key"),
    signature: Optional[str] = Header(None, alias=SIGNATURE_HEADER, description="Hex HMAC-SHA256 of the report"),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Submit a report (device only).

    The body is read raw so measurements keep their exact decimal value.
    """
    body = await request.body()

    created = await IngestionService.ingest(
        db,
        api_key,
        signature,
        body,
        api_prefix=settings.api_prefix,
    )

    response.headers["Location"] = created.location
    return ReportResponse.model_validate(created.report)
