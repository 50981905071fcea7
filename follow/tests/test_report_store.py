"""
Tests for the report store: windows, limits and ordering.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from follow.app.schemas.report import (
    DEFAULT_REPORT_LIMIT,
    MAX_REPORT_LIMIT,
    UNIX_EPOCH,
    ReportCreate,
    ReportOrder,
    ReportWindow,
    clamp_limit,
)
from follow.app.services.report_store import (
    count_reports_in_window,
    create_report,
    find_report_by_id,
    find_reports_in_window,
)
from helpers import report_body

START = datetime(2021, 6, 1, tzinfo=timezone.utc)


async def store_reports(db_session, device, count, step=timedelta(minutes=1)):
    for i in range(count):
        timestamp = (START + i * step).isoformat()
        await create_report(db_session, device.id, ReportCreate.model_validate(report_body(timestamp=timestamp)))


@pytest.mark.parametrize("requested, expected", [
    (None, DEFAULT_REPORT_LIMIT),
    (0, 0),
    (50, 50),
    (MAX_REPORT_LIMIT, MAX_REPORT_LIMIT),
    (50000, MAX_REPORT_LIMIT),
])
def test_clamp_limit(requested, expected):
    assert clamp_limit(requested) == expected


def test_window_defaults_to_epoch_and_now():
    before = datetime.now(timezone.utc)
    window = ReportWindow.resolve(None, None)

    assert window.since == UNIX_EPOCH
    assert before <= window.until <= datetime.now(timezone.utc)


async def test_create_report_assigns_id_and_submit_time(db_session, make_device):
    device, _ = await make_device()
    payload = ReportCreate.model_validate(report_body(latitude="-33.868820000001"))

    report = await create_report(db_session, device.id, payload)

    assert report.id is not None
    assert report.device_id == device.id
    assert report.submit_timestamp.tzinfo is not None
    assert report.latitude == Decimal("-33.868820000001")

    stored = await find_report_by_id(db_session, report.id)
    assert stored.id == report.id


async def test_default_limit_is_applied(db_session, make_device):
    device, _ = await make_device()
    await store_reports(db_session, device, DEFAULT_REPORT_LIMIT + 5)

    reports = await find_reports_in_window(db_session, device.id, ReportWindow.resolve(None, None))

    assert len(reports) == DEFAULT_REPORT_LIMIT
    assert await count_reports_in_window(db_session, device.id, ReportWindow.resolve(None, None)) == 105


async def test_ordering_and_zero_limit(db_session, make_device):
    device, _ = await make_device()
    await store_reports(db_session, device, 3)
    window = ReportWindow.resolve(None, None)

    ascending = await find_reports_in_window(db_session, device.id, window, order=ReportOrder.ASC)
    descending = await find_reports_in_window(db_session, device.id, window, order=ReportOrder.DESC)

    assert [r.timestamp for r in ascending] == sorted(r.timestamp for r in ascending)
    assert [r.id for r in descending] == [r.id for r in reversed(ascending)]
    assert await find_reports_in_window(db_session, device.id, window, limit=0) == []


async def test_window_excludes_reports_on_bounds(db_session, make_device):
    device, _ = await make_device()
    await store_reports(db_session, device, 3)
    window = ReportWindow.resolve(START, START + timedelta(minutes=2))

    reports = await find_reports_in_window(db_session, device.id, window)

    assert [r.timestamp for r in reports] == [START + timedelta(minutes=1)]
    assert await count_reports_in_window(db_session, device.id, window) == 1


async def test_count_is_zero_for_empty_window(db_session, make_device):
    device, _ = await make_device()

    assert await count_reports_in_window(db_session, device.id, ReportWindow.resolve(None, None)) == 0
