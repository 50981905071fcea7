"""
Unit tests for report parsing and range validation.
"""

import json
from datetime import timedelta, timezone
from decimal import Decimal

import pytest

from follow.app.core.exceptions import AppException, ErrorKind
from follow.app.schemas.report import ReportCreate
from follow.app.services.report_validation import (
    ensure_report_in_range,
    parse_report_payload,
    validate_report_ranges,
)
from helpers import report_body


def encode(body):
    return json.dumps(body).encode("utf-8")


def test_parse_keeps_exact_decimal_text():
    body = report_body(latitude="37.123456789012", longitude="-122.000000000001")
    report = parse_report_payload(encode(body))

    assert report.latitude == Decimal("37.123456789012")
    assert report.longitude == Decimal("-122.000000000001")


def test_parse_json_numbers_without_float_rounding():
    raw = (
        b'{"timestamp": "2021-12-15T14:15:16+00:00", "latitude": 0.1, "longitude": 1,'
        b' "altitude": 123456789.123456789012, "speed": 3, "bearing": 4, "accuracy": 5}'
    )
    report = parse_report_payload(raw)

    assert report.latitude == Decimal("0.1")
    assert report.altitude == Decimal("123456789.123456789012")
    assert report.longitude == Decimal(1)


def test_parse_keeps_timestamp_offset():
    report = parse_report_payload(encode(report_body(timestamp="2021-12-15T16:15:16+02:00")))
    assert report.timestamp.utcoffset() == timedelta(hours=2)
    assert report.timestamp.astimezone(timezone.utc).hour == 14


def test_parse_ignores_client_supplied_id():
    body = dict(report_body(), id="00000000-0000-0000-0000-000000000000")
    report = parse_report_payload(encode(body))
    assert not hasattr(report, "id")


@pytest.mark.parametrize("timestamp, description", [
    ("2022-12-15T15:17:44+00", "incorrectly formatted offset"),
    ("2022-12-15T15:17:44", "missing offset"),
    ("2022-12-15T25:17:44+00:00", "invalid time"),
    ("2022-14-15T21:17:44+00:00", "invalid date"),
    ("2022-02-30T21:17:44+00:00", "day out of range for month"),
    ("15/12/2022 15:17:44", "not ISO-8601"),
    ("", "empty"),
    ("9999-12-31T23:59:59-01:00", "after year 9999 once in UTC"),
    ("0001-01-01T00:00:00+01:00", "before year 1 once in UTC"),
])
def test_parse_rejects_bad_timestamps(timestamp, description):
    with pytest.raises(AppException) as exc_info:
        parse_report_payload(encode(report_body(timestamp=timestamp)))

    assert exc_info.value.kind is ErrorKind.VALIDATION_FAILED, description
    assert "timestamp" in exc_info.value.details["fields"]


@pytest.mark.parametrize("value", [
    "non-numeric latitude",
    "12.5abc",
    "1_000",
    "NaN",
    "Infinity",
    "",
    True,
    None,
    [1],
])
def test_parse_rejects_non_decimal_measurements(value):
    body = report_body()
    body["latitude"] = value

    with pytest.raises(AppException) as exc_info:
        parse_report_payload(encode(body))

    assert exc_info.value.kind is ErrorKind.VALIDATION_FAILED
    assert "latitude" in exc_info.value.details["fields"]


def test_parse_reports_every_missing_field():
    with pytest.raises(AppException) as exc_info:
        parse_report_payload(encode({"timestamp": "2021-12-15T14:15:16+00:00"}))

    fields = exc_info.value.details["fields"]
    assert set(fields) == {"latitude", "longitude", "altitude", "speed", "bearing", "accuracy"}


@pytest.mark.parametrize("raw", [b"", b"{", b"not json", b"[1, 2, 3]", b'"text"', b"\xff\xfe"])
def test_parse_rejects_malformed_bodies(raw):
    with pytest.raises(AppException) as exc_info:
        parse_report_payload(raw)
    assert exc_info.value.kind is ErrorKind.VALIDATION_FAILED


@pytest.mark.parametrize("field, value", [
    ("latitude", "90.1"),
    ("latitude", "-90.1"),
    ("longitude", "180.1"),
    ("longitude", "-180.1"),
    ("speed", "-0.1"),
    ("bearing", "-0.1"),
    ("bearing", "360.1"),
    ("accuracy", "-0.1"),
])
def test_out_of_range_fields_are_rejected(field, value):
    report = ReportCreate.model_validate(dict(report_body(), **{field: value}))

    errors = validate_report_ranges(report)
    assert list(errors) == [field]

    with pytest.raises(AppException) as exc_info:
        ensure_report_in_range(report)
    assert exc_info.value.kind is ErrorKind.VALIDATION_FAILED
    assert field in exc_info.value.message


@pytest.mark.parametrize("overrides", [
    {"latitude": 90, "longitude": -180},
    {"latitude": -90, "longitude": 180},
    {"bearing": 360, "speed": 0, "accuracy": 0},
    {"bearing": 0, "speed": 500, "accuracy": 12},
    {"altitude": -500},
    {"altitude": "123456789"},
])
def test_boundary_and_unconstrained_values_are_accepted(overrides):
    report = ReportCreate.model_validate(report_body(**overrides))
    assert validate_report_ranges(report) == {}


def test_every_violation_is_reported():
    report = ReportCreate.model_validate(report_body(latitude=91, bearing=361, accuracy=-1))
    errors = validate_report_ranges(report)

    assert errors == {
        "latitude": "value not in range [-90.0, 90.0]",
        "bearing": "value not in range [0.0, 360.0]",
        "accuracy": "value not greater than or equal to zero",
    }


def test_parse_rejects_integer_too_long_to_decode():
    fields = dict(report_body())
    del fields["altitude"]
    raw = json.dumps(fields)[:-1] + ', "altitude": ' + "1" * 5000 + "}"

    with pytest.raises(AppException) as exc_info:
        parse_report_payload(raw.encode("utf-8"))

    assert exc_info.value.kind is ErrorKind.VALIDATION_FAILED
    assert exc_info.value.message.startswith("Malformed JSON body")


def test_parse_rejects_deeply_nested_body():
    raw = b"[" * 100000 + b"]" * 100000

    with pytest.raises(AppException) as exc_info:
        parse_report_payload(raw)

    assert exc_info.value.kind is ErrorKind.VALIDATION_FAILED
