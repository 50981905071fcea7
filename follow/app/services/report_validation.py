"""
Report validation.

Two stages, both independent of the submitting device: parsing the raw
request body into a `ReportCreate`, then checking each measurement against
its physical range.
"""

import json
from decimal import Decimal
from typing import Dict, Optional, Tuple

from pydantic import ValidationError

from follow.app.core.exceptions import AppException, ErrorKind
from follow.app.schemas.report import ReportCreate

# field -> (lower bound, upper bound), both inclusive; None is unbounded
FIELD_BOUNDS: Dict[str, Tuple[Optional[Decimal], Optional[Decimal]]] = {
    "latitude": (Decimal("-90.0"), Decimal("90.0")),
    "longitude": (Decimal("-180.0"), Decimal("180.0")),
    "speed": (Decimal("0.0"), None),
    "bearing": (Decimal("0.0"), Decimal("360.0")),
    "accuracy": (Decimal("0.0"), None),
}


def describe_bounds(lower: Optional[Decimal], upper: Optional[Decimal]) -> str:
    if upper is None:
        return "value not greater than or equal to zero"
    return f"value not in range [{lower}, {upper}]"


def check_range(value: Decimal, lower: Optional[Decimal], upper: Optional[Decimal]) -> bool:
    if lower is not None and value < lower:
        return False
    if upper is not None and value > upper:
        return False
    return True


def validate_report_ranges(report: ReportCreate) -> Dict[str, str]:
    """
    Check measurements against their ranges.

    Returns:
        Mapping of offending field to the violated rule; empty when valid.
        Altitude is unconstrained and never appears.
    """
    errors = {}
    for field, (lower, upper) in FIELD_BOUNDS.items():
        if not check_range(getattr(report, field), lower, upper):
            errors[field] = describe_bounds(lower, upper)
    return errors


def format_field_errors(errors: Dict[str, str]) -> str:
    return "; ".join(f"{field}: {rule}" for field, rule in errors.items())


def parse_report_payload(body: bytes) -> ReportCreate:
    """
    Decode a submitted report.

    JSON numbers are decoded straight to Decimal so nothing passes through
    binary floating point before it is signed or stored.

    Raises:
        AppException: VALIDATION_FAILED naming every field that did not parse
    """
    try:
        data = json.loads(body, parse_float=Decimal)
    except (ValueError, RecursionError) as exc:
        raise AppException(ErrorKind.VALIDATION_FAILED, f"Malformed JSON body: {exc}") from exc

    if not isinstance(data, dict):
        raise AppException(ErrorKind.VALIDATION_FAILED, "Report body must be a JSON object")

    try:
        return ReportCreate.model_validate(data)
    except ValidationError as exc:
        errors = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"]) or "body"
            errors[field] = error["msg"]
        raise AppException(
            ErrorKind.VALIDATION_FAILED,
            f"Invalid report: {format_field_errors(errors)}",
            details={"fields": errors},
        ) from exc


def ensure_report_in_range(report: ReportCreate) -> None:
    """Raise VALIDATION_FAILED listing every out-of-range field."""
    errors = validate_report_ranges(report)
    if errors:
        raise AppException(
            ErrorKind.VALIDATION_FAILED,
            f"Invalid report: {format_field_errors(errors)}",
            details={"fields": errors},
        )
