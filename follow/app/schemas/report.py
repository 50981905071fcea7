"""
Report Pydantic schemas.

Defines the submitted report payload, the report response, and the query
parameters of the report listing endpoints.
"""

import enum
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Annotated, Optional
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict, field_serializer

DEFAULT_REPORT_LIMIT = 100
MAX_REPORT_LIMIT = 10000
UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Second precision (fractions tolerated), offset mandatory
TIMESTAMP_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{1,6})?(Z|[+-]\d{2}:\d{2})$"
)
DECIMAL_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d{1,3})?$")


def is_utc_representable(value: datetime) -> bool:
    """False for aware datetimes that fall outside year 1..9999 once moved to UTC."""
    try:
        value.astimezone(timezone.utc)
    except OverflowError:
        return False
    return True


def parse_report_timestamp(value):
    """Parse a client timestamp, rejecting anything without an explicit offset."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            raise ValueError("timestamp must include a UTC offset")
        parsed = value
    elif not isinstance(value, str) or not TIMESTAMP_PATTERN.match(value):
        raise ValueError("timestamp must look like YYYY-MM-DDTHH:MM:SS+HH:MM")
    else:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValueError(f"timestamp is not a valid date and time ({exc})") from exc

    if not is_utc_representable(parsed):
        raise ValueError("timestamp is out of range once converted to UTC")
    return parsed


def parse_exact_decimal(value):
    """
    Parse a measurement into an exact Decimal.

    Accepts decimal text, integers, and numbers the JSON decoder already turned
    into Decimal. Floats are refused since they have already lost precision.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError("value must be a decimal number")
    if isinstance(value, (int, Decimal)):
        number = Decimal(value)
    elif isinstance(value, str):
        text = value.strip()
        if not DECIMAL_PATTERN.match(text):
            raise ValueError("value is not a decimal number")
        try:
            number = Decimal(text)
        except InvalidOperation as exc:
            raise ValueError("value is not a decimal number") from exc
    else:
        raise ValueError("value must be a decimal number")

    if not number.is_finite():
        raise ValueError("value must be a finite decimal number")
    return number


Measurement = Annotated[Decimal, BeforeValidator(parse_exact_decimal)]
ReportTimestamp = Annotated[datetime, BeforeValidator(parse_report_timestamp)]


class ReportCreate(BaseModel):
    """Schema for a report submitted by a device."""
    model_config = ConfigDict(extra="ignore")

    timestamp: ReportTimestamp
    latitude: Measurement
    longitude: Measurement
    altitude: Measurement
    speed: Measurement
    bearing: Measurement
    accuracy: Measurement


class ReportResponse(BaseModel):
    """Schema for report response. The owning device is never included."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    timestamp: datetime
    submit_timestamp: Optional[datetime]
    latitude: Decimal
    longitude: Decimal
    altitude: Decimal
    speed: Decimal
    bearing: Decimal
    accuracy: Decimal

    @field_serializer("timestamp", "submit_timestamp")
    def serialize_timestamp(self, value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value is not None else None

    @field_serializer("latitude", "longitude", "altitude", "speed", "bearing", "accuracy")
    def serialize_decimal(self, value: Decimal) -> str:
        return format(value, "f")


class ReportCountResponse(BaseModel):
    count: int


class ReportOrder(str, enum.Enum):
    """Ordering of listed reports by their client timestamp."""
    ASC = "asc"
    DESC = "desc"


class ReportWindow(BaseModel):
    """Open time range `(since, until)` over report timestamps."""
    model_config = ConfigDict(frozen=True)

    since: datetime
    until: datetime

    @classmethod
    def resolve(cls, since: Optional[datetime] = None, until: Optional[datetime] = None) -> "ReportWindow":
        """Fill in the defaults: since the Unix epoch, until now."""
        return cls(
            since=since if since is not None else UNIX_EPOCH,
            until=until if until is not None else datetime.now(timezone.utc),
        )


def clamp_limit(limit: Optional[int]) -> int:
    """Requested limits above the ceiling are served at the ceiling."""
    if limit is None:
        return DEFAULT_REPORT_LIMIT
    return min(limit, MAX_REPORT_LIMIT)
