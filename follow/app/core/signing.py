"""
Report signatures.

Devices sign every report with HMAC-SHA256 keyed by their API secret. The
signed message is a fixed textual rendering of the report, so the exact
formatting below is part of the wire contract with device clients.
"""

import hashlib
import hmac
from datetime import datetime
from decimal import Decimal
from typing import Optional

from follow.app.schemas.report import ReportCreate

SIGNATURE_HEADER = "X-Signature"
DECIMAL_PLACES = 12

SIGNED_DECIMAL_FIELDS = ("latitude", "longitude", "altitude", "speed", "bearing", "accuracy")


def format_signing_timestamp(value: datetime) -> str:
    """``2021-12-15T14:15:16+00:00``: second precision, offset always signed."""
    return value.isoformat(timespec="seconds")


def format_signing_decimal(value: Decimal) -> str:
    """Fixed point with exactly twelve fractional digits."""
    if value.is_zero():
        value = abs(value)
    return format(value, f".{DECIMAL_PLACES}f")


def canonical_signing_string(report: ReportCreate) -> str:
    """
    Build the message a device signs.

    Timestamp first, then the six measurements in fixed order, concatenated
    without separators. Server-assigned values are never part of it.
    """
    parts = [format_signing_timestamp(report.timestamp)]
    parts.extend(format_signing_decimal(getattr(report, field)) for field in SIGNED_DECIMAL_FIELDS)
    return "".join(parts)


def compute_signature(report: ReportCreate, secret: bytes) -> str:
    """Lowercase hex HMAC-SHA256 of the canonical signing string."""
    message = canonical_signing_string(report).encode("utf-8")
    return hmac.new(secret, message, hashlib.sha256).hexdigest()


def verify_signature(report: ReportCreate, signature: Optional[str], secret: bytes) -> bool:
    if not signature:
        return False
    expected = compute_signature(report, secret)
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))
