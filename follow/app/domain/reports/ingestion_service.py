"""
Report Ingestion Service (Domain Logic).

Takes a raw report submission from a device through authentication,
validation and persistence. Each stage either hands its result to the next
or ends the request with a tagged failure; nothing is retried.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

from sqlalchemy.ext.asyncio import AsyncSession

from follow.app.core.exceptions import AppException, ErrorKind
from follow.app.core.signing import verify_signature
from follow.app.models.report import Report
from follow.app.services.device_directory import require_device
from follow.app.services.report_store import create_report
from follow.app.services.report_validation import ensure_report_in_range, parse_report_payload

logger = logging.getLogger("follow.ingestion")


@dataclass(frozen=True)
class CreatedReport:
    report: Report
    location: str


def report_location(api_prefix: str, api_key: str, report: Report) -> str:
    """Path of the report resource, as sent back in the Location header."""
    return f"{api_prefix}/devices/{quote(api_key, safe='')}/reports/{report.id}"


class IngestionService:

    @staticmethod
    async def ingest(
        db: AsyncSession,
        api_key: str,
        signature: Optional[str],
        body: bytes,
        api_prefix: str,
    ) -> CreatedReport:
        """
        Accept a report submitted by a device.

        Flow:
        1. Resolve the device (UNKNOWN_DEVICE)
        2. Require a signature header (MISSING_SIGNATURE)
        3. Parse the body (VALIDATION_FAILED)
        4. Check measurement ranges (VALIDATION_FAILED)
        5. Verify the signature over the parsed values (INVALID_SIGNATURE)
        6. Persist (UNEXPECTED on storage failure)

        An out-of-range report fails validation whatever its signature.

        Args:
            db: Database session
            api_key: Device API key from the request path
            signature: Value of the X-Signature header, if any
            body: Raw request body
            api_prefix: Prefix of the versioned API, for the Location path

        Returns:
            The stored report and its location
        """
        # 1. Resolve device before touching the payload
        device = await require_device(db, api_key)

        # 2. Signature must be present
        if signature is None:
            logger.info("Rejected report without signature", extra={"device_id": str(device.id)})
            raise AppException(ErrorKind.MISSING_SIGNATURE)

        # 3. Structural parse
        payload = parse_report_payload(body)

        # 4. Range validation
        ensure_report_in_range(payload)

        # 5. Signature over the exact submitted values
        if not verify_signature(payload, signature, device.api_secret):
            logger.warning("Rejected report with invalid signature", extra={"device_id": str(device.id)})
            raise AppException(ErrorKind.INVALID_SIGNATURE)

        # 6. Persist
        report = await create_report(db, device.id, payload)

        return CreatedReport(report=report, location=report_location(api_prefix, api_key, report))
