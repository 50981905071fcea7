"""
Helpers for building report submissions the way device firmware does.
"""

import hashlib
import hmac
from decimal import Decimal

SIGNED_FIELDS = ("timestamp", "latitude", "longitude", "altitude", "speed", "bearing", "accuracy")


def report_body(timestamp="2021-12-15T14:15:16+00:00", latitude=0, longitude=0,
                altitude=0, speed=0, bearing=0, accuracy=0):
    """Request body with every measurement written with twelve decimals."""
    def fmt(value):
        return format(Decimal(str(value)), ".12f")

    return {
        "timestamp": timestamp,
        "latitude": fmt(latitude),
        "longitude": fmt(longitude),
        "altitude": fmt(altitude),
        "speed": fmt(speed),
        "bearing": fmt(bearing),
        "accuracy": fmt(accuracy),
    }


def client_signature(body, secret):
    """Signature straight from the submitted text, independent of the server's code."""
    message = "".join(str(body[field]) for field in SIGNED_FIELDS)
    return hmac.new(secret, message.encode("utf-8"), hashlib.sha256).hexdigest()


async def post_report(client, api_key, body, signature=None):
    headers = {"X-Signature": signature} if signature is not None else {}
    return await client.post(f"/api/v1/devices/{api_key}/reports", json=body, headers=headers)
