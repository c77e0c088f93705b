"""
Keyset pagination cursors for booking listings

A cursor is the base64 encoding of ``"<RFC3339 timestamp>,<booking uuid>"``
identifying the last booking of a page in the (created_at, id) order.
Cursors are opaque by convention only; they are not signed or encrypted.
"""
import base64
import binascii
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Tuple

from backend.date_window import to_utc
from backend.errors import MalformedCursor

_RFC3339 = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[Tt](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d{1,9}))?"
    r"(?P<offset>[Zz]|[+-]\d{2}:\d{2})$"
)


def format_timestamp(value: datetime) -> str:
    """Format as RFC3339 in UTC with nine fractional digits"""
    value = to_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S") + f".{value.microsecond:06d}000Z"


def parse_timestamp(text: str) -> datetime:
    """Parse an RFC3339 timestamp with up to nanosecond precision

    Python datetimes stop at microseconds, extra digits are truncated.
    Instants that fall outside years 1-9999 once shifted to UTC raise
    ValueError like any other unparseable text.
    """
    match = _RFC3339.match(text)
    if not match:
        raise ValueError(f"not an RFC3339 timestamp: {text!r}")

    fraction = (match.group("fraction") or "").ljust(6, "0")[:6]
    parsed = datetime.strptime(f"{match.group('date')}T{match.group('time')}",
                               "%Y-%m-%dT%H:%M:%S")
    parsed = parsed.replace(microsecond=int(fraction))

    offset = match.group("offset")
    if offset in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = 1 if offset[0] == "+" else -1
        hours, minutes = int(offset[1:3]), int(offset[4:6])
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
    try:
        return parsed.replace(tzinfo=tz).astimezone(timezone.utc)
    except OverflowError:
        raise ValueError(f"timestamp out of range: {text!r}") from None


def encode_cursor(created_at: datetime, booking_id: uuid.UUID) -> str:
    """Encode a (created_at, id) position as an opaque cursor"""
    raw = f"{format_timestamp(created_at)},{booking_id}"
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_cursor(token: str) -> Tuple[datetime, uuid.UUID]:
    """
    Decode a cursor produced by ``encode_cursor``

    Raises:
        MalformedCursor: If the token is not base64, does not hold exactly
            two comma-separated fields, or the fields are not a timestamp
            and a UUID
    """
    try:
        decoded = base64.b64decode(token, validate=True).decode("utf-8")
    except (binascii.Error, ValueError) as e:
        raise MalformedCursor(f"invalid cursor encoding: {e}") from e

    parts = decoded.split(",")
    if len(parts) != 2:
        raise MalformedCursor("invalid cursor format")

    try:
        created_at = parse_timestamp(parts[0])
    except ValueError as e:
        raise MalformedCursor(f"invalid cursor timestamp: {e}") from e

    try:
        booking_id = uuid.UUID(parts[1])
    except ValueError as e:
        raise MalformedCursor(f"invalid cursor id: {e}") from e

    return created_at, booking_id
