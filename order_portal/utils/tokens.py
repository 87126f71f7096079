import uuid
from datetime import datetime, timedelta, timezone
from dateutil import parser

TOKEN_TTL = timedelta(days=7)


def generate_token() -> str:
    """Random 128-bit client access token."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def compute_token_expiry(issued_at: datetime) -> datetime:
    return issued_at + TOKEN_TTL


def to_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def from_iso(value: str) -> datetime:
    dt = parser.isoparse(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def is_expired(token_expiry: str, now: datetime = None) -> bool:
    now = now or utcnow()
    return now >= from_iso(token_expiry)
