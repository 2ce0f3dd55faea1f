"""
General helper utilities
"""
import secrets
import time
from datetime import datetime, timezone
from typing import Optional

# Ordered by ASCII so that keys sort chronologically
PUSH_CHARS = "-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz"


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the relational columns store"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an offset-aware datetime to naive UTC; naive values are assumed UTC already"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def isoformat_utc(value: datetime) -> str:
    """ISO 8601 with millisecond precision and a Z suffix, like JS toISOString()"""
    return to_naive_utc(value).isoformat(timespec="milliseconds") + "Z"


def format_quantity(value: Optional[float]) -> str:
    """Render a numeric quantity the way the mirror stores it ("50", "2.5")"""
    if value is None:
        return "0"
    return f"{value:g}"


def generate_push_id(timestamp_ms: Optional[int] = None) -> str:
    """
    Generate a Firebase-style push key: 8 chars of millisecond timestamp
    followed by 12 random chars.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)

    time_chars = []
    for _ in range(8):
        time_chars.append(PUSH_CHARS[timestamp_ms % 64])
        timestamp_ms //= 64

    random_chars = "".join(secrets.choice(PUSH_CHARS) for _ in range(12))
    return "".join(reversed(time_chars)) + random_chars
