# koronet/clock.py
import datetime


def utc_now() -> datetime.datetime:
    """Naive UTC now, truncated to milliseconds so it round-trips through ISO strings."""
    now = datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def to_iso(ts: datetime.datetime) -> str:
    """Render as 2025-01-01T12:00:00.000Z."""
    if ts.tzinfo is not None:
        ts = ts.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return ts.isoformat(timespec="milliseconds") + "Z"


def now_iso() -> str:
    return to_iso(utc_now())
