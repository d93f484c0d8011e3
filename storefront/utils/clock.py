from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time without tzinfo.

    Every datetime column is a plain ``DateTime`` holding naive UTC, and
    coupon windows are compared against this value.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
