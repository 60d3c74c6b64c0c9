from datetime import date, datetime, time, timedelta, timezone


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Return an ISO 8601 string for the current UTC time."""
    return utc_now().isoformat()


def ensure_utc(value: datetime | date) -> datetime:
    """
    Coerce a date or datetime into an aware UTC datetime.

    Bare dates become midnight UTC; naive datetimes are assumed to be UTC.
    """
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_ago(days: int) -> datetime:
    """Cutoff timestamp `days` days before now."""
    return utc_now() - timedelta(days=days)
