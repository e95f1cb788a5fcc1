from datetime import date, datetime

from django.utils import timezone


def to_local_date(dt: datetime) -> date:
    """Calendar date of ``dt`` in the configured TIME_ZONE."""
    if timezone.is_naive(dt):
        return dt.date()
    return timezone.localtime(dt).date()


def to_local_iso(dt_utc):
    if dt_utc is None:
        return None
    if timezone.is_naive(dt_utc):
        return dt_utc.isoformat()
    return timezone.localtime(dt_utc).isoformat()
