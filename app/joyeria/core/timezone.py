from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from app.joyeria.core.config import settings


def store_zone() -> ZoneInfo:
    return ZoneInfo(settings.STORE_TIMEZONE)


def store_today(now: datetime | None = None) -> date:
    """Calendar date at the store for a naive UTC timestamp (defaults to now)."""
    moment = now or datetime.utcnow()
    return moment.replace(tzinfo=timezone.utc).astimezone(store_zone()).date()


def store_day_bounds(day: date) -> tuple[datetime, datetime]:
    """Naive UTC [start, end) covering one store-local calendar day."""
    zone = store_zone()
    start_local = datetime.combine(day, time.min, tzinfo=zone)
    end_local = start_local + timedelta(days=1)
    start = start_local.astimezone(timezone.utc).replace(tzinfo=None)
    end = end_local.astimezone(timezone.utc).replace(tzinfo=None)
    return start, end
