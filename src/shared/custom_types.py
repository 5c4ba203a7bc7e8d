import datetime

from sqlalchemy import DateTime, String, TypeDecorator
from sqlalchemy.dialects.sqlite import DATETIME as SQLITE_DATETIME


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetimes, stored in UTC.

    SQLite has no timezone support, so values are written there as naive UTC
    and re-tagged as UTC when loaded. Other backends get ``timestamptz``.
    """
    impl = DateTime
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'sqlite':
            return dialect.type_descriptor(SQLITE_DATETIME())
        else:
            return dialect.type_descriptor(DateTime(timezone=True))

    def process_bind_param(self, value: datetime.datetime | None, dialect) -> datetime.datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            # Naive values are taken as local time
            value = value.astimezone(datetime.timezone.utc)
        return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value: datetime.datetime | None, dialect) -> datetime.datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=datetime.timezone.utc)
        return value.astimezone(datetime.timezone.utc)


class ClockTime(TypeDecorator):
    """A wall-clock time of day stored as an ``HH:MM`` string.

    Fixed-width text keeps lexical and chronological order identical, so
    ``opening_time <= :now`` comparisons work on every backend.
    """
    impl = String(5)
    cache_ok = True

    def process_bind_param(self, value: datetime.time | str | None, dialect) -> str | None:
        if value is None:
            return None
        if isinstance(value, str):
            value = parse_clock_time(value)
        return format_clock_time(value)

    def process_result_value(self, value: str | None, dialect) -> datetime.time | None:
        if value is None:
            return None
        return parse_clock_time(value)


def parse_clock_time(value: str) -> datetime.time:
    """Parse ``HH:MM`` (seconds tolerated and dropped)."""
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.datetime.strptime(value.strip(), fmt).time().replace(second=0)
        except ValueError:
            continue
    raise ValueError(f"Invalid time of day: {value!r}, expected HH:MM")


def format_clock_time(value: datetime.time) -> str:
    return value.strftime("%H:%M")
