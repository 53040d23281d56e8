from datetime import date, datetime, timezone


def now_utc() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def utc_timestamp() -> datetime:
    """Naive UTC datetime, the form stored in record timestamps.

    SQLite drops tzinfo on the way back, so every stored timestamp is naive to
    keep rows loaded from disk comparable with rows created in memory.
    """
    return now_utc().replace(tzinfo=None)


def pretty_date(d: date | None) -> str:
    """dd/mm/yyyy, the format printed on documents."""
    if d is None:
        return "—"
    return d.strftime("%d/%m/%Y")


def parse_date(value) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def parse_timestamp(value) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value)
        # JavaScript toISOString() emits a trailing Z
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt
