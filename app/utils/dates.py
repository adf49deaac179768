import datetime


def parse_date(value):
    """
    Accept a date, a datetime or an ISO string (YYYY-MM-DD, optionally with a
    time part such as 2024-01-15T00:00:00.000Z) and return a date.
    """
    if value is None or value == "":
        raise ValueError("date is required")
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    return datetime.date.fromisoformat(str(value)[:10])


def parse_datetime(value):
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time.min)
    text = str(value).replace("Z", "+00:00")
    parsed = datetime.datetime.fromisoformat(text)
    # Stored timestamps are naive UTC
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return parsed


def add_months(start: datetime.date, months: int) -> datetime.date:
    """
    Add months the way a calendar roll-forward does: a day past the end of
    the target month carries into the next one (Jan 31 + 1 month => Mar 2).
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    return datetime.date(year, month, 1) + datetime.timedelta(days=start.day - 1)


def calc_end_date(start_date, duration) -> datetime.date:
    """End of a term: the day before the same date `duration` months later."""
    start = parse_date(start_date)
    return add_months(start, int(duration)) - datetime.timedelta(days=1)


def expiry_window(days: int = 7, today=None):
    """Inclusive [today, today + days] range used for expiry lookups."""
    today = today or datetime.date.today()
    return today, today + datetime.timedelta(days=days)


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)
