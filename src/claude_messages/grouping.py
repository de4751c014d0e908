"""Group messages into date sections: Today, Yesterday, This Week, ..., 2023."""

from datetime import date, datetime, timedelta

from .core import DisplayMessage, MessageGroup

SECTION_ORDER = ["Today", "Yesterday", "This Week", "This Month", "This Year"]


def _local_day(ts: datetime, now: datetime) -> date:
    # Compare calendar days in the reference clock's timezone
    if ts.tzinfo is not None and now.tzinfo is not None:
        try:
            ts = ts.astimezone(now.tzinfo)
        except (OverflowError, ValueError):
            pass
    elif ts.tzinfo is not None:
        try:
            ts = ts.astimezone().replace(tzinfo=None)
        except (OverflowError, ValueError):
            pass
    return ts.date()


def date_category(timestamp: datetime, now: datetime | None = None) -> str:
    """Return the section label for a message timestamp.

    Weeks start on Monday. Anything before the current year is labelled
    with its four-digit year.
    """
    now = now or datetime.now().astimezone()
    today = now.date()
    yesterday = today - timedelta(days=1)
    day = _local_day(timestamp, now)

    if day == today:
        return "Today"
    if day == yesterday:
        return "Yesterday"

    start_of_week = today - timedelta(days=today.weekday())
    if start_of_week <= day < yesterday:
        return "This Week"

    start_of_month = today.replace(day=1)
    if start_of_month <= day < start_of_week:
        return "This Month"

    start_of_year = today.replace(month=1, day=1)
    if start_of_year <= day < start_of_month:
        return "This Year"

    return f"{day.year:04d}"


def section_sort_key(category: str) -> int:
    """Lower keys sort first: fixed sections 0-4, then years newest first."""
    if category in SECTION_ORDER:
        return SECTION_ORDER.index(category)
    try:
        return 10000 - int(category)
    except ValueError:
        return 99999


def group_by_date(messages: list[DisplayMessage], now: datetime | None = None) -> list[MessageGroup]:
    """Bucket messages into date sections, keeping input order within each."""
    now = now or datetime.now().astimezone()
    groups: dict[str, list[DisplayMessage]] = {}

    for message in messages:
        category = date_category(message.timestamp, now)
        groups.setdefault(category, []).append(message)

    result = [
        MessageGroup(category=category, messages=msgs, sort_key=section_sort_key(category))
        for category, msgs in groups.items()
    ]
    result.sort(key=lambda g: g.sort_key)
    return result


def format_section_title(category: str, count: int) -> str:
    return f"{category} ({count})"
