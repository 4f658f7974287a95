"""Calendar-month date arithmetic."""

import calendar
import datetime as dt


def add_months(start: dt.date, months: int) -> dt.date:
    """Advance a date by whole calendar months.

    The day of month is clamped to the last day of the target month, so
    Jan 31 + 1 month is Feb 28 (Feb 29 in leap years).
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return dt.date(year, month, day)


def whole_months_between(start: dt.date, end: dt.date) -> int:
    """Count the whole calendar months from start that fit before end.

    Returns 0 when end is not after start.
    """
    if end <= start:
        return 0

    months = (end.year - start.year) * 12 + (end.month - start.month)
    while months > 0 and add_months(start, months) > end:
        months -= 1
    return months
