"""
Class-date derivation.

A class date is a day inside a quarter whose weekday is one of the
classroom's scheduled days, that is not a weekend and not a break date.
"""
import calendar
from datetime import date, timedelta

WEEKEND = ('Saturday', 'Sunday')


def to_date(value):
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def _break_set(break_dates):
    return {to_date(d).isoformat() for d in (break_dates or []) if str(d).strip()}


def parse_break_dates(text):
    """Parse a comma separated list of ISO dates, sorted and de-duplicated."""
    if not text:
        return []
    dates = set()
    for part in str(text).split(','):
        part = part.strip()
        if part:
            dates.add(date.fromisoformat(part).isoformat())
    return sorted(dates)


def class_dates(start, end, days, break_dates=None):
    """
    Return every scheduled class date between start and end, inclusive.

    ``days`` holds weekday names ('Monday', ...). Weekends and break dates
    are always skipped. Returns an ascending list of ``date`` objects.
    """
    if not days:
        return []
    start, end = to_date(start), to_date(end)
    if start > end:
        return []

    wanted = set(days)
    breaks = _break_set(break_dates)
    result = []
    current = start
    while current <= end:
        weekday = current.strftime('%A')
        if weekday in wanted and weekday not in WEEKEND and current.isoformat() not in breaks:
            result.append(current)
        current += timedelta(days=1)
    return result


def quarter_class_dates(quarter, classroom):
    """Class dates of a classroom inside a quarter."""
    return class_dates(quarter.start_date, quarter.end_date, classroom.schedule_days, quarter.break_dates)


def is_class_date(value, quarter, classroom):
    day = to_date(value)
    if day < quarter.start_date or day > quarter.end_date:
        return False
    return day in class_dates(day, day, classroom.schedule_days, quarter.break_dates)


def months_between(start, end):
    """'YYYY-MM' strings for every month touched by the range."""
    start, end = to_date(start), to_date(end)
    months = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        months.append(f"{year:04d}-{month:02d}")
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return months


def month_bounds(month):
    """First and last day of a 'YYYY-MM' month."""
    year, month_number = (int(part) for part in month.split('-'))
    last_day = calendar.monthrange(year, month_number)[1]
    return date(year, month_number, 1), date(year, month_number, last_day)
