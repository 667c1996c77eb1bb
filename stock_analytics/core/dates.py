import calendar
from datetime import date, datetime, timedelta

from stock_analytics.core.constants import MONTH_NAMES


def normalize_date(value):
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        value_text = value.strip()
        if not value_text:
            return None
        try:
            return date.fromisoformat(value_text[:10])
        except ValueError:
            raise ValueError(f"invalid date {value_text!r}, expected YYYY-MM-DD") from None
    raise ValueError(f"invalid date {value!r}, expected YYYY-MM-DD")


def iso_date(value):
    return value.isoformat() if value is not None else None


def day_label(value: date) -> str:
    return f"{value.day} {MONTH_NAMES[value.month - 1]}"


def week_key(value: date) -> str:
    iso_year, iso_week, _ = value.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def week_bounds(value: date):
    start = value - timedelta(days=value.weekday())
    return start, start + timedelta(days=6)


def month_key(value: date) -> str:
    return f"{value.year}-{value.month:02d}"


def month_label(value: date) -> str:
    return f"{MONTH_NAMES[value.month - 1]} {value.year}"


def month_bounds(value: date):
    last_day = calendar.monthrange(value.year, value.month)[1]
    return value.replace(day=1), value.replace(day=last_day)
