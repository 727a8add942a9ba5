"""Display strings shared by the pages (money, dates, names, images)."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from casedesk.core.config import settings

_MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def q_money(x: Decimal) -> Decimal:
    return x.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def format_currency(amount: Decimal | float | int | str | None, *, symbol: str | None = None) -> str:
    """PHP style: 5000 -> "₱5,000.00". Missing or unparseable amounts show as zero."""
    sym = settings.currency_symbol if symbol is None else symbol
    try:
        value = q_money(Decimal(str(amount))) if amount is not None else Decimal("0.00")
    except InvalidOperation:
        value = Decimal("0.00")
    if not value.is_finite():
        value = Decimal("0.00")
    sign = "-" if value < 0 else ""
    return f"{sign}{sym}{abs(value):,.2f}"


def _as_datetime(value: dt.datetime | dt.date | str | None) -> dt.datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        return value
    if isinstance(value, dt.date):
        return dt.datetime(value.year, value.month, value.day)
    s = str(value).strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        return dt.datetime.fromisoformat(s)
    except ValueError:
        return None


def format_date(value: dt.datetime | dt.date | str | None) -> str:
    """"October 18, 2026"; empty string when there is no date."""
    d = _as_datetime(value)
    if d is None:
        return ""
    return f"{_MONTHS[d.month - 1]} {d.day}, {d.year}"


def _clock(d: dt.datetime, *, pad_hour: bool) -> str:
    hour = d.hour % 12 or 12
    suffix = "AM" if d.hour < 12 else "PM"
    h = f"{hour:02d}" if pad_hour else str(hour)
    return f"{h}:{d.minute:02d} {suffix}"


def format_datetime(value: dt.datetime | dt.date | str | None) -> str:
    """"October 18, 2026 at 3:05 PM"."""
    d = _as_datetime(value)
    if d is None:
        return ""
    return f"{format_date(d)} at {_clock(d, pad_hour=False)}"


def format_time(value: dt.datetime | str | None) -> str:
    """"03:05 PM" (activity feed)."""
    d = _as_datetime(value)
    return _clock(d, pad_hour=True) if d is not None else ""


def format_short_date(value: dt.datetime | dt.date | str | None) -> str:
    """"10/18/2026" (activity feed)."""
    d = _as_datetime(value)
    return f"{d.month}/{d.day}/{d.year}" if d is not None else ""


def full_name(*parts: str | None) -> str:
    return " ".join(p for p in parts if p)


def short_name(fname: str | None, mname: str | None, lname: str | None) -> str:
    """First name, middle initial, last name: "Maria C. Santos"."""
    middle = f"{mname[0]}." if mname else ""
    return " ".join(f"{fname or ''} {middle} {lname or ''}".split())


def image_url(path: str | None, *, origin: str | None = None, default: str | None = None) -> str:
    """Server-relative image paths are served from the API origin; no path means the bundled avatar."""
    if not path:
        return settings.default_avatar if default is None else default
    base = settings.api_base_url if origin is None else origin
    return f"{base}{path}"
