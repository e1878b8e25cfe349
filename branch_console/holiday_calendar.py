# -*- coding: utf-8 -*-
"""Holiday lookups over an in-memory list of holidays.

Works with ``models.Holiday`` rows or anything else exposing ``date``,
``is_recurring`` and ``month_day``. A recurring Feb 29 holiday simply does not
occur in non-leap years.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional


@dataclass(frozen=True)
class HolidayOccurrence:
    holiday_id: Optional[int]
    name: str
    date: date
    is_recurring: bool


def month_day_of(day: date) -> str:
    return f"{day.month:02d}-{day.day:02d}"


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def is_holiday(day: date, holidays: Iterable) -> bool:
    day = _as_date(day)
    md = month_day_of(day)
    for h in holidays:
        if h.is_recurring:
            if h.month_day == md:
                return True
        elif _as_date(h.date) == day:
            return True
    return False


def _project(h, year: int) -> Optional[date]:
    # month_day is authoritative for recurring rows
    src = h.month_day or month_day_of(_as_date(h.date))
    mm, dd = map(int, src.split("-"))
    try:
        return date(year, mm, dd)
    except ValueError:
        return None  # 02-29 outside leap years


def holidays_for_year(year: int, holidays: Iterable) -> List[HolidayOccurrence]:
    out: List[HolidayOccurrence] = []
    for h in holidays:
        if h.is_recurring:
            d = _project(h, year)
        else:
            d = _as_date(h.date)
            if d.year != year:
                d = None
        if d is not None:
            out.append(HolidayOccurrence(getattr(h, "id", None), h.name, d, bool(h.is_recurring)))
    out.sort(key=lambda o: o.date)
    return out


def holiday_dates_in_range(start: date, end: date, holidays: Iterable) -> List[date]:
    start, end = _as_date(start), _as_date(end)
    if end < start:
        return []
    holidays = list(holidays)
    found = set()
    for year in range(start.year, end.year + 1):
        for occ in holidays_for_year(year, holidays):
            if start <= occ.date <= end:
                found.add(occ.date)
    return sorted(found)


def working_days(start: date, end: date, holidays: Iterable, allow_weekend: bool = False) -> List[date]:
    """Days of [start, end] that are neither holidays nor (unless allowed) weekends."""
    start, end = _as_date(start), _as_date(end)
    off = set(holiday_dates_in_range(start, end, holidays))
    days = []
    d = start
    while d <= end:
        if d not in off and (allow_weekend or d.weekday() < 5):
            days.append(d)
        d += timedelta(days=1)
    return days
