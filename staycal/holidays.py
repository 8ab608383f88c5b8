from __future__ import annotations

import calendar
import datetime as dt
import logging
from abc import ABC, abstractmethod

from staycal.domain import HolidayRecord

logger = logging.getLogger(__name__)

MONDAY, THURSDAY = calendar.MONDAY, calendar.THURSDAY

NEW_YEARS_DAY = "New Year's Day"
MLK_DAY = "Martin Luther King, Jr. Day"
PRESIDENTS_DAY = "Presidents Day"
MEMORIAL_DAY = "Memorial Day"
JUNETEENTH = "Juneteenth National Independence Day"
INDEPENDENCE_DAY = "Independence Day"
LABOUR_DAY = "Labour Day"
VETERANS_DAY = "Veterans Day"
THANKSGIVING = "Thanksgiving Day"
CHRISTMAS = "Christmas Day"
EASTER = "Easter Sunday"

EMOJI = {
    NEW_YEARS_DAY: "🎊",
    MLK_DAY: "✊",
    PRESIDENTS_DAY: "🎩",
    MEMORIAL_DAY: "🎖️",
    JUNETEENTH: "✊🏿",
    INDEPENDENCE_DAY: "🎆",
    LABOUR_DAY: "⚒️",
    VETERANS_DAY: "🇺🇸",
    THANKSGIVING: "🦃",
    CHRISTMAS: "🎄",
    EASTER: "🐣",
}


def nth_weekday(year: int, month: int, weekday: int, n: int) -> dt.date:
    """n-th occurrence (1-based) of weekday (Monday=0) in the month."""
    first = dt.date(year, month, 1)
    offset = (weekday - first.weekday()) % 7
    return first + dt.timedelta(days=offset + (n - 1) * 7)


def last_weekday(year: int, month: int, weekday: int) -> dt.date:
    last = dt.date(year, month, calendar.monthrange(year, month)[1])
    return last - dt.timedelta(days=(last.weekday() - weekday + 7) % 7)


def easter_sunday(year: int) -> dt.date:
    """Anonymous Gregorian algorithm (Meeus/Jones/Butcher)."""
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    l = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * l) // 451
    month, day = divmod(h + l - 7 * m + 114, 31)
    return dt.date(year, month, day + 1)


def observed(day: dt.date) -> dt.date:
    """Federal observance: Saturday moves to Friday, Sunday to Monday."""
    if day.weekday() == calendar.SATURDAY:
        return day - dt.timedelta(days=1)
    if day.weekday() == calendar.SUNDAY:
        return day + dt.timedelta(days=1)
    return day


def _record(day: dt.date, name: str) -> HolidayRecord:
    return HolidayRecord(date=day, name=name, emoji=EMOJI[name])


class HolidayProvider(ABC):
    def __init__(self) -> None:
        self._by_year: dict[int, tuple[HolidayRecord, ...]] = {}

    @abstractmethod
    def _build_year(self, year: int) -> tuple[HolidayRecord, ...]:
        """Holidays observed for the year, sorted by date."""

    def holidays_for_year(self, year: int) -> tuple[HolidayRecord, ...]:
        records = self._by_year.get(year)
        if records is None:
            records = self._build_year(year)
            self._by_year[year] = records
        return records

    def holiday_for_date(self, day: dt.date) -> HolidayRecord | None:
        # Observed New Year's Day may fall on Dec 31 of the previous year.
        for year in (day.year, day.year + 1):
            for holiday in self.holidays_for_year(year):
                if holiday.date == day:
                    return holiday
        return None

    def find(self, year: int, name: str) -> HolidayRecord | None:
        for holiday in self.holidays_for_year(year):
            if holiday.name == name:
                return holiday
        return None


class ComputedHolidayProvider(HolidayProvider):
    def _build_year(self, year: int) -> tuple[HolidayRecord, ...]:
        records = [
            _record(observed(dt.date(year, 1, 1)), NEW_YEARS_DAY),
            _record(nth_weekday(year, 1, MONDAY, 3), MLK_DAY),
            _record(nth_weekday(year, 2, MONDAY, 3), PRESIDENTS_DAY),
            _record(easter_sunday(year), EASTER),
            _record(last_weekday(year, 5, MONDAY), MEMORIAL_DAY),
            _record(observed(dt.date(year, 6, 19)), JUNETEENTH),
            _record(observed(dt.date(year, 7, 4)), INDEPENDENCE_DAY),
            _record(nth_weekday(year, 9, MONDAY, 1), LABOUR_DAY),
            _record(observed(dt.date(year, 11, 11)), VETERANS_DAY),
            _record(nth_weekday(year, 11, THURSDAY, 4), THANKSGIVING),
            _record(observed(dt.date(year, 12, 25)), CHRISTMAS),
        ]
        return tuple(sorted(records, key=lambda h: h.date))


# Observed US federal holidays, source: date.nager.at.
_TABLE: dict[int, tuple[tuple[str, str], ...]] = {
    2023: (
        ("2023-01-02", NEW_YEARS_DAY),
        ("2023-01-16", MLK_DAY),
        ("2023-02-20", PRESIDENTS_DAY),
        ("2023-05-29", MEMORIAL_DAY),
        ("2023-06-19", JUNETEENTH),
        ("2023-07-04", INDEPENDENCE_DAY),
        ("2023-09-04", LABOUR_DAY),
        ("2023-11-10", VETERANS_DAY),
        ("2023-11-23", THANKSGIVING),
        ("2023-12-25", CHRISTMAS),
    ),
    2024: (
        ("2024-01-01", NEW_YEARS_DAY),
        ("2024-01-15", MLK_DAY),
        ("2024-02-19", PRESIDENTS_DAY),
        ("2024-05-27", MEMORIAL_DAY),
        ("2024-06-19", JUNETEENTH),
        ("2024-07-04", INDEPENDENCE_DAY),
        ("2024-09-02", LABOUR_DAY),
        ("2024-11-11", VETERANS_DAY),
        ("2024-11-28", THANKSGIVING),
        ("2024-12-25", CHRISTMAS),
    ),
    2025: (
        ("2025-01-01", NEW_YEARS_DAY),
        ("2025-01-20", MLK_DAY),
        ("2025-02-17", PRESIDENTS_DAY),
        ("2025-05-26", MEMORIAL_DAY),
        ("2025-06-19", JUNETEENTH),
        ("2025-07-04", INDEPENDENCE_DAY),
        ("2025-09-01", LABOUR_DAY),
        ("2025-11-11", VETERANS_DAY),
        ("2025-11-27", THANKSGIVING),
        ("2025-12-25", CHRISTMAS),
    ),
    2026: (
        ("2026-01-01", NEW_YEARS_DAY),
        ("2026-01-19", MLK_DAY),
        ("2026-02-16", PRESIDENTS_DAY),
        ("2026-05-25", MEMORIAL_DAY),
        ("2026-06-19", JUNETEENTH),
        ("2026-07-03", INDEPENDENCE_DAY),
        ("2026-09-07", LABOUR_DAY),
        ("2026-11-11", VETERANS_DAY),
        ("2026-11-26", THANKSGIVING),
        ("2026-12-25", CHRISTMAS),
    ),
    2027: (
        ("2027-01-01", NEW_YEARS_DAY),
        ("2027-01-18", MLK_DAY),
        ("2027-02-15", PRESIDENTS_DAY),
        ("2027-05-31", MEMORIAL_DAY),
        ("2027-06-18", JUNETEENTH),
        ("2027-07-05", INDEPENDENCE_DAY),
        ("2027-09-06", LABOUR_DAY),
        ("2027-11-11", VETERANS_DAY),
        ("2027-11-25", THANKSGIVING),
        ("2027-12-24", CHRISTMAS),
    ),
    2028: (
        ("2027-12-31", NEW_YEARS_DAY),
        ("2028-01-17", MLK_DAY),
        ("2028-02-21", PRESIDENTS_DAY),
        ("2028-05-29", MEMORIAL_DAY),
        ("2028-06-19", JUNETEENTH),
        ("2028-07-04", INDEPENDENCE_DAY),
        ("2028-09-04", LABOUR_DAY),
        ("2028-11-10", VETERANS_DAY),
        ("2028-11-23", THANKSGIVING),
        ("2028-12-25", CHRISTMAS),
    ),
    2029: (
        ("2029-01-01", NEW_YEARS_DAY),
        ("2029-01-15", MLK_DAY),
        ("2029-02-19", PRESIDENTS_DAY),
        ("2029-05-28", MEMORIAL_DAY),
        ("2029-06-19", JUNETEENTH),
        ("2029-07-04", INDEPENDENCE_DAY),
        ("2029-09-03", LABOUR_DAY),
        ("2029-11-12", VETERANS_DAY),
        ("2029-11-22", THANKSGIVING),
        ("2029-12-25", CHRISTMAS),
    ),
    2030: (
        ("2030-01-01", NEW_YEARS_DAY),
        ("2030-01-21", MLK_DAY),
        ("2030-02-18", PRESIDENTS_DAY),
        ("2030-05-27", MEMORIAL_DAY),
        ("2030-06-19", JUNETEENTH),
        ("2030-07-04", INDEPENDENCE_DAY),
        ("2030-09-02", LABOUR_DAY),
        ("2030-11-11", VETERANS_DAY),
        ("2030-11-28", THANKSGIVING),
        ("2030-12-25", CHRISTMAS),
    ),
}


class TableHolidayProvider(HolidayProvider):
    def __init__(self, table: dict[int, tuple[tuple[str, str], ...]] | None = None) -> None:
        super().__init__()
        self._table = _TABLE if table is None else table

    @property
    def years(self) -> tuple[int, ...]:
        return tuple(sorted(self._table))

    def _build_year(self, year: int) -> tuple[HolidayRecord, ...]:
        rows = self._table.get(year)
        if rows is None:
            return ()
        records = [_record(dt.date.fromisoformat(iso), name) for iso, name in rows]
        return tuple(sorted(records, key=lambda h: h.date))


HOLIDAY_SOURCES = ("computed", "table")


def make_holiday_provider(source: str) -> HolidayProvider:
    if source == "computed":
        return ComputedHolidayProvider()
    if source == "table":
        return TableHolidayProvider()
    raise ValueError(f"Unknown holiday source: {source!r}. Expected one of {HOLIDAY_SOURCES}")


def busy_season(provider: HolidayProvider, year: int) -> tuple[dt.date, dt.date] | None:
    """Inclusive [Memorial Day, Labour Day] or None when either is unknown."""
    start = provider.find(year, MEMORIAL_DAY)
    end = provider.find(year, LABOUR_DAY)
    if start is None or end is None:
        logger.debug("No busy season for %s (memorial=%s labour=%s)", year, start, end)
        return None
    return start.date, end.date
