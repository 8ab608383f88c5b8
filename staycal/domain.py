from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Booking:
    """A single reservation as served by /api/bookings.

    end_date is exclusive: it is the departure day, the first free night.
    Dates that failed to parse are None and such a booking never matches a day.
    """

    start_date: dt.date | None
    end_date: dt.date | None
    category: str | None = None

    # Raw values from the API, kept for logging and display.
    start_raw: str = field(default="", compare=False)
    end_raw: str = field(default="", compare=False)

    @property
    def is_valid(self) -> bool:
        return (
            self.start_date is not None
            and self.end_date is not None
            and self.start_date <= self.end_date
        )

    @property
    def nights(self) -> int:
        if not self.is_valid:
            return 0
        return (self.end_date - self.start_date).days

    @property
    def last_occupied_night(self) -> dt.date | None:
        # A zero-night booking occupies nothing, so it has no checkout day.
        if self.nights < 1:
            return None
        return self.end_date - dt.timedelta(days=1)

    def label(self) -> str:
        return f"{self.category or 'Owner Reservation'} {self.start_raw}..{self.end_raw}"


@dataclass(frozen=True)
class HolidayRecord:
    date: dt.date
    name: str
    emoji: str


@dataclass(frozen=True)
class BookingSnapshot:
    """Everything fetched for one year; replaced as a whole on every fetch."""

    year: int
    bookings: tuple[Booking, ...]
    fetched_at: dt.datetime


@dataclass(frozen=True)
class CalendarCursor:
    year: int
    month: int  # 0-based, 0 = January

    def __post_init__(self) -> None:
        if not 0 <= self.month <= 11:
            raise ValueError(f"month must be in 0..11, got {self.month}")

    @classmethod
    def for_date(cls, day: dt.date) -> CalendarCursor:
        return cls(year=day.year, month=day.month - 1)

    def shifted(self, months: int) -> CalendarCursor:
        total = self.year * 12 + self.month + months
        return CalendarCursor(year=total // 12, month=total % 12)

    def first_day(self) -> dt.date:
        return dt.date(self.year, self.month + 1, 1)


@dataclass(frozen=True)
class DayState:
    date: dt.date
    display_category: str
    occupied_by: Booking | None = None
    checkout_booking: Booking | None = None
    checkin_booking: Booking | None = None
    holiday: HolidayRecord | None = None
    is_busy_season: bool = False
    # "turnover", "checkout", "checkin" or None
    transition: str | None = None
    colors: tuple[str, ...] = ()

    @property
    def is_checkout_day(self) -> bool:
        return self.checkout_booking is not None

    @property
    def is_checkin_day(self) -> bool:
        return self.checkin_booking is not None


class FetchError(RuntimeError):
    """The backend could not be reached, answered non-2xx or sent a malformed body."""

    def __init__(self, message: str, *, url: str = "", status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
