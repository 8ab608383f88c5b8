from __future__ import annotations

import datetime as dt
import logging
from typing import Iterable

from staycal.categories import category_color, category_slug
from staycal.domain import Booking, DayState, HolidayRecord
from staycal.holidays import HolidayProvider, busy_season

logger = logging.getLogger(__name__)

SPLIT = "split"
PREMIUM_AVAILABLE = "premium-available"
AVAILABLE = "available"


class DayClassifier:
    """Resolves one calendar day against a booking set.

    Bookings are half-open intervals [start_date, end_date). The checkout day
    of a booking is its last occupied night, end_date - 1.
    """

    def __init__(self, bookings: Iterable[Booking], holidays: HolidayProvider) -> None:
        self._bookings = tuple(bookings)
        self._valid = tuple(b for b in self._bookings if b.is_valid)
        self._holidays = holidays

    @property
    def bookings(self) -> tuple[Booking, ...]:
        return self._bookings

    def occupant(self, day: dt.date) -> Booking | None:
        matches = [b for b in self._valid if b.start_date <= day < b.end_date]
        if not matches:
            return None

        if len(matches) > 1 and not _is_turnover(matches, day):
            logger.warning(
                "Overlapping bookings on %s: %s (showing the first)",
                day.isoformat(),
                "; ".join(b.label() for b in matches),
            )
        return matches[0]

    def checkout_booking(self, day: dt.date) -> Booking | None:
        for b in self._valid:
            if b.last_occupied_night == day:
                return b
        return None

    def checkin_booking(self, day: dt.date) -> Booking | None:
        for b in self._valid:
            if b.start_date == day:
                return b
        return None

    def is_busy_season(self, day: dt.date) -> bool:
        season = busy_season(self._holidays, day.year)
        if season is None:
            return False
        start, end = season
        return start <= day <= end

    def holiday_for(self, day: dt.date) -> HolidayRecord | None:
        return self._holidays.holiday_for_date(day)

    def classify(self, day: dt.date) -> DayState:
        occupant = self.occupant(day)
        checkout = self.checkout_booking(day)
        checkin = self.checkin_booking(day)
        busy = self.is_busy_season(day)
        holiday = self.holiday_for(day)

        transition: str | None = None
        colors: tuple[str, ...] = ()

        if checkout is not None and checkin is not None and checkout is not checkin:
            category = SPLIT
            transition = "turnover"
            colors = (category_color(checkout.category), category_color(checkin.category))
        elif checkout is not None and checkout is not checkin:
            category = category_slug(checkout.category)
            transition = "checkout"
            colors = (category_color(checkout.category),)
        elif checkin is not None:
            # Also the single-night stay, whose only night is its checkout day.
            category = category_slug(checkin.category)
            transition = "checkin"
            colors = (category_color(checkin.category),)
        elif occupant is not None:
            if not occupant.category:
                logger.warning("Booking without category on %s: %s", day.isoformat(), occupant.label())
            category = category_slug(occupant.category)
            colors = (category_color(occupant.category),)
        elif busy:
            category = PREMIUM_AVAILABLE
        else:
            category = AVAILABLE

        return DayState(
            date=day,
            display_category=category,
            occupied_by=occupant,
            checkout_booking=checkout,
            checkin_booking=checkin,
            holiday=holiday,
            is_busy_season=busy,
            transition=transition,
            colors=colors,
        )


def _is_turnover(matches: list[Booking], day: dt.date) -> bool:
    # One guest's last night is the next guest's first: expected, not an overlap.
    if len(matches) != 2:
        return False
    first, second = matches
    return (first.last_occupied_night == day and second.start_date == day) or (
        second.last_occupied_night == day and first.start_date == day
    )


def is_clickable(state: DayState) -> bool:
    return (
        state.occupied_by is not None
        or state.checkout_booking is not None
        or state.checkin_booking is not None
    )


def resolve_click(state: DayState, x: float, y: float, width: float) -> Booking | None:
    """Booking to present for a click at (x, y) inside a cell of the given width.

    On a turnover day the cell is split along its anti-diagonal: the top-left
    half (x + y < width) is the departing booking, the rest the arriving one.
    """
    if state.transition == "turnover":
        if x + y < width:
            return state.checkout_booking
        return state.checkin_booking

    return state.occupied_by or state.checkin_booking or state.checkout_booking
