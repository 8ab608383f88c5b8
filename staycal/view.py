"""Stateless rendering of DayState into display primitives.

Nothing here touches the network or holds state; the same DayState always
renders to the same DayCell.
"""

from __future__ import annotations

import calendar
import datetime as dt
from dataclasses import dataclass, field

from staycal.categories import AVAILABLE_COLOR, EMPTY_COLOR, category_color
from staycal.classifier import DayClassifier, is_clickable
from staycal.domain import Booking, CalendarCursor, DayState

CHECKIN_TIME = dt.time(15, 0)
CHECKOUT_TIME = dt.time(10, 0)

AVAILABLE_GRADIENT = (AVAILABLE_COLOR, "#8fd3f4")
PREMIUM_GRADIENT = ("#ffd700", "#ffed4e")

_SPLIT_CLASS = {
    "turnover": "split-day-both",
    "checkout": "split-day-checkout",
    "checkin": "split-day-checkin",
}


@dataclass(frozen=True)
class Badge:
    text: str
    title: str = ""


@dataclass(frozen=True)
class DayCell:
    day: int
    css_classes: tuple[str, ...]
    css_vars: dict[str, str]
    badges: tuple[Badge, ...] = ()
    holiday_marker: Badge | None = None
    clickable: bool = False
    state: DayState | None = field(default=None, compare=False)


@dataclass(frozen=True)
class MonthGrid:
    cursor: CalendarCursor
    title: str
    leading_blanks: int
    cells: tuple[DayCell, ...]


@dataclass(frozen=True)
class BookingDetail:
    title: str
    color: str
    checkin_date: dt.date
    checkin_time: dt.time
    checkout_date: dt.date
    checkout_time: dt.time
    nights: int

    @property
    def nights_label(self) -> str:
        return f"{self.nights} night{'s' if self.nights != 1 else ''}"

    def lines(self) -> list[str]:
        return [
            self.title,
            f"Check-in:  {_long_date(self.checkin_date)} ({_clock(self.checkin_time)})",
            f"Check-out: {_long_date(self.checkout_date)} ({_clock(self.checkout_time)})",
            f"Duration:  {self.nights_label}",
        ]


def _long_date(day: dt.date) -> str:
    return f"{calendar.day_name[day.weekday()]}, {calendar.month_name[day.month]} {day.day}, {day.year}"


def _clock(t: dt.time) -> str:
    hour = t.hour % 12 or 12
    return f"{hour}:{t.minute:02d} {'AM' if t.hour < 12 else 'PM'}"


def _transition_badge(booking: Booking, kind: str) -> Badge:
    name = booking.category or "Owner"
    when = "checkout (10 AM)" if kind == "checkout" else "checkin (3 PM)"
    return Badge(text=name, title=f"{name} {when}")


def render_day(state: DayState) -> DayCell:
    classes = ["calendar-day"]
    if state.transition:
        classes.append(_SPLIT_CLASS[state.transition])
    else:
        classes.append(state.display_category)

    shows_checkout = state.transition in ("turnover", "checkout")
    shows_checkin = state.transition in ("turnover", "checkin")

    start, end = PREMIUM_GRADIENT if state.is_busy_season else AVAILABLE_GRADIENT
    css_vars = {
        "--checkout-color": EMPTY_COLOR,
        "--checkin-color": EMPTY_COLOR,
        "--available-color-start": start,
        "--available-color-end": end,
    }
    if shows_checkout:
        css_vars["--checkout-color"] = category_color(state.checkout_booking.category)
    if shows_checkin:
        css_vars["--checkin-color"] = category_color(state.checkin_booking.category)

    badges: list[Badge] = []
    if shows_checkout:
        badges.append(_transition_badge(state.checkout_booking, "checkout"))
    if shows_checkin:
        badges.append(_transition_badge(state.checkin_booking, "checkin"))
    if not badges:
        if state.occupied_by is not None:
            badges.append(Badge(text=state.occupied_by.category or "Owner Reservation"))
        else:
            badges.append(Badge(text="Available"))

    marker = None
    if state.holiday is not None:
        marker = Badge(text=state.holiday.emoji, title=state.holiday.name)

    clickable = is_clickable(state)
    if clickable:
        classes.append("clickable")

    return DayCell(
        day=state.date.day,
        css_classes=tuple(classes),
        css_vars=css_vars,
        badges=tuple(badges),
        holiday_marker=marker,
        clickable=clickable,
        state=state,
    )


def render_month(classifier: DayClassifier, cursor: CalendarCursor) -> MonthGrid:
    first = cursor.first_day()
    num_days = calendar.monthrange(first.year, first.month)[1]
    cells = tuple(
        render_day(classifier.classify(first + dt.timedelta(days=i))) for i in range(num_days)
    )
    # Sunday-first week: Monday=0 -> 1 blank, Sunday=6 -> 0 blanks.
    leading = (first.weekday() + 1) % 7
    return MonthGrid(
        cursor=cursor,
        title=f"{calendar.month_name[first.month]} {first.year}",
        leading_blanks=leading,
        cells=cells,
    )


def booking_detail(booking: Booking) -> BookingDetail:
    if not booking.is_valid:
        raise ValueError(f"Booking has no usable dates: {booking.label()}")
    return BookingDetail(
        title=booking.category or "Reservation",
        color=category_color(booking.category),
        checkin_date=booking.start_date,
        checkin_time=CHECKIN_TIME,
        checkout_date=booking.end_date,
        checkout_time=CHECKOUT_TIME,
        nights=booking.nights,
    )


_CELL_MARK = {
    "turnover": "><",
    "checkout": "> ",
    "checkin": " <",
}


def _cell_text(cell: DayCell) -> str:
    state = cell.state
    if state is None:
        return f"{cell.day:>2}    "
    if state.transition:
        mark = _CELL_MARK[state.transition]
    elif state.occupied_by is not None:
        mark = "##"
    elif state.is_busy_season:
        mark = "$ "
    else:
        mark = "  "
    holiday = "*" if cell.holiday_marker else " "
    return f"{cell.day:>2}{holiday}{mark} "


def format_month_text(grid: MonthGrid) -> str:
    """Plain-text month: '##' booked, '>' checkout, '<' checkin, '$' busy season, '*' holiday."""
    header = " ".join(f"{name[:2]:<5}" for name in ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"))
    slots = ["      "] * grid.leading_blanks + [_cell_text(c) for c in grid.cells]

    lines = [grid.title.center(len(header)).rstrip(), header.rstrip()]
    for i in range(0, len(slots), 7):
        lines.append("".join(slots[i:i + 7]).rstrip())

    holidays = [c for c in grid.cells if c.holiday_marker is not None]
    if holidays:
        lines.append("")
        for c in holidays:
            lines.append(f"* {c.day:>2} {c.holiday_marker.text} {c.holiday_marker.title}")
    return "\n".join(lines)
