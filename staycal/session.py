from __future__ import annotations

import asyncio
import contextlib
import datetime as dt
import logging
from typing import Callable

from staycal.booking_store import BookingStore
from staycal.classifier import DayClassifier
from staycal.domain import CalendarCursor, FetchError
from staycal.holidays import HolidayProvider

logger = logging.getLogger(__name__)


class CalendarSession:
    """Everything one calendar view owns: cursor, selected year, cache and refresh task."""

    def __init__(
        self,
        store: BookingStore,
        holidays: HolidayProvider,
        *,
        on_change: Callable[[CalendarSession], None] | None = None,
    ) -> None:
        self.store = store
        self.holidays = holidays
        self.on_change = on_change

        today = dt.date.today()
        self.cursor = CalendarCursor.for_date(today)
        self.selected_year = today.year
        self.available_years: tuple[int, ...] = ()
        self.error: str | None = None

        self._refresh_task: asyncio.Task[None] | None = None

    def classifier(self) -> DayClassifier:
        return DayClassifier(self.store.bookings(self.selected_year), self.holidays)

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self)

    def _failed(self, e: FetchError) -> None:
        self.error = str(e)
        logger.error("Fetch failed (%s: %s)", type(e).__name__, e)

    async def start(self, today: dt.date | None = None) -> None:
        today = today or dt.date.today()
        try:
            years, current_year = await self.store.list_available_years()
            self.available_years = years
            self.selected_year = current_year
            if current_year == today.year:
                self.cursor = CalendarCursor.for_date(today)
            else:
                self.cursor = CalendarCursor(year=current_year, month=0)
            await self.store.list_bookings(current_year)
        except FetchError as e:
            self._failed(e)
            raise

        self.error = None
        self._changed()

    async def refresh(self) -> None:
        year = self.selected_year
        try:
            if not self.available_years:
                # start() failed earlier; without years every cross-year move is reverted.
                self.available_years, _ = await self.store.list_available_years()
            await self.store.list_bookings(year)
        except FetchError as e:
            self._failed(e)
            raise

        self.error = None
        self._changed()

    async def select_year(self, year: int) -> None:
        self.selected_year = year
        self.cursor = CalendarCursor(year=year, month=self.cursor.month)
        await self.refresh()

    async def _move(self, months: int) -> bool:
        target = self.cursor.shifted(months)
        if target.year == self.selected_year:
            self.cursor = target
            self._changed()
            return True

        if target.year not in self.available_years:
            logger.info("No data for %s, staying on %s-%02d", target.year, self.cursor.year, self.cursor.month + 1)
            return False

        self.cursor = target
        self.selected_year = target.year
        await self.refresh()
        return True

    async def next_month(self) -> bool:
        return await self._move(1)

    async def previous_month(self) -> bool:
        return await self._move(-1)

    # Periodic refresh

    async def _refresh_forever(self, interval_seconds: float) -> None:
        logger.info("Auto refresh started. Interval=%ss", interval_seconds)
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                await self.refresh()
            except FetchError:
                # Already logged and exposed via self.error; keep the cached data.
                continue

    def start_auto_refresh(self, interval_seconds: float = 300) -> asyncio.Task[None]:
        if self._refresh_task is not None and not self._refresh_task.done():
            return self._refresh_task
        self._refresh_task = asyncio.create_task(self._refresh_forever(interval_seconds))
        return self._refresh_task

    async def stop_auto_refresh(self) -> None:
        task, self._refresh_task = self._refresh_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Auto refresh stopped")

    async def aclose(self) -> None:
        await self.stop_auto_refresh()
        await self.store.aclose()
