from __future__ import annotations

import asyncio
import datetime as dt

import httpx
import pytest

from staycal.booking_store import BookingStore
from staycal.domain import CalendarCursor, FetchError
from staycal.holidays import ComputedHolidayProvider
from staycal.session import CalendarSession

BASE_URL = "http://calendar.test"


def _backend(years=("2024", "2025"), current_year=2025, failing_years=()):
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/years":
            return httpx.Response(200, json={"years": list(years), "currentYear": current_year})
        year = int(request.url.params["year"])
        calls.append(year)
        if year in failing_years:
            return httpx.Response(500)
        return httpx.Response(
            200,
            json={
                "bookings": [{"startDate": f"{year}-07-04", "endDate": f"{year}-07-07", "category": "Guest Reservation"}],
                "lastFetch": "2025-07-01T00:00:00Z",
                "year": str(year),
            },
        )

    return handler, calls


def _session(handler, changes: list | None = None) -> CalendarSession:
    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    store = BookingStore(BASE_URL, client=client)
    on_change = changes.append if changes is not None else None
    return CalendarSession(store, ComputedHolidayProvider(), on_change=on_change)


def test_start_selects_current_year_and_todays_month() -> None:
    handler, calls = _backend()
    changes: list = []

    async def go():
        session = _session(handler, changes)
        await session.start(today=dt.date(2025, 7, 5))
        state = session.classifier().classify(dt.date(2025, 7, 5))
        await session.aclose()
        return session, state

    session, state = asyncio.run(go())
    assert session.available_years == (2024, 2025)
    assert session.selected_year == 2025
    assert session.cursor == CalendarCursor(year=2025, month=6)
    assert session.error is None
    assert calls == [2025]
    assert state.display_category == "guest-reservation"
    assert len(changes) == 1


def test_start_in_other_year_opens_january() -> None:
    handler, _ = _backend(current_year=2024)

    async def go():
        session = _session(handler)
        await session.start(today=dt.date(2025, 3, 1))
        await session.aclose()
        return session.cursor

    assert asyncio.run(go()) == CalendarCursor(year=2024, month=0)


def test_navigation_across_year_fetches_available_year() -> None:
    handler, calls = _backend()

    async def go():
        session = _session(handler)
        await session.start(today=dt.date(2025, 1, 10))
        moved_back = await session.previous_month()
        cursor_after_back = session.cursor
        moved_forward = await session.next_month()
        await session.aclose()
        return moved_back, cursor_after_back, moved_forward, session

    moved_back, cursor_after_back, moved_forward, session = asyncio.run(go())
    assert moved_back is True
    assert cursor_after_back == CalendarCursor(year=2024, month=11)
    assert moved_forward is True
    assert session.cursor == CalendarCursor(year=2025, month=0)
    assert session.selected_year == 2025
    assert calls == [2025, 2024, 2025]


def test_navigation_into_unavailable_year_is_reverted() -> None:
    handler, calls = _backend()

    async def go():
        session = _session(handler)
        await session.start(today=dt.date(2025, 12, 1))
        moved = await session.next_month()
        await session.aclose()
        return moved, session.cursor

    moved, cursor = asyncio.run(go())
    assert moved is False
    assert cursor == CalendarCursor(year=2025, month=11)
    assert calls == [2025]


def test_navigation_within_year_does_not_fetch() -> None:
    handler, calls = _backend()

    async def go():
        session = _session(handler)
        await session.start(today=dt.date(2025, 5, 1))
        await session.next_month()
        await session.aclose()
        return session.cursor

    assert asyncio.run(go()) == CalendarCursor(year=2025, month=5)
    assert calls == [2025]


def test_select_year_keeps_month() -> None:
    handler, calls = _backend()

    async def go():
        session = _session(handler)
        await session.start(today=dt.date(2025, 8, 1))
        await session.select_year(2024)
        await session.aclose()
        return session

    session = asyncio.run(go())
    assert session.cursor == CalendarCursor(year=2024, month=7)
    assert session.selected_year == 2024
    assert calls == [2025, 2024]


def test_failed_refresh_sets_error_and_keeps_cache() -> None:
    failing: set[int] = set()
    handler, _ = _backend(failing_years=failing)

    async def go():
        session = _session(handler)
        await session.start(today=dt.date(2025, 7, 1))
        failing.add(2025)
        with pytest.raises(FetchError):
            await session.refresh()
        error = session.error
        bookings = session.store.bookings(2025)
        failing.clear()
        await session.refresh()
        await session.aclose()
        return error, bookings, session.error

    error, bookings, error_after = asyncio.run(go())
    assert error is not None and "500" in error
    assert len(bookings) == 1
    assert error_after is None


def test_start_failure_sets_error_and_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    async def go():
        session = _session(handler)
        with pytest.raises(FetchError):
            await session.start(today=dt.date(2025, 7, 1))
        await session.aclose()
        return session.error

    assert "503" in asyncio.run(go())


def test_refresh_after_failed_start_loads_years_and_allows_navigation() -> None:
    years_up = False
    handler, calls = _backend()

    def flaky(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/years" and not years_up:
            return httpx.Response(503)
        return handler(request)

    async def go():
        nonlocal years_up
        session = _session(flaky)
        session.cursor = CalendarCursor(year=2025, month=0)
        session.selected_year = 2025
        with pytest.raises(FetchError):
            await session.start(today=dt.date(2025, 1, 10))
        years_before = session.available_years
        years_up = True
        await session.refresh()
        moved = await session.previous_month()
        await session.aclose()
        return years_before, moved, session

    years_before, moved, session = asyncio.run(go())
    assert years_before == ()
    assert session.available_years == (2024, 2025)
    assert session.error is None
    assert moved is True
    assert session.cursor == CalendarCursor(year=2024, month=11)
    assert calls == [2025, 2024]


def test_auto_refresh_keeps_running_after_failures_and_stops_on_cancel() -> None:
    session = _session(_backend()[0])
    outcomes = [FetchError("down"), None, FetchError("down again"), None]
    calls: list[int] = []

    async def fake_refresh() -> None:
        calls.append(1)
        outcome = outcomes[len(calls) - 1] if len(calls) <= len(outcomes) else None
        if outcome is not None:
            raise outcome

    async def go():
        session.refresh = fake_refresh
        task = session.start_auto_refresh(0.001)
        assert session.start_auto_refresh(0.001) is task
        while len(calls) < 4:
            await asyncio.sleep(0.001)
        await session.stop_auto_refresh()
        count = len(calls)
        await asyncio.sleep(0.01)
        await session.aclose()
        return task, count

    task, count = asyncio.run(go())
    assert task.cancelled()
    assert count >= 4
    assert len(calls) == count


def test_stop_auto_refresh_without_task_is_noop() -> None:
    session = _session(_backend()[0])

    async def go():
        await session.stop_auto_refresh()
        await session.aclose()

    asyncio.run(go())
