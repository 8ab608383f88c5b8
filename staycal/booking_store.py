from __future__ import annotations

import datetime as dt
import logging
from typing import Any

import httpx

from staycal.domain import Booking, BookingSnapshot, FetchError

logger = logging.getLogger(__name__)


def _parse_day(value: Any) -> dt.date | None:
    if not isinstance(value, str):
        return None
    try:
        return dt.date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def _parse_timestamp(value: Any) -> dt.datetime | None:
    if not isinstance(value, str) or not value:
        return None
    # fromisoformat() before 3.11 does not accept a trailing "Z".
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return dt.datetime.fromisoformat(value)
    except ValueError:
        return None


def parse_booking(item: Any) -> Booking:
    if not isinstance(item, dict):
        raise ValueError(f"booking entry is not an object: {item!r}")

    start_raw = item.get("startDate")
    end_raw = item.get("endDate")
    category = item.get("category") or None
    if category is not None and not isinstance(category, str):
        category = str(category)

    booking = Booking(
        start_date=_parse_day(start_raw),
        end_date=_parse_day(end_raw),
        category=category,
        start_raw=str(start_raw or ""),
        end_raw=str(end_raw or ""),
    )
    if not booking.is_valid:
        logger.warning("Ignoring booking with bad dates: start=%r end=%r", start_raw, end_raw)
    elif booking.nights == 0:
        logger.warning("Zero-night booking on %s, only its checkin is shown", start_raw)
    return booking


class BookingStore:
    """Client-side cache of /api/years and /api/bookings.

    Each successful fetch replaces the cached data wholesale; a failed fetch
    leaves the previous cache untouched.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 20.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds)
        self._years: tuple[int, ...] = ()
        self._current_year: int | None = None
        self._snapshots: dict[int, BookingSnapshot] = {}

    async def __aenter__(self) -> BookingStore:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def cached_years(self) -> tuple[int, ...]:
        return self._years

    @property
    def current_year(self) -> int | None:
        return self._current_year

    def snapshot(self, year: int) -> BookingSnapshot | None:
        return self._snapshots.get(year)

    def bookings(self, year: int) -> tuple[Booking, ...]:
        snap = self._snapshots.get(year)
        return snap.bookings if snap else ()

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            r = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise FetchError(f"Request to {path} failed ({type(e).__name__}: {e})", url=path) from e

        if not r.is_success:
            raise FetchError(
                f"Request to {path} failed with status {r.status_code}",
                url=str(r.request.url),
                status_code=r.status_code,
            )

        try:
            data = r.json()
        except ValueError as e:
            raise FetchError(f"Response from {path} is not valid JSON", url=str(r.request.url)) from e

        if not isinstance(data, dict):
            raise FetchError(f"Response from {path} is not a JSON object", url=str(r.request.url))
        return data

    async def list_available_years(self) -> tuple[tuple[int, ...], int]:
        data = await self._get_json("/api/years")

        if not isinstance(data.get("years"), list):
            raise FetchError("Malformed /api/years response: 'years' is not a list", url="/api/years")
        try:
            years = tuple(int(y) for y in data["years"])
            current_year = int(data["currentYear"])
        except (KeyError, TypeError, ValueError) as e:
            raise FetchError(f"Malformed /api/years response ({type(e).__name__}: {e})", url="/api/years") from e

        self._years = years
        self._current_year = current_year
        logger.info("Available years: %s (current=%s)", ", ".join(map(str, years)), current_year)
        return years, current_year

    async def list_bookings(self, year: int) -> tuple[tuple[Booking, ...], dt.datetime]:
        data = await self._get_json("/api/bookings", params={"year": year})

        raw = data.get("bookings")
        if raw is None:
            # The backend serializes an empty Go slice as null.
            raw = []
        if not isinstance(raw, list):
            raise FetchError("Malformed /api/bookings response: 'bookings' is not a list", url="/api/bookings")

        try:
            bookings = tuple(parse_booking(item) for item in raw)
        except ValueError as e:
            raise FetchError(f"Malformed /api/bookings response ({e})", url="/api/bookings") from e

        fetched_at = _parse_timestamp(data.get("lastFetch"))
        if fetched_at is None:
            logger.warning("Missing or bad lastFetch %r, using local time", data.get("lastFetch"))
            fetched_at = dt.datetime.now().astimezone()

        snapshot = BookingSnapshot(year=year, bookings=bookings, fetched_at=fetched_at)
        # Swap in a new mapping; readers holding the old one keep a consistent view.
        self._snapshots = {**self._snapshots, year: snapshot}

        logger.info("Bookings for %s: %d (backend fetched at %s)", year, len(bookings), fetched_at.isoformat())
        return bookings, fetched_at
