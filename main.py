import argparse
import asyncio
import datetime as dt
import logging

from staycal.booking_store import BookingStore
from staycal.classifier import resolve_click
from staycal.config import Settings, load_settings
from staycal.domain import CalendarCursor, FetchError
from staycal.holidays import make_holiday_provider
from staycal.session import CalendarSession
from staycal.view import booking_detail, format_month_text, render_month

logger = logging.getLogger(__name__)


def _setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


def _print_month(session: CalendarSession) -> None:
    grid = render_month(session.classifier(), session.cursor)
    print(format_month_text(grid))
    if session.error:
        print(f"\n! {session.error}")
    print(flush=True)


def _print_detail(session: CalendarSession, day: dt.date) -> None:
    state = session.classifier().classify(day)
    # Top-left corner of the cell: the departing guest on a turnover day.
    booking = resolve_click(state, 0, 0, 1)
    if booking is None:
        print(f"{day.isoformat()}: available")
        return
    print("\n".join(booking_detail(booking).lines()))


async def _run(settings: Settings, args: argparse.Namespace) -> int:
    store = BookingStore(settings.api_url, timeout_seconds=settings.request_timeout_seconds)
    session = CalendarSession(store, make_holiday_provider(settings.holiday_source))

    try:
        try:
            await session.start()
            year = args.year
            if year is None and args.detail is not None:
                year = args.detail.year
            if year is not None and year != session.selected_year:
                await session.select_year(year)
            if args.month is not None:
                session.cursor = CalendarCursor(year=session.cursor.year, month=args.month - 1)
        except FetchError as e:
            print(f"Calendar unavailable: {e}")
            if args.once:
                return 1

        if args.detail is not None:
            _print_detail(session, args.detail)
        else:
            _print_month(session)

        if args.once:
            return 0

        session.on_change = _print_month
        await session.start_auto_refresh(settings.refresh_interval_seconds)
        return 0
    finally:
        await session.aclose()


def main() -> int:
    parser = argparse.ArgumentParser(description="staycal: property booking month calendar")
    parser.add_argument("--year", type=int, help="Year to show (default: backend's current year)")
    parser.add_argument("--month", type=int, choices=range(1, 13), metavar="1-12", help="Month to show")
    parser.add_argument("--detail", type=dt.date.fromisoformat, metavar="YYYY-MM-DD", help="Show booking detail for a day")
    parser.add_argument("--once", action="store_true", help="Render once and exit")
    args = parser.parse_args()

    settings = load_settings()
    _setup_logging(settings.log_level)

    try:
        return asyncio.run(_run(settings, args))
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
