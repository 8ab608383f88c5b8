from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from staycal.holidays import HOLIDAY_SOURCES


@dataclass(frozen=True)
class Settings:
    api_url: str = "http://localhost:8080"

    # Periodic re-fetch of the selected year.
    refresh_interval_seconds: int = 300
    request_timeout_seconds: float = 20.0

    # "computed" (rules) or "table" (static observed dates)
    holiday_source: str = "computed"

    log_level: str = "INFO"


def _parse_api_url(raw: str) -> str:
    url = raw.strip().rstrip("/")
    if not url.startswith(("http://", "https://")):
        raise RuntimeError(f"Invalid STAYCAL_API_URL value: {raw!r}. Expected an http(s) URL.")
    return url


def _parse_int(name: str, default: str) -> int:
    raw = os.getenv(name, default).strip()
    try:
        return int(raw)
    except ValueError as e:
        raise RuntimeError(f"Invalid {name} value: {raw!r}. Expected an integer.") from e


def _parse_float(name: str, default: str) -> float:
    raw = os.getenv(name, default).strip()
    try:
        return float(raw)
    except ValueError as e:
        raise RuntimeError(f"Invalid {name} value: {raw!r}. Expected a number.") from e


def load_settings(dotenv_path: str | None = None) -> Settings:
    # Prefer .env in repo root; dotenv_path allows overriding in tests.
    load_dotenv(dotenv_path=dotenv_path, override=False)

    api_url = _parse_api_url(os.getenv("STAYCAL_API_URL", "http://localhost:8080"))

    refresh_interval_seconds = _parse_int("REFRESH_INTERVAL_SECONDS", "300")
    if refresh_interval_seconds < 1:
        raise RuntimeError("REFRESH_INTERVAL_SECONDS must be >= 1")

    request_timeout_seconds = _parse_float("REQUEST_TIMEOUT_SECONDS", "20")
    if request_timeout_seconds <= 0:
        raise RuntimeError("REQUEST_TIMEOUT_SECONDS must be > 0")

    holiday_source = os.getenv("HOLIDAY_SOURCE", "computed").strip().lower()
    if holiday_source not in HOLIDAY_SOURCES:
        raise RuntimeError(
            f"Invalid HOLIDAY_SOURCE value: {holiday_source!r}. Expected one of: {', '.join(HOLIDAY_SOURCES)}"
        )

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise RuntimeError(f"Invalid LOG_LEVEL value: {log_level!r}")

    return Settings(
        api_url=api_url,
        refresh_interval_seconds=refresh_interval_seconds,
        request_timeout_seconds=request_timeout_seconds,
        holiday_source=holiday_source,
        log_level=log_level,
    )
