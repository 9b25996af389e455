"""
RainCheck: Rainfall Provider

Supplies the annual rainfall record for a site. By default this is a fixed
national-average record (Indian monsoon pattern). When RWH_LIVE_RAINFALL is
enabled and coordinates are known, one request is made to the Open-Meteo
historical archive for the last two years of daily precipitation.

Any failure of the live lookup (network, timeout, HTTP status, malformed
payload) degrades to the default record; the returned record's ``source``
says which one the caller got. There are no retries.
"""

import asyncio
import logging
import os
from datetime import date, timedelta

import httpx

from rwh_models import Coordinates, RainfallRecord

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
LIVE_RAINFALL = os.environ.get("RWH_LIVE_RAINFALL", "0").strip().lower() in ("1", "true", "yes")
RAINFALL_API_URL = os.environ.get("RWH_RAINFALL_API_URL", "https://archive-api.open-meteo.com/v1/archive")
RAINFALL_TIMEOUT = float(os.environ.get("RWH_RAINFALL_TIMEOUT", "10"))

DAYS_PER_YEAR = 365
ARCHIVE_LAG_DAYS = 5          # reanalysis trails real time by about five days
MAX_MISSING_DAYS = 7          # null days tolerated in the two-year series
RAINY_DAY_THRESHOLD_MM = 2.5   # IMD definition of a rainy day

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
          "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
MONTH_NAMES = ("January", "February", "March", "April", "May", "June", "July",
               "August", "September", "October", "November", "December")

DEFAULT_RAINFALL = RainfallRecord(
    current_year_mm=1250,
    previous_year_mm=1180,
    average_mm=1200,
    monthly_distribution={
        "Jan": 15, "Feb": 20, "Mar": 25, "Apr": 45,
        "May": 85, "Jun": 180, "Jul": 220, "Aug": 210,
        "Sep": 160, "Oct": 95, "Nov": 35, "Dec": 20,
    },
    rainy_days=65,
    peak_month="July",
    region="Central India",
    source="default",
)


def _archive_params(coordinates: Coordinates, today: date) -> dict:
    end = today - timedelta(days=ARCHIVE_LAG_DAYS)
    start = end - timedelta(days=2 * DAYS_PER_YEAR - 1)
    return {
        "latitude": coordinates.latitude,
        "longitude": coordinates.longitude,
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "daily": "precipitation_sum",
        "timezone": "auto",
    }


def normalise_archive_payload(payload: dict, coordinates: Coordinates) -> RainfallRecord:
    """Turn an Open-Meteo daily precipitation payload into a RainfallRecord.

    A few null days count as dry; more than MAX_MISSING_DAYS would
    undercount the totals, so the payload is rejected instead.

    Raises KeyError / TypeError / ValueError on a malformed payload.
    """
    daily = payload["daily"]
    days = [date.fromisoformat(d) for d in daily["time"]]
    raw = daily["precipitation_sum"]

    if len(days) != len(raw):
        raise ValueError("time and precipitation_sum lengths differ")
    if len(raw) < 2 * DAYS_PER_YEAR:
        raise ValueError(f"expected {2 * DAYS_PER_YEAR} daily values, got {len(raw)}")

    missing = sum(1 for mm in raw[-2 * DAYS_PER_YEAR:] if mm is None)
    if missing > MAX_MISSING_DAYS:
        raise ValueError(f"{missing} daily values missing (max {MAX_MISSING_DAYS})")
    totals = [float(mm) if mm is not None else 0.0 for mm in raw]

    current = totals[-DAYS_PER_YEAR:]
    previous = totals[-2 * DAYS_PER_YEAR:-DAYS_PER_YEAR]

    monthly = dict.fromkeys(MONTHS, 0.0)
    for day, mm in zip(days[-DAYS_PER_YEAR:], current):
        monthly[MONTHS[day.month - 1]] += mm
    monthly = {month: round(mm, 1) for month, mm in monthly.items()}

    wettest = max(range(12), key=lambda i: monthly[MONTHS[i]])
    current_mm = round(sum(current), 1)
    previous_mm = round(sum(previous), 1)

    return RainfallRecord(
        current_year_mm=current_mm,
        previous_year_mm=previous_mm,
        average_mm=round((current_mm + previous_mm) / 2, 1),
        monthly_distribution=monthly,
        rainy_days=sum(1 for mm in current if mm >= RAINY_DAY_THRESHOLD_MM),
        peak_month=MONTH_NAMES[wettest] if monthly[MONTHS[wettest]] > 0 else None,
        region=f"{coordinates.latitude:.2f}, {coordinates.longitude:.2f}",
        source="open-meteo",
    )


async def _fetch_archive(client: httpx.AsyncClient, coordinates: Coordinates, today: date) -> RainfallRecord:
    resp = await client.get(RAINFALL_API_URL, params=_archive_params(coordinates, today))
    resp.raise_for_status()
    return normalise_archive_payload(resp.json(), coordinates)


async def fetch_rainfall(
    coordinates: Coordinates | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    today: date | None = None,
    live: bool | None = None,
) -> RainfallRecord:
    """Rainfall record for the given coordinates, or the default record.

    Args:
        coordinates: Site location; None always yields the default record.
        client: Optional shared AsyncClient (tests inject a mock transport).
        today: Reference date for the two-year window (defaults to today).
        live: Override RWH_LIVE_RAINFALL.
    """
    if live is None:
        live = LIVE_RAINFALL
    if not live or coordinates is None:
        return DEFAULT_RAINFALL

    today = today or date.today()
    try:
        if client is not None:
            return await _fetch_archive(client, coordinates, today)
        async with httpx.AsyncClient(timeout=RAINFALL_TIMEOUT) as own_client:
            return await _fetch_archive(own_client, coordinates, today)
    except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
        log.warning("Rainfall lookup failed for %s, %s; using default record: %s",
                    coordinates.latitude, coordinates.longitude, e)
        return DEFAULT_RAINFALL


def fetch_rainfall_sync(coordinates: Coordinates | None = None, **kwargs) -> RainfallRecord:
    """Blocking wrapper around fetch_rainfall for scripts and CLIs."""
    return asyncio.run(fetch_rainfall(coordinates, **kwargs))
