#!/usr/bin/env python3
"""
Tests for the rainfall provider.

Network calls go through httpx.MockTransport; nothing leaves the process.
"""

import asyncio
import sys
from datetime import date, timedelta
from pathlib import Path

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "scripts"))

from rainfall_provider import (
    DEFAULT_RAINFALL,
    MAX_MISSING_DAYS,
    MONTHS,
    fetch_rainfall,
    fetch_rainfall_sync,
    normalise_archive_payload,
)
from rwh_models import Coordinates

BANGALORE = Coordinates(latitude=12.97, longitude=77.59)
TODAY = date(2025, 1, 1)


def _payload(days=730, mm_for=lambda d: 1.0, end=TODAY - timedelta(days=1)):
    dates = [end - timedelta(days=i) for i in range(days - 1, -1, -1)]
    return {
        "latitude": 12.97,
        "longitude": 77.59,
        "daily": {
            "time": [d.isoformat() for d in dates],
            "precipitation_sum": [mm_for(d) for d in dates],
        },
    }


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _fetch(client, coords=BANGALORE):
    async def go():
        async with client:
            return await fetch_rainfall(coords, client=client, today=TODAY, live=True)
    return asyncio.run(go())


# ==========================================================================
# Default record
# ==========================================================================


class TestDefaultRecord:

    def test_default_values(self):
        assert DEFAULT_RAINFALL.current_year_mm == 1250
        assert DEFAULT_RAINFALL.previous_year_mm == 1180
        assert DEFAULT_RAINFALL.average_mm == 1200
        assert DEFAULT_RAINFALL.rainy_days == 65
        assert DEFAULT_RAINFALL.peak_month == "July"
        assert DEFAULT_RAINFALL.source == "default"

    def test_default_has_twelve_months(self):
        assert list(DEFAULT_RAINFALL.monthly_distribution) == list(MONTHS)

    def test_no_coordinates_returns_default(self):
        assert fetch_rainfall_sync(None, live=True) is DEFAULT_RAINFALL

    def test_default_record_read_only(self):
        record = fetch_rainfall_sync(None)
        with pytest.raises(TypeError):
            record.monthly_distribution["Jan"] = 9999
        assert fetch_rainfall_sync(None).monthly_distribution["Jan"] == 15

    def test_live_disabled_returns_default(self):
        assert fetch_rainfall_sync(BANGALORE, live=False) is DEFAULT_RAINFALL


# ==========================================================================
# Live lookup
# ==========================================================================


class TestLiveLookup:

    def test_request_parameters(self):
        seen = {}

        def handler(request):
            seen.update(dict(request.url.params))
            return httpx.Response(200, json=_payload())

        _fetch(_client(handler))
        assert seen["daily"] == "precipitation_sum"
        assert seen["end_date"] == "2024-12-27"  # archive lag
        assert seen["start_date"] == "2022-12-29"
        assert float(seen["latitude"]) == 12.97

    def test_normalised_record(self):
        # 2 mm a day in the last year, 1 mm a day the year before
        cutoff = TODAY - timedelta(days=365)
        payload = _payload(mm_for=lambda d: 2.0 if d >= cutoff else 1.0)
        record = _fetch(_client(lambda request: httpx.Response(200, json=payload)))
        assert record.source == "open-meteo"
        assert record.current_year_mm == 730
        assert record.previous_year_mm == 365
        assert record.average_mm == 547.5
        assert record.rainy_days == 0  # 2 mm is below the rainy-day threshold
        assert sum(record.monthly_distribution.values()) == pytest.approx(730)
        assert record.region == "12.97, 77.59"

    def test_peak_month_and_rainy_days(self):
        payload = _payload(mm_for=lambda d: 20.0 if d.month == 7 else 0.0)
        payload["daily"]["precipitation_sum"][-1] = None  # archive lag
        record = normalise_archive_payload(payload, BANGALORE)
        assert record.peak_month == "July"
        assert record.rainy_days == 31
        assert record.monthly_distribution["Jul"] == 620

    def test_few_missing_days_count_as_dry(self):
        payload = _payload(mm_for=lambda d: 1.0)
        for i in range(1, MAX_MISSING_DAYS + 1):
            payload["daily"]["precipitation_sum"][-i] = None
        record = normalise_archive_payload(payload, BANGALORE)
        assert record.current_year_mm == 365 - MAX_MISSING_DAYS

    def test_many_missing_days_rejected(self):
        payload = _payload(mm_for=lambda d: 1.0)
        for i in range(1, 31):
            payload["daily"]["precipitation_sum"][-i] = None
        with pytest.raises(ValueError):
            normalise_archive_payload(payload, BANGALORE)
        record = _fetch(_client(lambda request: httpx.Response(200, json=payload)))
        assert record is DEFAULT_RAINFALL

    def test_dry_year_has_no_peak_month(self):
        record = normalise_archive_payload(_payload(mm_for=lambda d: 0.0), BANGALORE)
        assert record.current_year_mm == 0
        assert record.peak_month is None


class TestDegradation:
    """Every failure resolves to the default record, flagged by its source."""

    def test_http_error_status(self):
        record = _fetch(_client(lambda request: httpx.Response(503)))
        assert record is DEFAULT_RAINFALL

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        assert _fetch(_client(handler)) is DEFAULT_RAINFALL

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        assert _fetch(_client(handler)) is DEFAULT_RAINFALL

    def test_invalid_json(self):
        record = _fetch(_client(lambda request: httpx.Response(200, content=b"<html>")))
        assert record is DEFAULT_RAINFALL

    def test_missing_daily_block(self):
        record = _fetch(_client(lambda request: httpx.Response(200, json={"error": True})))
        assert record is DEFAULT_RAINFALL

    def test_short_series(self):
        record = _fetch(_client(lambda request: httpx.Response(200, json=_payload(days=100))))
        assert record is DEFAULT_RAINFALL

    def test_negative_values_rejected(self):
        payload = _payload(mm_for=lambda d: -3.0)
        assert _fetch(_client(lambda request: httpx.Response(200, json=payload))) is DEFAULT_RAINFALL

    def test_single_attempt(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        _fetch(_client(handler))
        assert len(calls) == 1
