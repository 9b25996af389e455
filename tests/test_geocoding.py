#!/usr/bin/env python3
"""
Tests for GPS parsing and reverse geocoding.
"""

import asyncio
import sys
from pathlib import Path

import httpx
import pytest
from pydantic import ValidationError

sys.path.insert(0, str(Path(__file__).parent.parent / "scripts"))

from geocoding import format_coordinates, parse_gps_coords, reverse_geocode


def _reverse(handler, lat=12.971599, lon=77.594566):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await reverse_geocode(lat, lon, client=client)
    return asyncio.run(go())


class TestParseGps:

    def test_valid(self):
        coords = parse_gps_coords("12.971599, 77.594566")
        assert coords.latitude == 12.971599
        assert coords.longitude == 77.594566

    def test_no_space(self):
        assert parse_gps_coords("-33.9,18.4").latitude == -33.9

    @pytest.mark.parametrize("raw", ["", "12.9", "abc, def", "1, 2, 3", "95, 10", "10, 190", ", 10"])
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            parse_gps_coords(raw)


class TestReverseGeocode:

    def test_resolved_address(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            seen["agent"] = request.headers["user-agent"]
            return httpx.Response(200, json={"display_name": "MG Road, Bengaluru, Karnataka, India"})

        result = _reverse(handler)
        assert result.resolved is True
        assert result.address == "MG Road, Bengaluru, Karnataka, India"
        assert seen["params"]["format"] == "json"
        assert seen["params"]["zoom"] == "14"
        assert seen["agent"]

    def test_service_down_falls_back(self):
        result = _reverse(lambda request: httpx.Response(500))
        assert result.resolved is False
        assert result.address == "Lat: 12.971599, Lng: 77.594566"

    def test_missing_display_name_falls_back(self):
        result = _reverse(lambda request: httpx.Response(200, json={"error": "Unable to geocode"}))
        assert result.resolved is False

    def test_format_coordinates(self):
        assert format_coordinates(1.5, -2.25) == "Lat: 1.500000, Lng: -2.250000"

    def test_result_is_frozen_record(self):
        result = _reverse(lambda request: httpx.Response(500))
        with pytest.raises(ValidationError):
            result.address = "Somewhere else"
        assert result.model_dump() == {"address": "Lat: 12.971599, Lng: 77.594566", "resolved": False}
