"""
RainCheck: location helpers

- parse_gps_coords: "lat, lng" form text -> Coordinates
- reverse_geocode: coordinates -> address label via OpenStreetMap Nominatim,
  falling back to the formatted coordinates when the lookup fails.

Only the resulting label feeds SiteProfile.location_label; the assessment
itself never depends on geocoding.
"""

import logging
import os

import httpx
from pydantic import ValidationError

from rwh_models import Coordinates, GeocodeResult

log = logging.getLogger(__name__)

GEOCODER_URL = os.environ.get("RWH_GEOCODER_URL", "https://nominatim.openstreetmap.org/reverse")
GEOCODER_USER_AGENT = os.environ.get("RWH_GEOCODER_USER_AGENT", "raincheck/1.0")
GEOCODER_TIMEOUT = float(os.environ.get("RWH_GEOCODER_TIMEOUT", "10"))


def format_coordinates(lat: float, lon: float) -> str:
    return f"Lat: {lat:.6f}, Lng: {lon:.6f}"


def parse_gps_coords(raw: str) -> Coordinates:
    """Parse a "lat, lng" string such as "12.971599, 77.594566".

    Raises ValueError if the text is not two comma-separated numbers inside
    the valid latitude/longitude ranges.
    """
    parts = [p.strip() for p in (raw or "").split(",")]
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"Expected 'lat, lng', got {raw!r}")
    try:
        lat, lon = float(parts[0]), float(parts[1])
    except ValueError:
        raise ValueError(f"Coordinates are not numeric: {raw!r}") from None
    try:
        return Coordinates(latitude=lat, longitude=lon)
    except ValidationError as e:
        raise ValueError(f"Coordinates out of range: {raw!r}") from e


async def _lookup(client: httpx.AsyncClient, lat: float, lon: float) -> str:
    resp = await client.get(
        GEOCODER_URL,
        params={"format": "json", "lat": lat, "lon": lon, "zoom": 14, "addressdetails": 1},
        headers={"User-Agent": GEOCODER_USER_AGENT},
    )
    resp.raise_for_status()
    name = resp.json().get("display_name")
    if not name:
        raise ValueError("response has no display_name")
    return name


async def reverse_geocode(lat: float, lon: float, *, client: httpx.AsyncClient | None = None) -> GeocodeResult:
    """Address label for a coordinate pair; never raises on lookup failure."""
    try:
        if client is not None:
            address = await _lookup(client, lat, lon)
        else:
            async with httpx.AsyncClient(timeout=GEOCODER_TIMEOUT) as own_client:
                address = await _lookup(own_client, lat, lon)
        return GeocodeResult(address=address, resolved=True)
    except (httpx.HTTPError, ValueError, AttributeError) as e:
        log.warning("Reverse geocoding failed for %s, %s: %s", lat, lon, e)
        return GeocodeResult(address=format_coordinates(lat, lon), resolved=False)
