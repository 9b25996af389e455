#!/usr/bin/env python3
"""
RainCheck: Rainwater Harvesting Feasibility Assessment

Provides the assessment pipeline:
  1. assemble_assessment(site, rainfall)   — pure, deterministic
  2. run_assessment(site)                  — async; fetches rainfall first
  3. run_assessment_sync(site)             — blocking wrapper

Stages run in a fixed order, each taking only earlier outputs:
  rainfall -> storage -> soil -> cost -> system -> groundwater

All figures are indicative/screening-level only and do not replace a site
survey by a qualified RWH installer.
"""

import asyncio
import logging

import httpx

from cost_engine import calculate_cost_estimate
from groundwater_engine import calculate_groundwater_impact
from rainfall_provider import fetch_rainfall
from rwh_models import AssessmentResult, RainfallRecord, SiteProfile
from soil_engine import get_soil_recommendations
from storage_engine import calculate_water_storage
from system_engine import recommend_system

log = logging.getLogger(__name__)


def assemble_assessment(site: SiteProfile, rainfall: RainfallRecord) -> AssessmentResult:
    """Run every calculation stage for a site and rainfall record.

    Pure: identical inputs always give an identical result.
    """
    storage = calculate_water_storage(site, rainfall)
    soil = get_soil_recommendations(site.soil_type, storage)
    cost = calculate_cost_estimate(site, storage)
    system = recommend_system(storage)
    groundwater = calculate_groundwater_impact(site, storage)

    return AssessmentResult(
        site=site,
        rainfall=rainfall,
        storage=storage,
        soil=soil,
        cost=cost,
        system=system,
        groundwater=groundwater,
        used_default_rainfall=rainfall.source == "default",
    )


async def run_assessment(
    site: SiteProfile,
    *,
    client: httpx.AsyncClient | None = None,
    live: bool | None = None,
) -> AssessmentResult:
    """Fetch rainfall for the site's coordinates, then assemble the result."""
    rainfall = await fetch_rainfall(site.coordinates, client=client, live=live)
    if rainfall.source == "default":
        log.info("Assessing %r with default rainfall record", site.location_label or "site")
    return assemble_assessment(site, rainfall)


def run_assessment_sync(site: SiteProfile, **kwargs) -> AssessmentResult:
    return asyncio.run(run_assessment(site, **kwargs))


# ---------------------------------------------------------------------------
# CLI interface
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import argparse
    import pprint

    from pydantic import ValidationError

    from rwh_models import Coordinates

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    parser = argparse.ArgumentParser(description="Rainwater Harvesting Feasibility Assessment")
    parser.add_argument("--roof-area", type=float, required=True, help="Roof area in m²")
    parser.add_argument("--open-space", type=float, default=0.0, help="Open space in m²")
    parser.add_argument("--soil", default="mixed", help="clay, sandy, loamy, rocky or mixed")
    parser.add_argument("--location", default="", help="Location label")
    parser.add_argument("--lat", type=float, help="Latitude")
    parser.add_argument("--lon", type=float, help="Longitude")
    parser.add_argument("--rainfall-mm", type=float, help="Annual rainfall override (skips the provider)")
    parser.add_argument("--live", action="store_true", help="Query the live rainfall archive")

    args = parser.parse_args()

    try:
        coords = None
        if args.lat is not None and args.lon is not None:
            coords = Coordinates(latitude=args.lat, longitude=args.lon)
        site = SiteProfile(
            roof_area_m2=args.roof_area,
            open_space_m2=args.open_space,
            soil_type=args.soil,
            location_label=args.location,
            coordinates=coords,
        )
        if args.rainfall_mm is not None:
            result = assemble_assessment(site, RainfallRecord(current_year_mm=args.rainfall_mm))
        else:
            result = run_assessment_sync(site, live=args.live or None)
    except ValidationError as e:
        parser.error(str(e))

    pprint.pprint(result.model_dump(mode="json"), sort_dicts=False)
