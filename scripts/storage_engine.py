"""
RainCheck: Storage Calculator

Converts site catchment geometry and annual rainfall into harvestable water
and a recommended storage capacity.

Harvest per surface (litres) = area_m² × rainfall_mm × runoff coefficient
(1 mm over 1 m² is 1 litre).
"""

import logging
import math

from rwh_models import (
    RainfallRecord,
    SiteProfile,
    SoilType,
    StorageEstimate,
    resolve_soil_type,
    round_half_up,
)

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
ROOF_RUNOFF_COEFF = 0.85          # concrete / tile roof

# Fraction of rain on open ground that becomes collectible runoff
OPEN_SPACE_RUNOFF_COEFFS = {
    SoilType.clay: 0.65,
    SoilType.sandy: 0.35,
    SoilType.loamy: 0.45,
    SoilType.rocky: 0.75,
    SoilType.mixed: 0.50,
}

STORAGE_FRACTION = 0.6            # share of annual harvest worth storing
MAX_STORAGE_L = 50_000
DAILY_CONSUMPTION_LPCD = 150      # litres / person / day
HOUSEHOLD_SIZE = 4
WATER_SAVING_FRACTION = 0.7       # share of harvest that actually offsets supply


def get_runoff_coefficient(soil_type) -> float:
    """Open-space runoff coefficient for a soil type (unknown -> mixed)."""
    return OPEN_SPACE_RUNOFF_COEFFS[resolve_soil_type(soil_type)]


def calculate_water_storage(site: SiteProfile, rainfall: RainfallRecord) -> StorageEstimate:
    """Calculate harvestable water and recommended storage for a site.

    Args:
        site: Validated site profile.
        rainfall: Rainfall record; only ``current_year_mm`` is used.

    Returns:
        StorageEstimate with all volumes rounded to whole litres.
    """
    annual_mm = rainfall.current_year_mm
    open_coeff = get_runoff_coefficient(site.soil_type)

    roof_harvest = site.roof_area_m2 * annual_mm * ROOF_RUNOFF_COEFF
    open_harvest = site.open_space_m2 * annual_mm * open_coeff
    total = roof_harvest + open_harvest

    storage = min(total * STORAGE_FRACTION, MAX_STORAGE_L)
    days_covered = storage / (DAILY_CONSUMPTION_LPCD * HOUSEHOLD_SIZE)

    total_l = round_half_up(total)
    # Rounding must not push storage past 60% of the reported total
    storage_l = min(round_half_up(storage), math.floor(total_l * STORAGE_FRACTION))

    if storage >= MAX_STORAGE_L:
        log.debug("Storage capped at %d L (harvest %d L)", MAX_STORAGE_L, total_l)

    return StorageEstimate(
        roof_harvest_l=round_half_up(roof_harvest),
        open_space_harvest_l=round_half_up(open_harvest),
        total_harvestable_l=total_l,
        recommended_storage_l=storage_l,
        days_covered=round_half_up(days_covered),
        water_saving_potential_l=round_half_up(total * WATER_SAVING_FRACTION),
        roof_runoff_coeff=ROOF_RUNOFF_COEFF,
        open_space_runoff_coeff=open_coeff,
    )
