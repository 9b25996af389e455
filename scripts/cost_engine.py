"""
RainCheck: Cost Estimator

Installation cost breakdown, annual maintenance, savings and payback for the
recommended storage capacity.

Unit costs are in local currency (INR defaults); the currency symbol is only
used when figures are formatted for display.
"""

import logging
import os

from rwh_models import (
    CostEstimate,
    SiteProfile,
    SoilType,
    StorageEstimate,
    resolve_soil_type,
    round_half_up,
)

log = logging.getLogger(__name__)

CURRENCY_SYMBOL = os.environ.get("RWH_CURRENCY_SYMBOL", "₹")

# ---------------------------------------------------------------------------
# Unit costs
# ---------------------------------------------------------------------------
EXCAVATION_PER_M3 = 500
LINING_PER_M3 = 800
FILTRATION_FIXED = 15_000         # basic filtration system
PIPING_PER_ROOF_M2 = 150          # gutters and downpipes
PUMP_FIXED = 25_000
PUMP_THRESHOLD_L = 10_000         # pump only for storage above this
FIRST_FLUSH_FIXED = 5_000
STORAGE_PER_L = 8
LABOR_PER_M3 = 2_000
MISCELLANEOUS_FIXED = 10_000      # fittings, valves

LINED_SOILS = {SoilType.clay, SoilType.rocky}

# Annual maintenance
CLEANING_ANNUAL = 3_000
FILTER_REPLACEMENT_ANNUAL = 2_000
PUMP_MAINTENANCE_ANNUAL = 1_500
INSPECTION_ANNUAL = 1_000

WATER_COST_PER_L = 0.05           # municipal supply tariff
SUBSIDY_FRACTION = 0.30


def installation_breakdown(site: SiteProfile, storage_l: float) -> dict[str, int]:
    """Installation cost per category, each rounded to a whole unit."""
    storage_m3 = storage_l / 1000
    lined = resolve_soil_type(site.soil_type) in LINED_SOILS

    costs = {
        "excavation": storage_m3 * EXCAVATION_PER_M3,
        "lining": storage_m3 * LINING_PER_M3 if lined else 0,
        "filtration": FILTRATION_FIXED,
        "piping": site.roof_area_m2 * PIPING_PER_ROOF_M2,
        "pumping": PUMP_FIXED if storage_l > PUMP_THRESHOLD_L else 0,
        "first_flush": FIRST_FLUSH_FIXED,
        "storage": storage_l * STORAGE_PER_L,
        "labor": storage_m3 * LABOR_PER_M3,
        "miscellaneous": MISCELLANEOUS_FIXED,
    }
    return {category: round_half_up(amount) for category, amount in costs.items()}


def maintenance_breakdown(has_pump: bool) -> dict[str, int]:
    return {
        "cleaning": CLEANING_ANNUAL,
        "filter_replacement": FILTER_REPLACEMENT_ANNUAL,
        "pump_maintenance": PUMP_MAINTENANCE_ANNUAL if has_pump else 0,
        "inspection": INSPECTION_ANNUAL,
    }


def calculate_cost_estimate(site: SiteProfile, storage: StorageEstimate) -> CostEstimate:
    """Build the cost model for a site and its storage estimate.

    Sentinels instead of undefined arithmetic:
      - payback_period_years is None (payback_achievable False) when annual
        savings do not exceed annual maintenance;
      - cost_per_liter_capacity is None when recommended storage is zero;
      - roi_percent is None when the installation cost is zero.
    """
    storage_l = storage.recommended_storage_l

    breakdown = installation_breakdown(site, storage_l)
    total = sum(breakdown.values())

    maintenance = maintenance_breakdown(breakdown["pumping"] > 0)
    annual_maintenance = sum(maintenance.values())

    annual_savings = storage.water_saving_potential_l * WATER_COST_PER_L
    net_annual_return = annual_savings - annual_maintenance

    if net_annual_return > 0:
        payback_years = round_half_up(total / net_annual_return, 1)
    else:
        log.info(
            "Payback not achievable: savings %.0f <= maintenance %d",
            annual_savings, annual_maintenance,
        )
        payback_years = None

    cost_per_liter = round_half_up(total / storage_l, 2) if storage_l > 0 else None
    roi_percent = round_half_up(net_annual_return / total * 100, 1) if total > 0 else None

    subsidy = round_half_up(total * SUBSIDY_FRACTION)

    return CostEstimate(
        breakdown=breakdown,
        total_installation=total,
        maintenance_breakdown=maintenance,
        annual_maintenance=annual_maintenance,
        annual_savings=round_half_up(annual_savings),
        payback_period_years=payback_years,
        payback_achievable=payback_years is not None,
        roi_percent=roi_percent,
        cost_per_liter_capacity=cost_per_liter,
        government_subsidy=subsidy,
        net_cost=total - subsidy,
    )
