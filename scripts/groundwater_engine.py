"""
RainCheck: Groundwater Impact Estimator

Estimates annual aquifer recharge from harvested water and the resulting
water-table rise beneath the catchment (simplified specific-yield model):

    rise_m = recharge_m³ / (area_m² × specific_yield)
"""

import math

from rwh_models import (
    GroundwaterImpact,
    SiteProfile,
    SoilType,
    StorageEstimate,
    resolve_soil_type,
    round_half_up,
)

RECHARGE_FRACTION = 0.4   # share of harvest that reaches groundwater

SPECIFIC_YIELDS = {
    SoilType.clay: 0.03,
    SoilType.sandy: 0.25,
    SoilType.loamy: 0.15,
    SoilType.rocky: 0.05,
    SoilType.mixed: 0.12,
}

AQUIFER_TYPES = {
    SoilType.clay: "Confined aquifer",
    SoilType.sandy: "Unconfined aquifer",
    SoilType.loamy: "Semi-confined aquifer",
    SoilType.rocky: "Fractured rock aquifer",
    SoilType.mixed: "Complex aquifer system",
}

QUALITY_IMPACTS = {
    SoilType.clay: "Natural filtration, slower recharge",
    SoilType.sandy: "Rapid infiltration, minimal filtration",
    SoilType.loamy: "Good balance of infiltration and filtration",
    SoilType.rocky: "Variable quality depending on rock type",
    SoilType.mixed: "Varied quality improvement",
}

ENVIRONMENTAL_BENEFITS = (
    "Reduces urban flooding",
    "Improves local groundwater levels",
    "Reduces soil erosion",
    "Supports local vegetation",
    "Maintains natural water cycle",
)


def get_specific_yield(soil_type) -> float:
    return SPECIFIC_YIELDS[resolve_soil_type(soil_type)]


def calculate_groundwater_impact(site: SiteProfile, storage: StorageEstimate) -> GroundwaterImpact:
    """Recharge volume, level rise and impact radius for a site.

    estimated_level_rise_m is None when the recharge area (or specific
    yield) is zero; recharge_rate_percent is 0 when nothing is harvested.
    """
    soil = resolve_soil_type(site.soil_type)
    total_l = storage.total_harvestable_l

    recharge_l = total_l * RECHARGE_FRACTION
    specific_yield = SPECIFIC_YIELDS[soil]
    area_m2 = site.roof_area_m2 + site.open_space_m2

    denominator = area_m2 * specific_yield
    level_rise = round_half_up((recharge_l / 1000) / denominator, 2) if denominator > 0 else None
    recharge_rate = round_half_up(recharge_l / total_l * 100) if total_l > 0 else 0

    return GroundwaterImpact(
        annual_recharge_l=round_half_up(recharge_l),
        estimated_level_rise_m=level_rise,
        aquifer_type=AQUIFER_TYPES[soil],
        specific_yield=specific_yield,
        recharge_rate_percent=recharge_rate,
        impact_radius_m=round_half_up(math.sqrt(area_m2 / math.pi) * 2),
        quality_improvement=QUALITY_IMPACTS[soil],
        environmental_benefits=ENVIRONMENTAL_BENEFITS,
    )
