"""
RainCheck: System Recommender

Classifies an installation into a system tier by annual harvest, lists its
components and benefits, and scores overall system efficiency.
"""

from cost_engine import CURRENCY_SYMBOL, WATER_COST_PER_L
from rwh_models import StorageEstimate, SystemRecommendation, SystemTier, round_half_up

# Tier upper bounds on total harvestable water (litres / year)
BASIC_MAX_L = 50_000
INTERMEDIATE_MAX_L = 150_000

TIER_COMPONENTS = {
    SystemTier.basic: (
        "Roof gutters and downpipes",
        "First flush diverter",
        "Storage tank (5,000-10,000L)",
        "Basic filtration unit",
        "Overflow management",
    ),
    SystemTier.intermediate: (
        "Complete catchment system",
        "Multi-stage filtration",
        "Underground storage tank (15,000-25,000L)",
        "Pump and distribution system",
        "Groundwater recharge pit",
    ),
    SystemTier.advanced: (
        "Comprehensive collection network",
        "Automated first flush system",
        "Multiple storage units (50,000L+)",
        "Water treatment plant",
        "Smart monitoring system",
        "Groundwater recharge wells",
    ),
}

MAINTENANCE_SCHEDULE = {
    "Weekly": ("Check for blockages in gutters", "Inspect first flush diverter"),
    "Monthly": ("Clean roof and gutters", "Check water quality", "Test pump operation"),
    "Quarterly": ("Replace filters", "Check storage tank condition", "Inspect piping"),
    "Annually": ("Professional system inspection", "Deep cleaning", "Repair and replacement"),
}

EXPECTED_LIFESPAN = "15-25 years with proper maintenance"

BENEFIT_RECHARGE_FRACTION = 0.3
MAX_STORAGE_EFFICIENCY = 0.8
SYSTEM_LOSS_FACTOR = 0.85


def select_tier(total_harvestable_l: float) -> SystemTier:
    if total_harvestable_l < BASIC_MAX_L:
        return SystemTier.basic
    if total_harvestable_l < INTERMEDIATE_MAX_L:
        return SystemTier.intermediate
    return SystemTier.advanced


def calculate_system_efficiency(storage: StorageEstimate) -> int:
    """Overall efficiency (%) from collection and storage efficiency.

    A site with no harvest has zero storage efficiency.
    """
    collection = (storage.roof_runoff_coeff + storage.open_space_runoff_coeff) / 2
    if storage.total_harvestable_l > 0:
        storage_eff = min(
            storage.recommended_storage_l / storage.total_harvestable_l,
            MAX_STORAGE_EFFICIENCY,
        )
    else:
        storage_eff = 0.0
    efficiency = round_half_up(collection * storage_eff * SYSTEM_LOSS_FACTOR * 100)
    return max(0, min(100, efficiency))


def build_benefits(storage: StorageEstimate) -> tuple[str, ...]:
    saving_l = storage.water_saving_potential_l
    recharge_kl = round_half_up(storage.total_harvestable_l * BENEFIT_RECHARGE_FRACTION / 1000)
    return (
        f"Save {round_half_up(saving_l / 1000)} kiloliters annually",
        f"Reduce water bill by {CURRENCY_SYMBOL}{round_half_up(saving_l * WATER_COST_PER_L)} per year",
        f"Groundwater recharge of {recharge_kl} kiloliters",
        "Flood reduction in local area",
        f"Emergency water supply for {storage.days_covered} days",
    )


def recommend_system(storage: StorageEstimate) -> SystemRecommendation:
    """Recommend a system tier for the storage estimate."""
    tier = select_tier(storage.total_harvestable_l)
    return SystemRecommendation(
        system_type=tier,
        components=TIER_COMPONENTS[tier],
        benefits=build_benefits(storage),
        efficiency_percent=calculate_system_efficiency(storage),
        maintenance_schedule=MAINTENANCE_SCHEDULE,
        expected_lifespan=EXPECTED_LIFESPAN,
    )
