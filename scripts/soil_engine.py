"""
RainCheck: Soil Advisor

Maps a soil type to pit design guidance and sizes a cylindrical recharge /
storage pit for the recommended storage volume.
"""

import math
import re
from types import MappingProxyType

from rwh_models import (
    SoilRecommendation,
    SoilType,
    StorageEstimate,
    resolve_soil_type,
    round_half_up,
)

PIT_SEDIMENT_ALLOWANCE = 1.2   # 20% extra volume for sediment
EXCAVATION_FACTOR = 1.5        # approach slopes and working space

# ---------------------------------------------------------------------------
# Soil profiles (advisory text per soil type)
# ---------------------------------------------------------------------------
SOIL_PROFILES = {
    SoilType.clay: {
        "suitability": "Good",
        "infiltration_rate": "Low (0.1-0.3 cm/hr)",
        "recommendations": (
            "Excellent for surface storage systems",
            "Install percolation wells with sand/gravel filter",
            "Consider lined storage tanks",
            "Add organic matter to improve permeability",
        ),
        "pit_type": "Lined storage pit with filtration system",
        "depth_range": "3-4 meters",
        "lining_required": True,
    },
    SoilType.sandy: {
        "suitability": "Fair",
        "infiltration_rate": "High (2.5-12.5 cm/hr)",
        "recommendations": (
            "Focus on groundwater recharge",
            "Install recharge wells or bore wells",
            "Use rapid infiltration basins",
            "Minimal surface storage needed",
        ),
        "pit_type": "Unlined recharge pit with gravel bed",
        "depth_range": "4-6 meters",
        "lining_required": False,
    },
    SoilType.loamy: {
        "suitability": "Excellent",
        "infiltration_rate": "Moderate (0.8-2.0 cm/hr)",
        "recommendations": (
            "Ideal for both storage and recharge",
            "Balanced approach with storage tanks",
            "Install percolation pits",
            "Best overall soil type for RWH",
        ),
        "pit_type": "Partially lined pit with overflow system",
        "depth_range": "3-5 meters",
        "lining_required": False,
    },
    SoilType.rocky: {
        "suitability": "Challenging",
        "infiltration_rate": "Very Low (0.05-0.2 cm/hr)",
        "recommendations": (
            "Focus on surface collection and storage",
            "Use above-ground tanks",
            "Install check dams for surface runoff",
            "Consider blasting for pit construction",
        ),
        "pit_type": "Above-ground storage with collection system",
        "depth_range": "2-3 meters (if excavation possible)",
        "lining_required": True,
    },
    SoilType.mixed: {
        "suitability": "Good",
        "infiltration_rate": "Variable (0.5-3.0 cm/hr)",
        "recommendations": (
            "Conduct soil percolation test",
            "Hybrid system with storage and recharge",
            "Install multi-level filtration",
            "Adapt design based on dominant soil type",
        ),
        "pit_type": "Flexible design based on soil composition",
        "depth_range": "3-4 meters",
        "lining_required": False,
    },
}

_LEADING_NUMBER = re.compile(r"\s*(\d+(?:\.\d+)?)")


def parse_depth_m(depth_range: str) -> float:
    """Lower bound of a depth range string ("3-4 meters" -> 3.0)."""
    match = _LEADING_NUMBER.match(depth_range)
    if not match:
        raise ValueError(f"Depth range has no leading number: {depth_range!r}")
    return float(match.group(1))


def get_soil_profile(soil_type) -> MappingProxyType:
    """Read-only advisory entry for a soil type (unknown -> mixed)."""
    return MappingProxyType(SOIL_PROFILES[resolve_soil_type(soil_type)])


def get_soil_recommendations(soil_type, storage: StorageEstimate) -> SoilRecommendation:
    """Soil suitability guidance plus pit dimensions for the storage volume.

    Unknown soil types use the ``mixed`` profile.
    """
    resolved = resolve_soil_type(soil_type)
    profile = get_soil_profile(resolved)

    pit_volume = storage.recommended_storage_l * PIT_SEDIMENT_ALLOWANCE
    depth_m = parse_depth_m(profile["depth_range"])
    # Cylinder: V(m³) = π r² h  ->  d = 2 √(V / (π h))
    pit_diameter = math.sqrt(pit_volume / (math.pi * depth_m * 1000)) * 2

    return SoilRecommendation(
        suitability=profile["suitability"],
        infiltration_rate=profile["infiltration_rate"],
        recommendations=profile["recommendations"],
        pit_type=profile["pit_type"],
        depth_range=profile["depth_range"],
        lining_required=profile["lining_required"],
        required_pit_diameter_m=round_half_up(pit_diameter, 1),
        required_pit_volume_l=round_half_up(pit_volume),
        excavation_volume_l=round_half_up(pit_volume * EXCAVATION_FACTOR),
        soil_type=resolved,
    )
