"""
RainCheck data model: immutable records passed between the assessment stages.

Every stage takes the records produced by earlier stages and returns a new one;
nothing is mutated in place. Input records (SiteProfile, RainfallRecord,
Coordinates) validate on construction, so a bad request is rejected before any
calculation runs.

Collections inside records are read-only too (tuples, and mapping proxies
that serialise as plain dicts), so a shared record such as the default
rainfall cannot be altered through any result that carries it.
"""

import math
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer, field_validator

# Input ceilings. Beyond these the arithmetic stops meaning anything
# (and very large floats overflow to infinity).
MAX_AREA_M2 = 10_000_000          # 10 km²
MAX_ANNUAL_RAINFALL_MM = 20_000   # wettest stations record ~12 000 mm


class SoilType(str, Enum):
    clay = "clay"
    sandy = "sandy"
    loamy = "loamy"
    rocky = "rocky"
    mixed = "mixed"


# Unknown soil types resolve here in every stage.
FALLBACK_SOIL_TYPE = SoilType.mixed


def resolve_soil_type(value) -> SoilType:
    """Map free-text soil input to a SoilType, falling back to mixed."""
    if isinstance(value, SoilType):
        return value
    if not value:
        return FALLBACK_SOIL_TYPE
    try:
        return SoilType(str(value).strip().lower())
    except ValueError:
        return FALLBACK_SOIL_TYPE


def round_half_up(value: float, digits: int = 0):
    """Round halves upwards (94062.5 -> 94063) instead of to the nearest even.

    Returns an int when digits == 0.
    """
    factor = 10 ** digits
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if digits == 0 else rounded


def _freeze(value: Mapping) -> Mapping:
    return MappingProxyType(dict(value))


def _thaw(value: Mapping) -> dict:
    return dict(value)


FrozenFloatMap = Annotated[Mapping[str, float], AfterValidator(_freeze), PlainSerializer(_thaw)]
FrozenIntMap = Annotated[Mapping[str, int], AfterValidator(_freeze), PlainSerializer(_thaw)]
FrozenSchedule = Annotated[Mapping[str, tuple[str, ...]], AfterValidator(_freeze), PlainSerializer(_thaw)]


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

class Coordinates(_Record):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class SiteProfile(_Record):
    roof_area_m2: float = Field(..., gt=0, le=MAX_AREA_M2, allow_inf_nan=False,
                                description="Roof catchment area in m²")
    open_space_m2: float = Field(0.0, ge=0, le=MAX_AREA_M2, allow_inf_nan=False,
                                 description="Open ground catchment in m²")
    soil_type: str = Field("mixed", description="clay, sandy, loamy, rocky or mixed")
    location_label: str = Field("", description="Free-text address or place name")
    coordinates: Optional[Coordinates] = None

    @property
    def resolved_soil_type(self) -> SoilType:
        return resolve_soil_type(self.soil_type)


class RainfallRecord(_Record):
    current_year_mm: float = Field(..., ge=0, le=MAX_ANNUAL_RAINFALL_MM, allow_inf_nan=False)
    previous_year_mm: float = Field(0.0, ge=0, le=MAX_ANNUAL_RAINFALL_MM, allow_inf_nan=False)
    average_mm: float = Field(0.0, ge=0, le=MAX_ANNUAL_RAINFALL_MM, allow_inf_nan=False)
    monthly_distribution: FrozenFloatMap = Field(default_factory=dict, validate_default=True)
    rainy_days: int = Field(0, ge=0)
    peak_month: Optional[str] = None
    region: str = ""
    source: Literal["default", "open-meteo", "manual"] = "manual"

    @field_validator("monthly_distribution")
    @classmethod
    def _months_in_range(cls, v: Mapping[str, float]) -> Mapping[str, float]:
        for month, mm in v.items():
            if not math.isfinite(mm) or not 0 <= mm <= MAX_ANNUAL_RAINFALL_MM:
                raise ValueError(f"rainfall for {month} must be between 0 and {MAX_ANNUAL_RAINFALL_MM} mm")
        return v


# ---------------------------------------------------------------------------
# Stage outputs
# ---------------------------------------------------------------------------

class StorageEstimate(_Record):
    roof_harvest_l: int
    open_space_harvest_l: int
    total_harvestable_l: int
    recommended_storage_l: int
    days_covered: int
    water_saving_potential_l: int
    roof_runoff_coeff: float
    open_space_runoff_coeff: float


class SoilRecommendation(_Record):
    suitability: str
    infiltration_rate: str
    recommendations: tuple[str, ...]
    pit_type: str
    depth_range: str
    lining_required: bool
    required_pit_diameter_m: float
    required_pit_volume_l: int
    excavation_volume_l: int
    soil_type: SoilType


class CostEstimate(_Record):
    breakdown: FrozenIntMap
    total_installation: int
    maintenance_breakdown: FrozenIntMap
    annual_maintenance: int
    annual_savings: int
    payback_period_years: Optional[float]
    payback_achievable: bool
    roi_percent: Optional[float]
    cost_per_liter_capacity: Optional[float]
    government_subsidy: int
    net_cost: int


class SystemTier(str, Enum):
    basic = "Basic Rooftop Harvesting"
    intermediate = "Intermediate RWH System"
    advanced = "Advanced RWH System"


class SystemRecommendation(_Record):
    system_type: SystemTier
    components: tuple[str, ...]
    benefits: tuple[str, ...]
    efficiency_percent: int = Field(..., ge=0, le=100)
    maintenance_schedule: FrozenSchedule
    expected_lifespan: str


class GroundwaterImpact(_Record):
    annual_recharge_l: int
    estimated_level_rise_m: Optional[float]
    aquifer_type: str
    specific_yield: float
    recharge_rate_percent: int
    impact_radius_m: int
    quality_improvement: str
    environmental_benefits: tuple[str, ...]


class AssessmentResult(_Record):
    site: SiteProfile
    rainfall: RainfallRecord
    storage: StorageEstimate
    soil: SoilRecommendation
    cost: CostEstimate
    system: SystemRecommendation
    groundwater: GroundwaterImpact
    used_default_rainfall: bool


class GeocodeResult(_Record):
    address: str
    resolved: bool


# ---------------------------------------------------------------------------
# Client contact record (persisted, never read back by the engine)
# ---------------------------------------------------------------------------

class ClientRecord(_Record):
    name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=40)
    email: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = Field(None, max_length=500)
    submission_time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v.strip()
