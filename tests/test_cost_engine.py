#!/usr/bin/env python3
"""
Tests for the cost estimator.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "scripts"))

from cost_engine import calculate_cost_estimate, installation_breakdown, maintenance_breakdown
from rwh_models import RainfallRecord, SiteProfile
from storage_engine import calculate_water_storage

CATEGORIES = {
    "excavation", "lining", "filtration", "piping", "pumping",
    "first_flush", "storage", "labor", "miscellaneous",
}


def _estimate(roof, open_space, soil, mm):
    site = SiteProfile(roof_area_m2=roof, open_space_m2=open_space, soil_type=soil)
    storage = calculate_water_storage(site, RainfallRecord(current_year_mm=mm))
    return site, storage, calculate_cost_estimate(site, storage)


class TestBreakdown:

    def test_nine_categories(self):
        site = SiteProfile(roof_area_m2=100)
        assert set(installation_breakdown(site, 5000)) == CATEGORIES

    def test_breakdown_read_only(self):
        _, _, cost = _estimate(100, 50, "loamy", 1250)
        with pytest.raises(TypeError):
            cost.breakdown["storage"] = 0
        with pytest.raises(TypeError):
            cost.maintenance_breakdown["cleaning"] = 0
        assert cost.model_dump(mode="json")["breakdown"]["storage"] == 400000

    def test_capped_loamy_site(self):
        _, _, cost = _estimate(100, 50, "loamy", 1250)
        assert cost.breakdown == {
            "excavation": 25000,
            "lining": 0,
            "filtration": 15000,
            "piping": 15000,
            "pumping": 25000,
            "first_flush": 5000,
            "storage": 400000,
            "labor": 100000,
            "miscellaneous": 10000,
        }
        assert cost.total_installation == 595000

    def test_lining_only_for_clay_and_rocky(self):
        assert installation_breakdown(SiteProfile(roof_area_m2=50, soil_type="clay"), 20000)["lining"] == 16000
        assert installation_breakdown(SiteProfile(roof_area_m2=50, soil_type="rocky"), 20000)["lining"] == 16000
        assert installation_breakdown(SiteProfile(roof_area_m2=50, soil_type="sandy"), 20000)["lining"] == 0
        assert installation_breakdown(SiteProfile(roof_area_m2=50, soil_type="gravel"), 20000)["lining"] == 0

    def test_pump_threshold(self):
        site = SiteProfile(roof_area_m2=50)
        assert installation_breakdown(site, 10000)["pumping"] == 0
        assert installation_breakdown(site, 10001)["pumping"] == 25000

    @pytest.mark.parametrize("roof, open_space, soil, mm", [
        (10.33, 0, "rocky", 500), (100, 50, "loamy", 1250), (77.7, 12.5, "clay", 640),
        (250, 100, "sandy", 2100), (1, 0, "mixed", 0),
    ])
    def test_breakdown_sums_to_total(self, roof, open_space, soil, mm):
        _, _, cost = _estimate(roof, open_space, soil, mm)
        assert sum(cost.breakdown.values()) == cost.total_installation
        assert cost.government_subsidy + cost.net_cost == cost.total_installation


class TestMaintenance:

    def test_with_pump(self):
        assert sum(maintenance_breakdown(True).values()) == 7500

    def test_without_pump(self):
        assert maintenance_breakdown(False)["pump_maintenance"] == 0
        assert sum(maintenance_breakdown(False).values()) == 6000


class TestPaybackAndSentinels:

    def test_payback_not_achievable(self):
        """Savings below maintenance: no negative payback, a sentinel instead."""
        _, _, cost = _estimate(100, 50, "loamy", 1250)
        assert cost.annual_maintenance == 7500
        assert cost.annual_savings == 4703
        assert cost.payback_period_years is None
        assert cost.payback_achievable is False
        assert cost.roi_percent == -0.5

    def test_payback_achievable(self):
        _, storage, cost = _estimate(200, 0, "loamy", 2000)
        assert storage.water_saving_potential_l == 238000
        assert cost.total_installation == 610000
        assert cost.annual_savings == 11900
        assert cost.payback_period_years == 138.6
        assert cost.payback_achievable is True
        assert cost.roi_percent == 0.7

    def test_subsidy_and_cost_per_liter(self):
        _, _, cost = _estimate(100, 50, "loamy", 1250)
        assert cost.government_subsidy == 178500
        assert cost.net_cost == 416500
        assert cost.cost_per_liter_capacity == 11.9

    def test_zero_storage(self):
        """Zero storage must not divide by zero."""
        _, storage, cost = _estimate(10, 0, "mixed", 0)
        assert storage.recommended_storage_l == 0
        assert cost.cost_per_liter_capacity is None
        assert cost.payback_period_years is None
        assert cost.total_installation == 15000 + 1500 + 5000 + 10000
