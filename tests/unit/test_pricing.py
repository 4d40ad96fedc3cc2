"""
Unit tests for the pricing calculator.
"""
from decimal import Decimal

import pytest

from roadside.config import Settings
from roadside.models import FuelStation, Mechanic, ServiceType, FuelType
from roadside.services.pricing_service import CostEstimate, PricingService, round_currency


def station(assistance_fee="100", travel_fee_per_km="10", **kwargs) -> FuelStation:
    return FuelStation(
        assistance_fee=Decimal(assistance_fee),
        travel_fee_per_km=Decimal(travel_fee_per_km),
        **kwargs
    )


@pytest.fixture
def pricing() -> PricingService:
    return PricingService(Settings())


class TestEstimate:

    def test_no_provider_is_all_zeros(self, pricing):
        estimate = pricing.estimate(ServiceType.FUEL, FuelType.PETROL, 5, None)
        assert estimate == CostEstimate(0, 0, 0, 0)
        assert estimate.to_dict() == {"fuel_cost": 0, "assistance_fee": 0, "travel_fee": 0, "total_cost": 0}

    def test_petrol_five_litres(self, pricing):
        estimate = pricing.estimate(ServiceType.FUEL, FuelType.PETROL, 5, station())
        assert estimate.fuel_cost == 484
        assert estimate.assistance_fee == 100
        assert estimate.travel_fee == 50
        assert estimate.total_cost == 634

    def test_diesel_uses_reference_price(self, pricing):
        estimate = pricing.estimate(ServiceType.FUEL, FuelType.DIESEL, 10, station())
        # 89.6 * 10 = 896
        assert estimate.fuel_cost == 896
        assert estimate.total_cost == 1046

    def test_station_prices_do_not_change_estimate(self, pricing):
        priced = station(fuel_prices={"petrol": 150.0})
        assert pricing.estimate(ServiceType.FUEL, FuelType.PETROL, 5, priced).fuel_cost == 484

    def test_mechanic_has_no_fuel_cost(self, pricing):
        mechanic = Mechanic(assistance_fee=Decimal("200"), travel_fee_per_km=Decimal("15"))
        estimate = pricing.estimate(ServiceType.MECHANIC, None, None, mechanic)
        assert estimate == CostEstimate(fuel_cost=0, assistance_fee=200, travel_fee=75, total_cost=275)

    def test_travel_fee_rounds_half_up(self, pricing):
        # 12.5 * 5 = 62.5
        estimate = pricing.estimate(ServiceType.MECHANIC, None, None, station(travel_fee_per_km="12.5"))
        assert estimate.travel_fee == 63

    def test_total_rounds_unrounded_fuel_cost(self, pricing):
        # cng 75.3 * 3 = 225.9; 225.9 + 100 + 50 = 375.9 -> 376
        estimate = pricing.estimate(ServiceType.FUEL, FuelType.CNG, 3, station())
        assert estimate.fuel_cost == 226
        assert estimate.total_cost == 376

    def test_deterministic(self, pricing):
        provider = station("120", "12")
        first = pricing.estimate(ServiceType.FUEL, FuelType.PETROL, 7, provider)
        second = pricing.estimate(ServiceType.FUEL, FuelType.PETROL, 7, provider)
        assert first == second

    def test_configurable_distance_factor(self):
        pricing = PricingService(Settings(TRAVEL_DISTANCE_FACTOR_KM=8))
        assert pricing.estimate(ServiceType.MECHANIC, None, None, station()).travel_fee == 80


class TestRoundCurrency:

    @pytest.mark.parametrize("value,expected", [
        (Decimal("483.5"), 484),
        (Decimal("0.5"), 1),
        (Decimal("2.49"), 2),
        (0, 0),
        (None, 0),
    ])
    def test_half_up(self, value, expected):
        assert round_currency(value) == expected
