from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional
from roadside.config import Settings, settings as default_settings
from roadside.models import Provider, ServiceType, FuelType

def _to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    return Decimal(str(value))

def round_currency(value) -> int:
    """Round half-up to a whole currency unit"""
    return int(_to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

@dataclass(frozen=True)
class CostEstimate:
    fuel_cost: int = 0
    assistance_fee: int = 0
    travel_fee: int = 0
    total_cost: int = 0

    @classmethod
    def zero(cls) -> "CostEstimate":
        return cls()

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

class PricingService:
    """
    Deterministic cost estimate for a new request.

    Fuel is priced from the reference table in settings, not the matched
    station's own prices, and travel is charged for a fixed assumed distance.
    """

    def __init__(self, settings: Settings = None):
        self.settings = settings or default_settings

    def unit_price(self, fuel_type: FuelType) -> Decimal:
        prices = self.settings.REFERENCE_FUEL_PRICES
        return _to_decimal(prices.get(FuelType(fuel_type).value, 0))

    def estimate(
        self,
        service_type: ServiceType,
        fuel_type: Optional[FuelType],
        quantity: Optional[int],
        nearest_provider: Optional[Provider]
    ) -> CostEstimate:
        if nearest_provider is None:
            return CostEstimate.zero()

        fuel_cost = Decimal("0")
        if ServiceType(service_type) == ServiceType.FUEL and fuel_type and quantity:
            fuel_cost = self.unit_price(fuel_type) * _to_decimal(quantity)

        assistance_fee = _to_decimal(nearest_provider.assistance_fee)
        travel_fee = round_currency(
            _to_decimal(nearest_provider.travel_fee_per_km)
            * _to_decimal(self.settings.TRAVEL_DISTANCE_FACTOR_KM)
        )
        total_cost = round_currency(fuel_cost + assistance_fee + travel_fee)

        return CostEstimate(
            fuel_cost=max(0, round_currency(fuel_cost)),
            assistance_fee=max(0, round_currency(assistance_fee)),
            travel_fee=max(0, travel_fee),
            total_cost=max(0, total_cost)
        )
