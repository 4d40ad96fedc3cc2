"""
Provider profiles as a tagged variant.

``Provider`` is stored in one table with ``business_type`` as the
discriminator. ``FuelStation`` and ``Mechanic`` carry their own capability
data and answer capability questions themselves, so callers never compare
business-type strings.
"""
from sqlalchemy import Column, String, Boolean, DateTime, Numeric, Integer, Float, ForeignKey, Index, event, inspect
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from decimal import Decimal
from typing import Dict, List, Optional
import uuid
import enum
from roadside.database import Base, GeoPoint, JSONType, point_element, utcnow
from roadside.models.service_request import ServiceType, FuelType
from roadside.models.user import UserRole

class BusinessType(str, enum.Enum):
    FUEL_STATION = "fuel-station"
    MECHANIC = "mechanic"

class Provider(Base):
    __tablename__ = "providers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    business_type = Column(String(20), nullable=False)

    # Business details
    business_name = Column(String(255), nullable=False)
    address = Column(String, nullable=False)
    phone = Column(String(20), nullable=False)
    email = Column(String(255), nullable=False)
    opening_time = Column(String(5))
    closing_time = Column(String(5))

    # Location
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    location = Column(GeoPoint)

    # Pricing
    assistance_fee = Column(Numeric(10, 2), nullable=False, default=Decimal("100"))
    travel_fee_per_km = Column(Numeric(10, 2), nullable=False, default=Decimal("10"))

    # Reputation (derived from rated requests)
    rating = Column(Numeric(2, 1), nullable=False, default=Decimal("0"))
    total_ratings = Column(Integer, nullable=False, default=0)

    # Payment QR code
    qr_code_url = Column(String)
    qr_code_public_id = Column(String(255))
    qr_code_uploaded_at = Column(DateTime(timezone=True))

    # Status
    is_available = Column(Boolean, nullable=False, default=True)
    is_verified = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="provider_profile")
    service_requests = relationship("ServiceRequest", back_populates="provider")

    __mapper_args__ = {"polymorphic_on": business_type}

    __table_args__ = (
        Index("ix_providers_search", "business_type", "is_available", "is_verified"),
        Index("ix_providers_coordinates", "latitude", "longitude"),
        Index("ix_providers_location", "location", postgresql_using="gist"),
    )

    SERVICE_TYPE = None
    ROLE = None

    @classmethod
    def variant_for_service(cls, service_type: ServiceType) -> type:
        """Return the provider class able to serve ``service_type``"""
        for variant in (FuelStation, Mechanic):
            if variant.SERVICE_TYPE == ServiceType(service_type):
                return variant
        raise ValueError(f"No provider variant serves {service_type!r}")

    @classmethod
    def variant_for_role(cls, role: UserRole) -> type:
        """Return the provider class an account of ``role`` registers as"""
        for variant in (FuelStation, Mechanic):
            if variant.ROLE == UserRole(role):
                return variant
        raise ValueError(f"Accounts with role {role!r} cannot register as providers")

    def fuel_price(self, fuel_type: FuelType) -> Optional[Decimal]:
        return None

    def capabilities(self) -> Dict:
        raise NotImplementedError

    def apply_capabilities(self, services: Optional[List[str]] = None, fuel_prices: Optional[Dict] = None) -> None:
        raise NotImplementedError

# location mirrors latitude/longitude on every write
@event.listens_for(Provider, "before_insert", propagate=True)
def _set_location(mapper, connection, target):
    target.location = point_element(target.latitude, target.longitude)

@event.listens_for(Provider, "before_update", propagate=True)
def _move_location(mapper, connection, target):
    state = inspect(target)
    if state.attrs.latitude.history.has_changes() or state.attrs.longitude.history.has_changes():
        target.location = point_element(target.latitude, target.longitude)

class FuelStation(Provider):
    SERVICE_TYPE = ServiceType.FUEL
    ROLE = UserRole.FUEL_STATION

    fuel_prices = Column(JSONType, default=dict)

    __mapper_args__ = {"polymorphic_identity": BusinessType.FUEL_STATION.value}

    def fuel_price(self, fuel_type: FuelType) -> Optional[Decimal]:
        prices = self.fuel_prices or {}
        value = prices.get(FuelType(fuel_type).value)
        if value is None:
            return None
        return Decimal(str(value))

    def capabilities(self) -> Dict:
        prices = {fuel.value: 0 for fuel in FuelType}
        prices.update(self.fuel_prices or {})
        return {"fuel_prices": prices}

    def apply_capabilities(self, services=None, fuel_prices=None) -> None:
        if fuel_prices is None:
            return
        merged = dict(self.fuel_prices or {})
        for fuel, price in fuel_prices.items():
            merged[FuelType(fuel).value] = float(price or 0)
        self.fuel_prices = merged

class Mechanic(Provider):
    SERVICE_TYPE = ServiceType.MECHANIC
    ROLE = UserRole.MECHANIC

    services = Column(JSONType, default=list)

    __mapper_args__ = {"polymorphic_identity": BusinessType.MECHANIC.value}

    def capabilities(self) -> Dict:
        return {"services": list(self.services or [])}

    def apply_capabilities(self, services=None, fuel_prices=None) -> None:
        if services is None:
            return
        self.services = [s.strip() for s in services if s and s.strip()]
