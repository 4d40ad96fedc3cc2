from sqlalchemy import Column, String, Numeric, Integer, Float, ForeignKey, DateTime, Text, BigInteger, Index, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
import enum
from roadside.database import Base, JSONType, utcnow

class ServiceType(str, enum.Enum):
    FUEL = "fuel"
    MECHANIC = "mechanic"

class FuelType(str, enum.Enum):
    PETROL = "petrol"
    DIESEL = "diesel"
    CNG = "cng"

class VehicleType(str, enum.Enum):
    CAR = "car"
    BIKE = "bike"
    SCOOTER = "scooter"
    TRUCK = "truck"
    OTHER = "other"

class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    EN_ROUTE = "en_route"
    SERVICE_STARTED = "service_started"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"

ACTIVE_STATUSES = (
    RequestStatus.ACCEPTED,
    RequestStatus.EN_ROUTE,
    RequestStatus.SERVICE_STARTED,
)

TERMINAL_STATUSES = (
    RequestStatus.COMPLETED,
    RequestStatus.CANCELLED,
)

class ServiceRequest(Base):
    __tablename__ = "service_requests"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    request_id = Column(String(40), unique=True, nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    provider_id = Column(UUID(as_uuid=True), ForeignKey("providers.id"))

    # Service details
    service_type = Column(SQLEnum(ServiceType), nullable=False)
    fuel_type = Column(SQLEnum(FuelType))
    quantity = Column(Integer)
    problem_description = Column(Text)
    vehicle_type = Column(SQLEnum(VehicleType), nullable=False, default=VehicleType.CAR)
    photos = Column(JSONType, default=list)

    # Location details
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    user_address = Column(Text, nullable=False)
    user_phone = Column(String(20), nullable=False)
    provider_phone = Column(String(20))

    # Pricing (whole currency units)
    fuel_cost = Column(Integer, nullable=False, default=0)
    assistance_fee = Column(Integer, nullable=False, default=0)
    travel_fee = Column(Integer, nullable=False, default=0)
    total_cost = Column(Integer, nullable=False, default=0)
    actual_cost = Column(Numeric(10, 2))

    # Status tracking
    status = Column(SQLEnum(RequestStatus), nullable=False, default=RequestStatus.PENDING)
    accepted_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    cancelled_at = Column(DateTime(timezone=True))
    cancellation_reason = Column(Text)

    # Payment
    payment_status = Column(SQLEnum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)

    # Rating
    rating = Column(Integer)
    review = Column(Text)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", foreign_keys=[user_id], back_populates="service_requests")
    provider = relationship("Provider", foreign_keys=[provider_id], back_populates="service_requests")
    location_updates = relationship("LocationUpdate", back_populates="service_request")
    payment = relationship("Payment", back_populates="service_request", uselist=False)

    __table_args__ = (
        Index("ix_service_requests_status_type", "status", "service_type"),
        Index("ix_service_requests_provider_status", "provider_id", "status"),
    )

    @property
    def cost_estimate(self) -> dict:
        return {
            "fuel_cost": self.fuel_cost or 0,
            "assistance_fee": self.assistance_fee or 0,
            "travel_fee": self.travel_fee or 0,
            "total_cost": self.total_cost or 0,
        }

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

# Provider location log while a request is being served
class LocationUpdate(Base):
    __tablename__ = "location_updates"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    service_request_id = Column(UUID(as_uuid=True), ForeignKey("service_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    provider_id = Column(UUID(as_uuid=True), ForeignKey("providers.id"))
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    recorded_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    service_request = relationship("ServiceRequest", back_populates="location_updates")
