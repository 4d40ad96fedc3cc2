from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
import enum
from roadside.database import Base, utcnow

class UserRole(str, enum.Enum):
    TRAVELLER = "traveller"
    FUEL_STATION = "fuel-station"
    MECHANIC = "mechanic"
    ADMIN = "admin"

class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(20), nullable=False)
    name = Column(String(200))
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.TRAVELLER)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    provider_profile = relationship("Provider", back_populates="user", uselist=False)
    service_requests = relationship(
        "ServiceRequest",
        foreign_keys="[ServiceRequest.user_id]",
        back_populates="user"
    )
    notifications = relationship("Notification", back_populates="user")

    @property
    def is_provider(self) -> bool:
        return self.role in (UserRole.FUEL_STATION, UserRole.MECHANIC)
