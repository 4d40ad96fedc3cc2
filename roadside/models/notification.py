from sqlalchemy import Column, String, ForeignKey, DateTime, Text, Boolean, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
import enum
from roadside.database import Base, JSONType, utcnow

class NotificationType(str, enum.Enum):
    REQUEST_CREATED = "request_created"
    REQUEST_ACCEPTED = "request_accepted"
    STATUS_UPDATE = "status_update"
    REQUEST_CANCELLED = "request_cancelled"
    SERVICE_COMPLETION = "service_completion"
    PAYMENT = "payment"
    PAYMENT_RECEIVED = "payment_received"
    RATING = "rating"
    PROFILE_UPDATE = "profile_update"

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=False)
    type = Column(SQLEnum(NotificationType))
    data = Column(JSONType)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    user = relationship("User", back_populates="notifications")
