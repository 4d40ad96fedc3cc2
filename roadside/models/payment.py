from sqlalchemy import Column, String, Numeric, ForeignKey, DateTime, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
import enum
from roadside.database import Base, utcnow

class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    QR = "qr"

class PaymentRecordStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"

class Payment(Base):
    __tablename__ = "payments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # UNIQUE: at most one payment per request
    service_request_id = Column(UUID(as_uuid=True), ForeignKey("service_requests.id"), unique=True, nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    provider_id = Column(UUID(as_uuid=True), ForeignKey("providers.id"), nullable=False)

    amount = Column(Numeric(10, 2), nullable=False)
    method = Column(SQLEnum(PaymentMethod), nullable=False)
    transaction_id = Column(String(255), nullable=False)
    status = Column(SQLEnum(PaymentRecordStatus), nullable=False, default=PaymentRecordStatus.PENDING)

    paid_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    service_request = relationship("ServiceRequest", back_populates="payment")
