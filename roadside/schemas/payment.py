from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from uuid import UUID
from decimal import Decimal
from roadside.models.payment import PaymentMethod, PaymentRecordStatus

class PaymentCreate(BaseModel):
    request_id: str
    payment_method: PaymentMethod
    amount: Decimal
    transaction_id: Optional[str] = None

class PaymentResponse(BaseModel):
    id: UUID
    service_request_id: UUID
    user_id: UUID
    provider_id: UUID
    amount: Decimal
    method: PaymentMethod
    transaction_id: str
    status: PaymentRecordStatus
    paid_at: datetime

    class Config:
        from_attributes = True

class RatingCreate(BaseModel):
    request_id: str
    # Range is checked by the settlement service
    rating: int
    review: Optional[str] = Field(None, max_length=1000)

class RatingResponse(BaseModel):
    request_id: str
    rating: int
    review: Optional[str]
    provider_rating: Decimal
    provider_total_ratings: int

class EarningsResponse(BaseModel):
    total_earnings: Decimal
    total_payments: int
    payments: List[PaymentResponse]
