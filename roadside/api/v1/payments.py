from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from roadside.database import get_db
from roadside.dependencies import get_current_user, get_current_provider_account, get_notifier
from roadside.schemas.payment import (
    PaymentCreate, PaymentResponse, RatingCreate, RatingResponse, EarningsResponse
)
from roadside.services.notification_service import Notifier
from roadside.services.settlement_service import SettlementService
from roadside.models import User
from typing import List

router = APIRouter(prefix="/payments", tags=["Payments"])

@router.post("/process", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def process_payment(
    payment_data: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier)
):
    """Record payment for a completed request"""
    settlement_service = SettlementService(db, notifier=notifier)
    return await settlement_service.process_payment(
        current_user,
        payment_data.request_id,
        payment_data.payment_method,
        payment_data.amount,
        transaction_id=payment_data.transaction_id
    )

@router.post("/rating", response_model=RatingResponse)
async def submit_rating(
    rating_data: RatingCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier)
):
    """Rate a completed, paid request once"""
    settlement_service = SettlementService(db, notifier=notifier)
    result = await settlement_service.submit_rating(
        current_user,
        rating_data.request_id,
        rating_data.rating,
        review=rating_data.review
    )
    return RatingResponse(**result)

@router.get("/history", response_model=List[PaymentResponse])
async def get_payment_history(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    settlement_service = SettlementService(db)
    return await settlement_service.payment_history(current_user)

@router.get("/earnings", response_model=EarningsResponse)
async def get_provider_earnings(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_provider_account)
):
    settlement_service = SettlementService(db)
    return await settlement_service.provider_earnings(current_user)
