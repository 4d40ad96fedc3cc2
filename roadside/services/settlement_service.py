import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, List

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from roadside.errors import (
    AlreadyPaid, AlreadyRated, Forbidden, NotCompleted, NotEligible, ValidationError
)
from roadside.models import (
    NotificationType, Payment, PaymentMethod, PaymentRecordStatus, PaymentStatus,
    Provider, RequestStatus, ServiceRequest, User
)
from roadside.services.matching_service import get_request_by_public_id
from roadside.services.notification_service import Notifier
from roadside.services.provider_service import get_provider_for_user

logger = logging.getLogger(__name__)

def cash_transaction_id(request_id: str) -> str:
    return f"CASH-{request_id}"

class SettlementService:
    """Payment recording, once-only ratings and provider reputation"""

    def __init__(self, db: AsyncSession, notifier: Notifier = None):
        self.db = db
        self.notifier = notifier

    async def process_payment(
        self,
        payer: User,
        request_id: str,
        method,
        amount,
        transaction_id: str = None
    ) -> Payment:
        """
        Record the single payment of a completed request.

        Preconditions are checked in order (exists, owned by payer, completed,
        not yet paid). The payments table holds at most one row per request,
        so a concurrent duplicate fails on insert and surfaces as
        ``AlreadyPaid``.
        """
        service_request = await get_request_by_public_id(self.db, request_id)
        payer_id = payer.id

        if service_request.user_id != payer_id:
            raise Forbidden("Not authorized to pay for this request")
        if service_request.status != RequestStatus.COMPLETED:
            raise NotCompleted()

        existing = await self.db.execute(
            select(Payment.id).where(Payment.service_request_id == service_request.id)
        )
        if existing.first() is not None or service_request.payment_status == PaymentStatus.PAID:
            raise AlreadyPaid()

        try:
            method = PaymentMethod(method)
        except ValueError:
            raise ValidationError(f"Unsupported payment method: {method!r}")

        try:
            amount = Decimal(str(amount))
        except (InvalidOperation, ValueError):
            raise ValidationError("Invalid payment amount")
        if not amount.is_finite() or amount <= 0:
            raise ValidationError("Payment amount must be greater than zero")

        if method == PaymentMethod.CASH:
            transaction_id = cash_transaction_id(service_request.request_id)
        elif not (transaction_id or "").strip():
            raise ValidationError("Transaction ID is required for QR payments")

        payment = Payment(
            service_request_id=service_request.id,
            user_id=payer_id,
            provider_id=service_request.provider_id,
            amount=amount,
            method=method,
            transaction_id=transaction_id.strip(),
            status=PaymentRecordStatus.COMPLETED
        )
        self.db.add(payment)
        service_request.actual_cost = amount
        service_request.payment_status = PaymentStatus.PAID

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise AlreadyPaid()

        logger.info(
            "Payment %s recorded for request %s: %s via %s",
            payment.transaction_id, request_id, amount, method.value
        )
        self._notify_payment(service_request, payment, payer)
        return payment

    def _notify_payment(self, service_request: ServiceRequest, payment: Payment, payer: User) -> None:
        if not self.notifier:
            return

        payload = {
            "request_id": service_request.request_id,
            "service_type": service_request.service_type.value,
            "amount": str(payment.amount),
            "payment_method": payment.method.value,
            "transaction_id": payment.transaction_id,
        }
        self.notifier.notify(payer.id, NotificationType.PAYMENT, payload, email=payer.email)
        if service_request.provider_id is not None:
            self.notifier.notify_provider(
                service_request.provider_id,
                NotificationType.PAYMENT_RECEIVED,
                {**payload, "customer_name": payer.name or payer.email}
            )

    async def submit_rating(self, rater: User, request_id: str, rating, review: str = None) -> Dict:
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be an integer between 1 and 5")

        service_request = await get_request_by_public_id(self.db, request_id)
        if service_request.user_id != rater.id:
            raise Forbidden("Not authorized to rate this request")
        if (service_request.status != RequestStatus.COMPLETED
                or service_request.payment_status != PaymentStatus.PAID):
            raise NotEligible()
        if service_request.rating is not None:
            raise AlreadyRated()

        review = (review or "").strip() or None
        result = await self.db.execute(
            update(ServiceRequest)
            .where(
                ServiceRequest.id == service_request.id,
                ServiceRequest.rating.is_(None)
            )
            .values(rating=rating, review=review)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await self.db.rollback()
            raise AlreadyRated()

        # Ratings of the same provider recompute one at a time
        locked = await self.db.execute(
            select(Provider)
            .where(Provider.id == service_request.provider_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        provider = locked.scalar_one()
        average, count = await self.recompute_reputation(provider)
        await self.db.commit()
        await self.db.refresh(service_request)

        logger.info(
            "Request %s rated %d; provider %s now %s over %d ratings",
            request_id, rating, provider.id, average, count
        )

        if self.notifier:
            self.notifier.notify(
                provider.user_id,
                NotificationType.RATING,
                {"request_id": request_id, "rating": rating}
            )

        return {
            "request_id": request_id,
            "rating": rating,
            "review": review,
            "provider_rating": average,
            "provider_total_ratings": count,
        }

    async def recompute_reputation(self, provider: Provider):
        """
        Mean of every rating >= 1 on the provider's requests, to one decimal.

        Call with the provider row locked so the aggregate sees every rating
        committed before the lock was granted.
        """
        result = await self.db.execute(
            select(func.coalesce(func.sum(ServiceRequest.rating), 0), func.count(ServiceRequest.rating))
            .where(
                ServiceRequest.provider_id == provider.id,
                ServiceRequest.rating >= 1
            )
        )
        total, count = result.one()

        average = Decimal("0")
        if count:
            average = (Decimal(int(total)) / Decimal(count)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)

        provider.rating = average
        provider.total_ratings = count
        return average, count

    async def payment_history(self, payer: User) -> List[Payment]:
        result = await self.db.execute(
            select(Payment)
            .where(Payment.user_id == payer.id)
            .order_by(Payment.paid_at.desc(), Payment.id)
        )
        return list(result.scalars().all())

    async def provider_earnings(self, provider_account: User) -> Dict:
        provider = await get_provider_for_user(self.db, provider_account.id)
        result = await self.db.execute(
            select(Payment)
            .where(
                Payment.provider_id == provider.id,
                Payment.status == PaymentRecordStatus.COMPLETED
            )
            .order_by(Payment.paid_at.desc(), Payment.id)
        )
        payments = list(result.scalars().all())
        total = sum((Decimal(str(p.amount)) for p in payments), Decimal("0"))

        return {
            "total_earnings": total,
            "total_payments": len(payments),
            "payments": payments,
        }
