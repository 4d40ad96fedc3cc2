import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from roadside.errors import (
    AlreadyAssigned, Conflict, Forbidden, InvalidTransition, NotAvailable, ValidationError
)
from roadside.models import (
    LocationUpdate, NotificationType, Provider, RequestStatus, ServiceRequest, User
)
from roadside.services import lifecycle
from roadside.services.matching_service import get_request_by_public_id
from roadside.services.notification_service import Notifier
from roadside.services.provider_service import find_provider_for_user, get_provider_for_user
from roadside.utils.geo import is_valid_coordinate

logger = logging.getLogger(__name__)

class AssignmentService:
    """Claiming pending requests and tracking them through service"""

    def __init__(self, db: AsyncSession, notifier: Notifier = None):
        self.db = db
        self.notifier = notifier

    def _notify(self, user_id, kind: NotificationType, payload: dict, phone: str = None) -> None:
        if self.notifier:
            self.notifier.notify(user_id, kind, payload, phone=phone)

    async def _load_for_provider(self, provider_account: User, request_id: str):
        """Return (request, provider) for the provider assigned to the request"""
        service_request = await get_request_by_public_id(self.db, request_id)
        provider = await find_provider_for_user(self.db, provider_account.id)
        if provider is None or service_request.provider_id != provider.id:
            raise Forbidden("Not authorized to update this request")
        return service_request, provider

    async def assign(self, provider_account: User, request_id: str) -> ServiceRequest:
        """
        Claim a pending request for the caller's provider profile.

        The claim is a single conditional UPDATE on ``status = pending``, so of
        any number of concurrent claims exactly one succeeds; the rest get
        ``AlreadyAssigned``.
        """
        provider = await get_provider_for_user(self.db, provider_account.id)
        if not provider.is_available:
            raise NotAvailable("Provider is not available to accept requests")

        provider_id = provider.id
        now = datetime.now(timezone.utc)
        result = await self.db.execute(
            update(ServiceRequest)
            .where(
                ServiceRequest.request_id == request_id,
                ServiceRequest.status == RequestStatus.PENDING
            )
            .values(
                status=RequestStatus.ACCEPTED,
                provider_id=provider_id,
                provider_phone=provider.phone,
                accepted_at=now,
                updated_at=now
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await self.db.rollback()
            raise AlreadyAssigned()
        await self.db.commit()

        claimed = await self.db.execute(
            select(ServiceRequest)
            .where(ServiceRequest.request_id == request_id)
            .execution_options(populate_existing=True)
        )
        service_request = claimed.scalar_one()
        logger.info("Request %s accepted by provider %s", request_id, provider_id)

        self._notify(
            service_request.user_id,
            NotificationType.REQUEST_ACCEPTED,
            {
                "request_id": request_id,
                "business_name": provider.business_name,
                "provider_phone": provider.phone,
            },
            phone=service_request.user_phone
        )
        return service_request

    async def _advance(self, service_request: ServiceRequest, values: dict) -> None:
        """
        Write ``values`` only if the request still has the status it was read
        with. A cancellation committed in between makes this raise ``Conflict``.
        """
        result = await self.db.execute(
            update(ServiceRequest)
            .where(
                ServiceRequest.id == service_request.id,
                ServiceRequest.status == service_request.status
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await self.db.rollback()
            raise Conflict("Request changed state, please retry")

    async def update_status(
        self,
        provider_account: User,
        request_id: str,
        status: str,
        current_lat: float = None,
        current_lng: float = None
    ) -> ServiceRequest:
        service_request, provider = await self._load_for_provider(provider_account, request_id)
        target = lifecycle.parse_status(status)

        check = lifecycle.validate_provider_update(service_request.status, target)
        if not check.allowed:
            raise InvalidTransition(check.reason)

        has_location = current_lat is not None and current_lng is not None
        if has_location and not is_valid_coordinate(current_lat, current_lng):
            raise ValidationError("Invalid location coordinates")

        previous = service_request.status
        await self._advance(service_request, lifecycle.transition_values(target))

        if has_location:
            self.db.add(LocationUpdate(
                service_request_id=service_request.id,
                provider_id=provider.id,
                latitude=current_lat,
                longitude=current_lng
            ))
            provider.latitude = current_lat
            provider.longitude = current_lng

        await self.db.commit()
        await self.db.refresh(service_request)
        logger.info("Request %s status %s -> %s", request_id, previous.value, target.value)

        if target == RequestStatus.COMPLETED:
            self._notify(
                service_request.user_id,
                NotificationType.SERVICE_COMPLETION,
                {"request_id": request_id, "amount": service_request.total_cost},
                phone=service_request.user_phone
            )
        else:
            self._notify(
                service_request.user_id,
                NotificationType.STATUS_UPDATE,
                {"request_id": request_id, "status_label": lifecycle.STATUS_LABELS[target]},
                phone=service_request.user_phone
            )
        return service_request

    async def cancel(self, account: User, request_id: str, reason: str = None) -> ServiceRequest:
        """Cancel a non-terminal request as its requester or assigned provider"""
        service_request = await get_request_by_public_id(self.db, request_id)

        is_requester = service_request.user_id == account.id
        if not is_requester:
            provider = await find_provider_for_user(self.db, account.id)
            if provider is None or service_request.provider_id != provider.id:
                raise Forbidden("Not authorized to cancel this request")

        check = lifecycle.validate_transition(service_request.status, RequestStatus.CANCELLED)
        if not check.allowed:
            raise Conflict(check.reason)

        reason = (reason or "").strip() or None
        values = lifecycle.transition_values(RequestStatus.CANCELLED)
        values["cancellation_reason"] = reason
        await self._advance(service_request, values)
        await self.db.commit()
        await self.db.refresh(service_request)
        logger.info("Request %s cancelled by user %s", request_id, account.id)

        payload = {"request_id": request_id, "reason": reason or ""}
        if is_requester:
            if service_request.provider_id is not None:
                assigned = await self.db.get(Provider, service_request.provider_id)
                if assigned is not None:
                    self._notify(assigned.user_id, NotificationType.REQUEST_CANCELLED, payload,
                                 phone=assigned.phone)
        else:
            self._notify(service_request.user_id, NotificationType.REQUEST_CANCELLED, payload,
                         phone=service_request.user_phone)
        return service_request

    async def record_location(
        self,
        provider_account: User,
        request_id: str,
        latitude: float,
        longitude: float
    ) -> LocationUpdate:
        if not is_valid_coordinate(latitude, longitude):
            raise ValidationError("Invalid location coordinates")

        service_request, provider = await self._load_for_provider(provider_account, request_id)
        if not lifecycle.can_record_location(service_request.status):
            raise Conflict(f"Cannot record location while request is {service_request.status.value}")

        # Touch the request under the same status guard as a status update
        await self._advance(service_request, {"updated_at": datetime.now(timezone.utc)})

        entry = LocationUpdate(
            service_request_id=service_request.id,
            provider_id=provider.id,
            latitude=latitude,
            longitude=longitude
        )
        self.db.add(entry)
        provider.latitude = latitude
        provider.longitude = longitude
        await self.db.commit()
        return entry

    async def location_history(self, account: User, request_id: str) -> List[LocationUpdate]:
        service_request = await get_request_by_public_id(self.db, request_id)
        if service_request.user_id != account.id:
            provider = await find_provider_for_user(self.db, account.id)
            if provider is None or service_request.provider_id != provider.id:
                raise Forbidden("Not authorized to view this request")

        result = await self.db.execute(
            select(LocationUpdate)
            .where(LocationUpdate.service_request_id == service_request.id)
            .order_by(LocationUpdate.recorded_at, LocationUpdate.id)
        )
        return list(result.scalars().all())
