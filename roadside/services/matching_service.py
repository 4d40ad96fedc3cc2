import logging
import secrets
import time
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from roadside.config import settings
from roadside.errors import Conflict, Forbidden, NotFound, ValidationError
from roadside.models import (
    ServiceRequest, ServiceType, RequestStatus, NotificationType, User, ACTIVE_STATUSES
)
from roadside.schemas.service_request import ServiceRequestCreate
from roadside.services.geocoding_service import Geocoder
from roadside.services.image_store import ImageStore
from roadside.services.notification_service import Notifier
from roadside.services.pricing_service import PricingService, CostEstimate
from roadside.services.provider_index import ProviderIndex, ProviderMatch
from roadside.services.provider_service import find_provider_for_user, get_provider_for_user
from roadside.utils.geo import is_valid_coordinate

logger = logging.getLogger(__name__)

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"

def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))

def generate_request_id() -> str:
    """REQ-<base36 ms timestamp>-<5 random base36 chars>"""
    stamp = to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"REQ-{stamp}-{suffix}"

async def get_request_by_public_id(db: AsyncSession, request_id: str) -> ServiceRequest:
    result = await db.execute(
        select(ServiceRequest).where(ServiceRequest.request_id == request_id)
    )
    service_request = result.scalar_one_or_none()
    if not service_request:
        raise NotFound("Service request not found")
    return service_request

class MatchingService:
    """Entry point for creating service requests and reading them back"""

    def __init__(
        self,
        db: AsyncSession,
        notifier: Notifier = None,
        geocoder: Geocoder = None,
        image_store: ImageStore = None,
        index: ProviderIndex = None,
        pricing: PricingService = None,
        id_generator=generate_request_id
    ):
        self.db = db
        self.notifier = notifier
        self.geocoder = geocoder
        self.image_store = image_store
        self.index = index or ProviderIndex(db)
        self.pricing = pricing or PricingService()
        self.id_generator = id_generator

    def _validate(self, payload: ServiceRequestCreate) -> None:
        if payload.latitude is None or payload.longitude is None:
            raise ValidationError("Location is required")
        if not is_valid_coordinate(payload.latitude, payload.longitude):
            raise ValidationError("Invalid location coordinates")

        if payload.service_type == ServiceType.FUEL:
            if not payload.fuel_type:
                raise ValidationError("Fuel type is required for fuel requests")
            if payload.quantity is None or payload.quantity <= 0:
                raise ValidationError("Fuel quantity must be greater than zero")
        elif not (payload.problem_description or "").strip():
            raise ValidationError("Problem description is required for mechanic requests")

    async def _persist(self, requester_id, payload: ServiceRequestCreate, address: str, phone: str) -> ServiceRequest:
        """Insert the request with a zero estimate, regenerating the id on collision"""
        is_fuel = payload.service_type == ServiceType.FUEL

        for attempt in range(1, settings.REQUEST_ID_MAX_ATTEMPTS + 1):
            service_request = ServiceRequest(
                request_id=self.id_generator(),
                user_id=requester_id,
                service_type=payload.service_type,
                fuel_type=payload.fuel_type if is_fuel else None,
                quantity=payload.quantity if is_fuel else None,
                problem_description=None if is_fuel else payload.problem_description.strip(),
                vehicle_type=payload.vehicle_type,
                latitude=payload.latitude,
                longitude=payload.longitude,
                user_address=address,
                user_phone=phone,
                status=RequestStatus.PENDING,
                photos=[],
                **CostEstimate.zero().to_dict()
            )
            request_id = service_request.request_id
            self.db.add(service_request)
            try:
                await self.db.commit()
                return service_request
            except IntegrityError:
                await self.db.rollback()
                logger.warning("Request id %s already taken (attempt %d)", request_id, attempt)

        raise Conflict("Could not allocate a unique request id")

    async def create_request(self, requester: User, payload: ServiceRequestCreate) -> Dict:
        """
        Create a pending request, then match and price it.

        The request is committed before the provider search so it survives
        any failure in matching or pricing; in that case it keeps the zero
        estimate.
        """
        self._validate(payload)

        requester_id = requester.id
        phone = (payload.user_phone or "").strip() or requester.phone
        address = (payload.user_address or "").strip()
        if not address and self.geocoder is not None:
            address = await self.geocoder.reverse_geocode(payload.latitude, payload.longitude)
        if not address:
            raise ValidationError("Address is required")

        service_request = await self._persist(requester_id, payload, address, phone)
        logger.info(
            "Created %s request %s for user %s",
            service_request.service_type.value, service_request.request_id, requester_id
        )

        nearest: List[ProviderMatch] = []
        estimate = CostEstimate.zero()
        try:
            nearest = await self.index.find_nearest(
                (payload.latitude, payload.longitude),
                payload.service_type,
                max_distance_meters=settings.DEFAULT_SEARCH_RADIUS_METERS,
                limit=settings.DEFAULT_PROVIDER_LIMIT
            )
            if nearest:
                estimate = self.pricing.estimate(
                    payload.service_type,
                    payload.fuel_type,
                    payload.quantity,
                    nearest[0].provider
                )
                for field, value in estimate.to_dict().items():
                    setattr(service_request, field, value)
                await self.db.commit()
        except Exception:
            logger.exception("Matching failed for request %s; keeping zero estimate", service_request.request_id)
            await self.db.rollback()
            await self.db.refresh(service_request)
            nearest, estimate = [], CostEstimate.zero()

        if self.notifier:
            self.notifier.notify(
                requester_id,
                NotificationType.REQUEST_CREATED,
                {
                    "request_id": service_request.request_id,
                    "service_type": service_request.service_type.value,
                    "provider_count": len(nearest),
                },
                phone=phone
            )

        return {
            "request": service_request,
            "nearest_providers": nearest,
            "cost_estimate": estimate,
        }

    async def list_user_requests(self, requester: User) -> List[ServiceRequest]:
        result = await self.db.execute(
            select(ServiceRequest)
            .where(ServiceRequest.user_id == requester.id)
            .order_by(ServiceRequest.created_at.desc(), ServiceRequest.id)
        )
        return list(result.scalars().all())

    async def provider_dashboard(self, provider_account: User) -> Dict[str, List[ServiceRequest]]:
        """Newest pending requests of the provider's service type plus its own active ones"""
        provider = await get_provider_for_user(self.db, provider_account.id)

        pending = await self.db.execute(
            select(ServiceRequest)
            .where(
                ServiceRequest.status == RequestStatus.PENDING,
                ServiceRequest.service_type == provider.SERVICE_TYPE
            )
            .order_by(ServiceRequest.created_at.desc(), ServiceRequest.id)
            .limit(settings.DASHBOARD_PENDING_LIMIT)
        )
        active = await self.db.execute(
            select(ServiceRequest)
            .where(
                ServiceRequest.provider_id == provider.id,
                ServiceRequest.status.in_(ACTIVE_STATUSES)
            )
            .order_by(ServiceRequest.accepted_at.desc(), ServiceRequest.id)
        )

        return {
            "pending_requests": list(pending.scalars().all()),
            "active_requests": list(active.scalars().all()),
        }

    async def get_request(self, account: User, request_id: str) -> ServiceRequest:
        """
        Visible to the requester and the assigned provider. A provider of the
        right type may also view a request that is still pending.
        """
        service_request = await get_request_by_public_id(self.db, request_id)
        if service_request.user_id == account.id:
            return service_request

        provider = await find_provider_for_user(self.db, account.id)
        if provider is not None:
            if service_request.provider_id == provider.id:
                return service_request
            if (service_request.status == RequestStatus.PENDING
                    and service_request.service_type == provider.SERVICE_TYPE):
                return service_request

        raise Forbidden("Not authorized to view this request")

    async def attach_photos(self, requester: User, request_id: str, images: List[bytes]) -> ServiceRequest:
        """Upload vehicle photos and add them to a request the caller created"""
        if not images:
            raise ValidationError("At least one photo is required")
        if self.image_store is None:
            raise ValidationError("Image uploads are not configured")

        service_request = await get_request_by_public_id(self.db, request_id)
        if service_request.user_id != requester.id:
            raise Forbidden("Not authorized to update this request")

        uploaded = await self.image_store.upload_photos(images)
        service_request.photos = list(service_request.photos or []) + uploaded
        await self.db.commit()
        logger.info("Attached %d photos to request %s", len(uploaded), request_id)
        return service_request
