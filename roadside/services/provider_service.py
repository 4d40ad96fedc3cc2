import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from roadside.config import settings
from roadside.errors import Conflict, Forbidden, NotFound, ValidationError
from roadside.models import NotificationType, Provider, User
from roadside.schemas.provider import ProviderCreate, ProviderUpdate
from roadside.services.geocoding_service import Geocoder
from roadside.services.image_store import ImageStore
from roadside.services.notification_service import Notifier
from roadside.utils.geo import is_valid_coordinate

logger = logging.getLogger(__name__)

async def find_provider_for_user(db: AsyncSession, user_id: UUID) -> Optional[Provider]:
    result = await db.execute(select(Provider).where(Provider.user_id == user_id))
    return result.scalar_one_or_none()

async def get_provider_for_user(db: AsyncSession, user_id: UUID) -> Provider:
    provider = await find_provider_for_user(db, user_id)
    if not provider:
        raise NotFound("Provider profile not found")
    return provider

class ProviderService:
    def __init__(
        self,
        db: AsyncSession,
        notifier: Notifier = None,
        geocoder: Geocoder = None,
        image_store: ImageStore = None
    ):
        self.db = db
        self.notifier = notifier
        self.geocoder = geocoder
        self.image_store = image_store

    async def register(self, account: User, data: ProviderCreate) -> Provider:
        """
        Create the provider profile for a fuel-station or mechanic account.

        The profile variant follows the account role. New profiles start
        available and verified.
        """
        try:
            variant = Provider.variant_for_role(account.role)
        except ValueError:
            raise Forbidden("Only fuel-station and mechanic accounts can register as providers")

        if await find_provider_for_user(self.db, account.id):
            raise Conflict("Provider profile already exists")

        if not is_valid_coordinate(data.latitude, data.longitude):
            raise ValidationError("Invalid provider location")

        address = (data.address or "").strip()
        if not address:
            if self.geocoder is None:
                raise ValidationError("Address is required")
            address = await self.geocoder.reverse_geocode(data.latitude, data.longitude)

        account_id = account.id
        provider = variant(
            user_id=account_id,
            business_name=data.business_name.strip(),
            address=address,
            phone=data.phone or account.phone,
            email=data.email or account.email,
            latitude=data.latitude,
            longitude=data.longitude,
            assistance_fee=data.assistance_fee if data.assistance_fee is not None
                else Decimal(str(settings.DEFAULT_ASSISTANCE_FEE)),
            travel_fee_per_km=data.travel_fee_per_km if data.travel_fee_per_km is not None
                else Decimal(str(settings.DEFAULT_TRAVEL_FEE_PER_KM)),
            opening_time=data.opening_time,
            closing_time=data.closing_time,
            rating=Decimal("0"),
            total_ratings=0,
            is_available=True,
            is_verified=True
        )
        provider.apply_capabilities(services=data.services or [], fuel_prices=data.fuel_prices or {})
        self.db.add(provider)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise Conflict("Provider profile already exists")

        logger.info("Registered %s provider %s for user %s", provider.business_type, provider.id, account_id)
        return provider

    async def get_profile(self, account: User) -> Provider:
        return await get_provider_for_user(self.db, account.id)

    async def update_profile(self, account: User, data: ProviderUpdate) -> Provider:
        provider = await get_provider_for_user(self.db, account.id)
        changes = data.model_dump(exclude_unset=True)

        services = changes.pop("services", None)
        fuel_prices = changes.pop("fuel_prices", None)

        for field in ("business_name", "address", "phone", "email"):
            if field in changes:
                value = (changes.pop(field) or "").strip()
                if not value:
                    raise ValidationError(f"{field.replace('_', ' ').capitalize()} cannot be empty")
                setattr(provider, field, value)

        # Remaining fields are fees and operating hours
        for field, value in changes.items():
            if value is None and field in ("assistance_fee", "travel_fee_per_km"):
                continue
            setattr(provider, field, value)

        provider.apply_capabilities(services=services, fuel_prices=fuel_prices)

        await self.db.commit()
        logger.info("Updated provider profile %s", provider.id)

        if self.notifier:
            self.notifier.notify(account.id, NotificationType.PROFILE_UPDATE, {}, email=provider.email)
        return provider

    async def set_availability(
        self,
        account: User,
        is_available: bool,
        latitude: float = None,
        longitude: float = None
    ) -> Provider:
        provider = await get_provider_for_user(self.db, account.id)
        provider.is_available = is_available

        if latitude is not None and longitude is not None:
            if not is_valid_coordinate(latitude, longitude):
                raise ValidationError("Invalid provider location")
            provider.latitude = latitude
            provider.longitude = longitude

        await self.db.commit()
        logger.info("Provider %s is now %s", provider.id, "available" if is_available else "unavailable")
        return provider

    async def update_location(self, account: User, latitude: float, longitude: float) -> Provider:
        if not is_valid_coordinate(latitude, longitude):
            raise ValidationError("Invalid provider location")

        provider = await get_provider_for_user(self.db, account.id)
        provider.latitude = latitude
        provider.longitude = longitude
        await self.db.commit()
        return provider

    async def update_qr_code(self, account: User, image: bytes, suffix: str = ".png") -> Provider:
        """Store a new payment QR image and drop the previous one"""
        if not image:
            raise ValidationError("QR code image is required")
        if self.image_store is None:
            raise ValidationError("Image uploads are not configured")

        provider = await get_provider_for_user(self.db, account.id)
        previous = provider.qr_code_public_id

        uploaded = (await self.image_store.upload_photos([image], suffix=suffix))[0]
        provider.qr_code_url = uploaded["url"]
        provider.qr_code_public_id = uploaded["public_id"]
        provider.qr_code_uploaded_at = datetime.now(timezone.utc)
        await self.db.commit()

        if previous and previous != uploaded["public_id"]:
            if not await self.image_store.delete(previous):
                logger.warning("Old QR code %s for provider %s was not deleted", previous, provider.id)

        logger.info("QR code updated for provider %s", provider.id)
        return provider
