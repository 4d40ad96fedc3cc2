from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from roadside.database import get_db
from roadside.dependencies import (
    get_current_provider_account, get_notifier, get_geocoder, get_image_store
)
from roadside.schemas.provider import (
    ProviderCreate, ProviderUpdate, ProviderResponse,
    AvailabilityUpdate, ProviderLocationUpdate
)
from roadside.services.geocoding_service import Geocoder
from roadside.services.image_store import ImageStore
from roadside.services.notification_service import Notifier
from roadside.services.provider_service import ProviderService
from roadside.models import User
import os

router = APIRouter(prefix="/providers", tags=["Providers"])

@router.post("/register", response_model=ProviderResponse, status_code=status.HTTP_201_CREATED)
async def register_provider(
    provider_data: ProviderCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_provider_account),
    geocoder: Geocoder = Depends(get_geocoder)
):
    """Create the provider profile for a fuel station or mechanic account"""
    provider_service = ProviderService(db, geocoder=geocoder)
    provider = await provider_service.register(current_user, provider_data)
    return ProviderResponse.from_provider(provider)

@router.get("/profile", response_model=ProviderResponse)
async def get_provider_profile(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_provider_account)
):
    provider_service = ProviderService(db)
    provider = await provider_service.get_profile(current_user)
    return ProviderResponse.from_provider(provider)

@router.put("/profile", response_model=ProviderResponse)
async def update_provider_profile(
    provider_update: ProviderUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_provider_account),
    notifier: Notifier = Depends(get_notifier)
):
    provider_service = ProviderService(db, notifier=notifier)
    provider = await provider_service.update_profile(current_user, provider_update)
    return ProviderResponse.from_provider(provider)

@router.post("/availability", response_model=ProviderResponse)
async def toggle_availability(
    availability: AvailabilityUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_provider_account)
):
    """Go available or unavailable, optionally moving at the same time"""
    provider_service = ProviderService(db)
    provider = await provider_service.set_availability(
        current_user,
        availability.is_available,
        latitude=availability.latitude,
        longitude=availability.longitude
    )
    return ProviderResponse.from_provider(provider)

@router.put("/location", response_model=ProviderResponse)
async def update_provider_location(
    location: ProviderLocationUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_provider_account)
):
    provider_service = ProviderService(db)
    provider = await provider_service.update_location(current_user, location.latitude, location.longitude)
    return ProviderResponse.from_provider(provider)

@router.post("/qr-code", response_model=ProviderResponse)
async def upload_qr_code(
    qr_code: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_provider_account),
    image_store: ImageStore = Depends(get_image_store)
):
    """Upload the payment QR code travellers scan"""
    suffix = os.path.splitext(qr_code.filename or "")[1].lower() or ".png"
    provider_service = ProviderService(db, image_store=image_store)
    provider = await provider_service.update_qr_code(current_user, await qr_code.read(), suffix=suffix)
    return ProviderResponse.from_provider(provider)
