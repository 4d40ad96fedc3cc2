from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from roadside.database import get_db
from roadside.dependencies import (
    get_current_user, get_current_provider_account,
    get_notifier, get_geocoder, get_image_store
)
from roadside.schemas.service_request import (
    ServiceRequestCreate, ServiceRequestCreated, ServiceRequestResponse,
    CostEstimateResponse, NearbyProvider, ProviderDashboard, StatusUpdate,
    LocationPing, LocationUpdateResponse, CancelRequest, GeocodeRequest, GeocodeResponse
)
from roadside.services.assignment_service import AssignmentService
from roadside.services.geocoding_service import Geocoder
from roadside.services.image_store import ImageStore
from roadside.services.matching_service import MatchingService
from roadside.services.notification_service import Notifier
from roadside.models import User
from typing import List

router = APIRouter(prefix="/services", tags=["Service Requests"])

@router.post("/request", response_model=ServiceRequestCreated, status_code=status.HTTP_201_CREATED)
async def create_service_request(
    request_data: ServiceRequestCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
    geocoder: Geocoder = Depends(get_geocoder)
):
    """Create a service request and return nearby providers with a cost estimate"""
    matching_service = MatchingService(db, notifier=notifier, geocoder=geocoder)
    created = await matching_service.create_request(current_user, request_data)

    return ServiceRequestCreated(
        request=ServiceRequestResponse.model_validate(created["request"]),
        nearest_providers=[NearbyProvider.from_match(m) for m in created["nearest_providers"]],
        cost_estimate=CostEstimateResponse(**created["cost_estimate"].to_dict())
    )

@router.get("/my-requests", response_model=List[ServiceRequestResponse])
async def get_my_requests(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get the caller's requests, newest first"""
    matching_service = MatchingService(db)
    return await matching_service.list_user_requests(current_user)

@router.get("/provider-requests", response_model=ProviderDashboard)
async def get_provider_requests(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_provider_account)
):
    """Pending requests a provider can claim plus its active jobs"""
    matching_service = MatchingService(db)
    return await matching_service.provider_dashboard(current_user)

@router.post("/geocode", response_model=GeocodeResponse)
async def reverse_geocode(
    location: GeocodeRequest,
    current_user: User = Depends(get_current_user),
    geocoder: Geocoder = Depends(get_geocoder)
):
    address = await geocoder.reverse_geocode(location.latitude, location.longitude)
    return GeocodeResponse(
        address=address,
        coordinates={"latitude": location.latitude, "longitude": location.longitude}
    )

@router.get("/{request_id}", response_model=ServiceRequestResponse)
async def get_service_request(
    request_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    matching_service = MatchingService(db)
    return await matching_service.get_request(current_user, request_id)

@router.post("/{request_id}/photos", response_model=ServiceRequestResponse)
async def upload_request_photos(
    request_id: str,
    photos: List[UploadFile] = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    image_store: ImageStore = Depends(get_image_store)
):
    """Attach vehicle photos to a request"""
    images = [await photo.read() for photo in photos]
    matching_service = MatchingService(db, image_store=image_store)
    return await matching_service.attach_photos(current_user, request_id, [i for i in images if i])

@router.post("/{request_id}/assign", response_model=ServiceRequestResponse)
async def assign_service_request(
    request_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_provider_account),
    notifier: Notifier = Depends(get_notifier)
):
    """Claim a pending request"""
    assignment_service = AssignmentService(db, notifier=notifier)
    return await assignment_service.assign(current_user, request_id)

@router.put("/{request_id}/status", response_model=ServiceRequestResponse)
async def update_request_status(
    request_id: str,
    status_data: StatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_provider_account),
    notifier: Notifier = Depends(get_notifier)
):
    assignment_service = AssignmentService(db, notifier=notifier)
    return await assignment_service.update_status(
        current_user,
        request_id,
        status_data.status,
        current_lat=status_data.current_lat,
        current_lng=status_data.current_lng
    )

@router.post("/{request_id}/location", response_model=LocationUpdateResponse, status_code=status.HTTP_201_CREATED)
async def record_provider_location(
    request_id: str,
    location: LocationPing,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_provider_account)
):
    """Tracking ping from the assigned provider"""
    assignment_service = AssignmentService(db)
    return await assignment_service.record_location(
        current_user, request_id, location.latitude, location.longitude
    )

@router.get("/{request_id}/locations", response_model=List[LocationUpdateResponse])
async def get_location_history(
    request_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    assignment_service = AssignmentService(db)
    return await assignment_service.location_history(current_user, request_id)

@router.post("/{request_id}/cancel", response_model=ServiceRequestResponse)
async def cancel_service_request(
    request_id: str,
    cancellation: CancelRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier)
):
    assignment_service = AssignmentService(db, notifier=notifier)
    return await assignment_service.cancel(current_user, request_id, cancellation.reason)
