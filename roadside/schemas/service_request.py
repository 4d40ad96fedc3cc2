from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime
from uuid import UUID
from decimal import Decimal
from roadside.models.service_request import (
    ServiceType, FuelType, VehicleType, RequestStatus, PaymentStatus
)

class ServiceRequestCreate(BaseModel):
    service_type: ServiceType
    fuel_type: Optional[FuelType] = None
    quantity: Optional[int] = None
    problem_description: Optional[str] = None
    vehicle_type: VehicleType = VehicleType.CAR
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    user_address: Optional[str] = None
    user_phone: Optional[str] = None

class CostEstimateResponse(BaseModel):
    fuel_cost: int = 0
    assistance_fee: int = 0
    travel_fee: int = 0
    total_cost: int = 0

class PhotoResponse(BaseModel):
    url: str
    public_id: str

class ServiceRequestResponse(BaseModel):
    id: UUID
    request_id: str
    user_id: UUID
    provider_id: Optional[UUID]
    service_type: ServiceType
    fuel_type: Optional[FuelType]
    quantity: Optional[int]
    problem_description: Optional[str]
    vehicle_type: VehicleType
    latitude: float
    longitude: float
    user_address: str
    user_phone: str
    provider_phone: Optional[str]
    status: RequestStatus
    cost_estimate: CostEstimateResponse
    actual_cost: Optional[Decimal]
    payment_status: PaymentStatus
    rating: Optional[int]
    review: Optional[str]
    photos: Optional[List[PhotoResponse]] = None
    cancellation_reason: Optional[str]
    created_at: datetime
    accepted_at: Optional[datetime]
    completed_at: Optional[datetime]
    cancelled_at: Optional[datetime]

    class Config:
        from_attributes = True

class NearbyProvider(BaseModel):
    id: UUID
    business_type: str
    business_name: str
    address: str
    phone: str
    latitude: float
    longitude: float
    distance_km: float
    eta_minutes: int
    rating: Decimal
    total_ratings: int
    assistance_fee: Decimal
    travel_fee_per_km: Decimal

    @classmethod
    def from_match(cls, match) -> "NearbyProvider":
        provider = match.provider
        return cls(
            id=provider.id,
            business_type=provider.business_type,
            business_name=provider.business_name,
            address=provider.address,
            phone=provider.phone,
            latitude=provider.latitude,
            longitude=provider.longitude,
            distance_km=match.distance_km,
            eta_minutes=match.eta_minutes,
            rating=provider.rating,
            total_ratings=provider.total_ratings,
            assistance_fee=provider.assistance_fee,
            travel_fee_per_km=provider.travel_fee_per_km,
        )

class ServiceRequestCreated(BaseModel):
    success: bool = True
    message: str = "Service request created successfully"
    request: ServiceRequestResponse
    nearest_providers: List[NearbyProvider]
    cost_estimate: CostEstimateResponse

class ProviderDashboard(BaseModel):
    pending_requests: List[ServiceRequestResponse]
    active_requests: List[ServiceRequestResponse]

class StatusUpdate(BaseModel):
    # Checked against the lifecycle table by the assignment service
    status: str
    current_lat: Optional[float] = Field(None, ge=-90, le=90)
    current_lng: Optional[float] = Field(None, ge=-180, le=180)

class LocationPing(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

class LocationUpdateResponse(BaseModel):
    provider_id: Optional[UUID]
    latitude: float
    longitude: float
    recorded_at: datetime

    class Config:
        from_attributes = True

class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)

class GeocodeRequest(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

class GeocodeResponse(BaseModel):
    address: str
    coordinates: Dict[str, float]
