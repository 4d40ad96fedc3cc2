from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime
from uuid import UUID
from decimal import Decimal
from roadside.models.service_request import FuelType

_HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"

class ProviderCreate(BaseModel):
    business_name: str = Field(..., min_length=1, max_length=255)
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    assistance_fee: Optional[Decimal] = Field(None, ge=0)
    travel_fee_per_km: Optional[Decimal] = Field(None, ge=0)
    opening_time: Optional[str] = Field(None, pattern=_HHMM)
    closing_time: Optional[str] = Field(None, pattern=_HHMM)
    services: Optional[List[str]] = None
    fuel_prices: Optional[Dict[FuelType, Decimal]] = None

class ProviderUpdate(BaseModel):
    business_name: Optional[str] = Field(None, min_length=1, max_length=255)
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    assistance_fee: Optional[Decimal] = Field(None, ge=0)
    travel_fee_per_km: Optional[Decimal] = Field(None, ge=0)
    opening_time: Optional[str] = Field(None, pattern=_HHMM)
    closing_time: Optional[str] = Field(None, pattern=_HHMM)
    services: Optional[List[str]] = None
    fuel_prices: Optional[Dict[FuelType, Decimal]] = None

class ProviderResponse(BaseModel):
    id: UUID
    user_id: UUID
    business_type: str
    business_name: str
    address: str
    phone: str
    email: str
    latitude: float
    longitude: float
    assistance_fee: Decimal
    travel_fee_per_km: Decimal
    rating: Decimal
    total_ratings: int
    is_available: bool
    is_verified: bool
    opening_time: Optional[str]
    closing_time: Optional[str]
    qr_code_url: Optional[str]
    qr_code_uploaded_at: Optional[datetime]
    capabilities: Dict = {}
    created_at: datetime

    class Config:
        from_attributes = True

    @classmethod
    def from_provider(cls, provider) -> "ProviderResponse":
        data = {name: getattr(provider, name) for name in cls.model_fields if name != "capabilities"}
        return cls(**data, capabilities=provider.capabilities())

class AvailabilityUpdate(BaseModel):
    is_available: bool
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

class ProviderLocationUpdate(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
