from roadside.schemas.service_request import (
    ServiceRequestCreate, CostEstimateResponse, PhotoResponse, ServiceRequestResponse,
    NearbyProvider, ServiceRequestCreated, ProviderDashboard, StatusUpdate,
    LocationPing, LocationUpdateResponse, CancelRequest, GeocodeRequest, GeocodeResponse,
)
from roadside.schemas.provider import (
    ProviderCreate, ProviderUpdate, ProviderResponse,
    AvailabilityUpdate, ProviderLocationUpdate,
)
from roadside.schemas.payment import (
    PaymentCreate, PaymentResponse, RatingCreate, RatingResponse, EarningsResponse,
)
from roadside.schemas.notification import NotificationResponse, UnreadCount

__all__ = [
    "ServiceRequestCreate", "CostEstimateResponse", "PhotoResponse", "ServiceRequestResponse",
    "NearbyProvider", "ServiceRequestCreated", "ProviderDashboard", "StatusUpdate",
    "LocationPing", "LocationUpdateResponse", "CancelRequest", "GeocodeRequest", "GeocodeResponse",
    "ProviderCreate", "ProviderUpdate", "ProviderResponse",
    "AvailabilityUpdate", "ProviderLocationUpdate",
    "PaymentCreate", "PaymentResponse", "RatingCreate", "RatingResponse", "EarningsResponse",
    "NotificationResponse", "UnreadCount",
]
