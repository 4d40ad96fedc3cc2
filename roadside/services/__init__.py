from roadside.services.auth_service import AuthService
from roadside.services.background import BackgroundTasks
from roadside.services.geocoding_service import Geocoder
from roadside.services.image_store import ImageStore
from roadside.services.notification_service import Notifier, NotificationService
from roadside.services.provider_index import ProviderIndex, ProviderMatch
from roadside.services.pricing_service import PricingService, CostEstimate
from roadside.services.matching_service import MatchingService
from roadside.services.assignment_service import AssignmentService
from roadside.services.settlement_service import SettlementService
from roadside.services.provider_service import ProviderService

__all__ = [
    "AuthService",
    "BackgroundTasks",
    "Geocoder",
    "ImageStore",
    "Notifier",
    "NotificationService",
    "ProviderIndex",
    "ProviderMatch",
    "PricingService",
    "CostEstimate",
    "MatchingService",
    "AssignmentService",
    "SettlementService",
    "ProviderService",
]
