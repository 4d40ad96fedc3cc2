from roadside.models.user import User, UserRole
from roadside.models.service_request import (
    ServiceRequest, LocationUpdate,
    ServiceType, FuelType, VehicleType, RequestStatus, PaymentStatus,
    ACTIVE_STATUSES, TERMINAL_STATUSES,
)
from roadside.models.provider import Provider, FuelStation, Mechanic, BusinessType
from roadside.models.payment import Payment, PaymentMethod, PaymentRecordStatus
from roadside.models.notification import Notification, NotificationType

__all__ = [
    "User", "UserRole",
    "ServiceRequest", "LocationUpdate",
    "ServiceType", "FuelType", "VehicleType", "RequestStatus", "PaymentStatus",
    "ACTIVE_STATUSES", "TERMINAL_STATUSES",
    "Provider", "FuelStation", "Mechanic", "BusinessType",
    "Payment", "PaymentMethod", "PaymentRecordStatus",
    "Notification", "NotificationType",
]
