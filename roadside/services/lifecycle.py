"""
Request lifecycle state machine.

    pending -> accepted -> en_route -> service_started -> completed
                  any non-terminal state -> cancelled

``pending -> accepted`` only happens through a claim, and ``cancelled`` only
through cancellation, so neither is reachable through a provider status
update. Forward skips are allowed; backward moves are not.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, FrozenSet, Optional
from roadside.errors import ValidationError
from roadside.models import RequestStatus, ACTIVE_STATUSES, TERMINAL_STATUSES

VALID_TRANSITIONS: Dict[RequestStatus, FrozenSet[RequestStatus]] = {
    RequestStatus.PENDING: frozenset({RequestStatus.ACCEPTED, RequestStatus.CANCELLED}),
    RequestStatus.ACCEPTED: frozenset({
        RequestStatus.EN_ROUTE,
        RequestStatus.SERVICE_STARTED,
        RequestStatus.COMPLETED,
        RequestStatus.CANCELLED,
    }),
    RequestStatus.EN_ROUTE: frozenset({
        RequestStatus.SERVICE_STARTED,
        RequestStatus.COMPLETED,
        RequestStatus.CANCELLED,
    }),
    RequestStatus.SERVICE_STARTED: frozenset({RequestStatus.COMPLETED, RequestStatus.CANCELLED}),
    RequestStatus.COMPLETED: frozenset(),
    RequestStatus.CANCELLED: frozenset(),
}

# Statuses a provider may submit through a status update
PROVIDER_SETTABLE_STATUSES = frozenset({
    RequestStatus.EN_ROUTE,
    RequestStatus.SERVICE_STARTED,
    RequestStatus.COMPLETED,
})

STATUS_LABELS = {
    RequestStatus.PENDING: "Pending",
    RequestStatus.ACCEPTED: "Accepted",
    RequestStatus.EN_ROUTE: "En Route",
    RequestStatus.SERVICE_STARTED: "Service Started",
    RequestStatus.COMPLETED: "Completed",
    RequestStatus.CANCELLED: "Cancelled",
}

@dataclass(frozen=True)
class TransitionResult:
    allowed: bool
    reason: Optional[str] = None

def parse_status(value) -> RequestStatus:
    """Coerce client input to a known non-cancelled status"""
    try:
        status = RequestStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status: {value!r}")
    if status == RequestStatus.CANCELLED:
        raise ValidationError("Use cancellation to cancel a request")
    return status

def is_terminal(status: RequestStatus) -> bool:
    return status in TERMINAL_STATUSES

def validate_transition(current: RequestStatus, target: RequestStatus) -> TransitionResult:
    current = RequestStatus(current)
    target = RequestStatus(target)

    if is_terminal(current):
        return TransitionResult(False, f"Request is already {current.value}")
    if target not in VALID_TRANSITIONS[current]:
        return TransitionResult(False, f"Cannot change status from {current.value} to {target.value}")
    return TransitionResult(True)

def validate_provider_update(current: RequestStatus, target: RequestStatus) -> TransitionResult:
    """Transition check for status updates sent by the assigned provider"""
    if RequestStatus(target) not in PROVIDER_SETTABLE_STATUSES:
        return TransitionResult(False, f"Status {RequestStatus(target).value} cannot be set directly")
    return validate_transition(current, target)

def can_record_location(status: RequestStatus) -> bool:
    return RequestStatus(status) in ACTIVE_STATUSES

TIMESTAMP_FIELDS = {
    RequestStatus.ACCEPTED: "accepted_at",
    RequestStatus.COMPLETED: "completed_at",
    RequestStatus.CANCELLED: "cancelled_at",
}

def transition_values(target: RequestStatus, now: datetime = None) -> Dict:
    """Column values written when a request moves to ``target``"""
    now = now or datetime.now(timezone.utc)
    values = {"status": target, "updated_at": now}
    field = TIMESTAMP_FIELDS.get(target)
    if field:
        values[field] = now
    return values
