"""
Domain errors raised by the service layer.

Each class maps to one kind a client can act on: validation problems and
missing records are fixable by the caller, ``Forbidden`` and ``Conflict`` are
never worth retrying. ``UpstreamUnavailable`` is raised by external
collaborators only and is always absorbed by the caller.
"""


class RoadsideError(Exception):
    status_code = 500
    default_message = "Unexpected error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return type(self).__name__


class ValidationError(RoadsideError):
    status_code = 422
    default_message = "Invalid input"


class NotFound(RoadsideError):
    status_code = 404
    default_message = "Not found"


class Forbidden(RoadsideError):
    status_code = 403
    default_message = "Not authorized"


class Conflict(RoadsideError):
    status_code = 409
    default_message = "Request is not in a valid state for this operation"


class AlreadyAssigned(Conflict):
    default_message = "Request not found or already assigned"


class NotAvailable(Conflict):
    default_message = "Provider is not available"


class InvalidTransition(Conflict):
    default_message = "Status transition not allowed"


class NotCompleted(Conflict):
    default_message = "Service must be completed before payment"


class AlreadyPaid(Conflict):
    default_message = "Payment already processed for this request"


class NotEligible(Conflict):
    default_message = "Can only rate completed and paid services"


class AlreadyRated(Conflict):
    default_message = "You have already rated this service"


class UpstreamUnavailable(RoadsideError):
    status_code = 503
    default_message = "External service unavailable"
