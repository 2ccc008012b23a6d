"""
Domain exceptions for the purchases app.

Service-layer errors are plain exceptions rooted at ``PurchaseServiceError``;
views translate them into HTTP responses. The ``APIException`` subclasses at
the bottom are raised directly by views.

Exception Hierarchy:
    PurchaseServiceError (base)
    ├── PurchaseItemNotFoundError
    ├── ProductNotFoundError
    ├── InvalidStateTransitionError
    ├── FormIncompleteError
    ├── FormTypeMismatchError
    ├── ActivationRecordImmutableError
    ├── TransientFetchError
    └── ActivationValidationError
        ├── EmptyBatchError
        ├── MissingDatesError
        └── InvalidDateRangeError
"""
from rest_framework.exceptions import APIException


class PurchaseServiceError(Exception):
    """Base exception for purchase service errors."""
    pass


class PurchaseItemNotFoundError(PurchaseServiceError):
    """Purchase item does not exist or is not visible to the caller."""
    pass


class ProductNotFoundError(PurchaseServiceError):
    """Product does not exist or is no longer sold."""
    pass


class InvalidStateTransitionError(PurchaseServiceError):
    """Requested plan status change would move the lifecycle backwards."""
    pass


class FormIncompleteError(PurchaseServiceError):
    """Plan preparation requires a completed onboarding form."""
    pass


class FormTypeMismatchError(PurchaseServiceError):
    """Questionnaire type does not belong to the purchased product."""
    pass


class ActivationRecordImmutableError(PurchaseServiceError):
    """Activation history is append-only."""
    pass


class TransientFetchError(PurchaseServiceError):
    """A read query failed; callers keep showing their previous data."""
    pass


class ActivationValidationError(PurchaseServiceError):
    """
    Activation batch rejected before any write.

    Carries the ids of the offending items so the admin can fix their dates
    and retry.
    """

    def __init__(self, message, item_ids=None):
        super().__init__(message)
        self.item_ids = [str(item_id) for item_id in (item_ids or [])]


class EmptyBatchError(ActivationValidationError):
    """No items were selected for activation."""
    pass


class MissingDatesError(ActivationValidationError):
    """At least one item in the batch lacks a start or end date."""
    pass


class InvalidDateRangeError(ActivationValidationError):
    """At least one item in the batch ends before it starts."""
    pass


class ServiceUnavailableError(APIException):
    """Backing store could not be read."""
    status_code = 503
    default_detail = 'Data is temporarily unavailable, please retry.'
    default_code = 'service_unavailable'


class StateConflictError(APIException):
    """Requested change conflicts with the item's current state."""
    status_code = 409
    default_detail = 'The item is not in a state that allows this change.'
    default_code = 'state_conflict'
