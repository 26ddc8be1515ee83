"""
Domain-specific exceptions for events services.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class EventsServiceError(Exception):
    """Base exception for all events service errors."""
    pass


class InvalidEventNameError(EventsServiceError):
    """Raised when an event is created with a blank name."""
    pass


class LedgerSyncError(EventsServiceError):
    """
    Raised when the store or file storage fails during a load or mutation.

    The change was not saved; the client may retry.
    """

    retryable = True


class PaymentKeyMissingError(EventsServiceError):
    """Raised when a payment QR code is requested for an event without a key."""
    pass
