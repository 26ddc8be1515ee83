"""
Domain exceptions for the events app.

Raised by the ledger (authorization) and by the event store
(missing records, optimistic-concurrency conflicts). Views catch them
and convert them to HTTP responses.
"""


class EventLedgerError(Exception):
    """Base exception for ledger and store errors."""
    pass


class NotEventOwnerError(EventLedgerError):
    """Raised when a non-owner attempts an owner-only operation."""

    def __init__(self, event_id=None, actor_id=None):
        self.event_id = event_id
        self.actor_id = actor_id
        super().__init__("Only the event owner can perform this action")


class EventNotFoundError(EventLedgerError):
    """Raised when an event does not exist."""

    def __init__(self, event_id=None):
        self.event_id = event_id
        super().__init__(f"Event with ID {event_id} not found")


class StaleEventError(EventLedgerError):
    """Raised when a write is based on an outdated version of the event."""

    def __init__(self, event_id=None, expected_version=None, current_version=None):
        self.event_id = event_id
        self.expected_version = expected_version
        self.current_version = current_version
        super().__init__(
            "Event was modified by someone else; reload it and try again"
        )
