"""
Guest management service.

Guests live inside their event, so each operation rewrites the event's
guest list through the load / mutate / save cycle.
"""

from typing import Any, Optional
from uuid import UUID

from apps.events import ledger
from apps.events.ledger import LedgerEvent
from apps.events.stores import EventStore

from .sync import apply_mutation


def add_guest(
    *,
    event_id: UUID,
    actor_id: Any,
    name: str,
    raw_amount: Any = None,
    has_paid: bool = False,
    expected_version: Optional[int] = None,
    store: Optional[EventStore] = None
) -> LedgerEvent:
    """
    Append a guest to the event (owner only).

    Args:
        event_id: UUID of the event
        actor_id: Acting user (must be owner)
        name: Guest name; a blank name leaves the event unchanged
        raw_amount: Amount already paid (malformed input becomes 0.00)
        has_paid: Paid flag
        expected_version: Version the client last saw (optional)

    Returns:
        Updated event

    Raises:
        EventNotFoundError: If event doesn't exist
        NotEventOwnerError: If actor is not the owner
        StaleEventError: If the event changed concurrently
        LedgerSyncError: If the store fails
    """
    return apply_mutation(
        event_id=event_id,
        mutate=lambda event: ledger.add_guest(
            event,
            actor_id=actor_id,
            name=name,
            raw_amount=raw_amount,
            has_paid=has_paid,
        ),
        expected_version=expected_version,
        store=store,
        action='add guest',
    )


def update_guest(
    *,
    event_id: UUID,
    actor_id: Any,
    guest_id: str,
    raw_amount: Any,
    has_paid: bool,
    expected_version: Optional[int] = None,
    store: Optional[EventStore] = None
) -> LedgerEvent:
    """
    Replace a guest's amount and paid flag (owner only).

    An unknown guest_id returns the event unchanged without writing.
    """
    return apply_mutation(
        event_id=event_id,
        mutate=lambda event: ledger.update_guest(
            event,
            actor_id=actor_id,
            guest_id=guest_id,
            raw_amount=raw_amount,
            has_paid=has_paid,
        ),
        expected_version=expected_version,
        store=store,
        action='update guest',
    )


def remove_guest(
    *,
    event_id: UUID,
    actor_id: Any,
    guest_id: str,
    expected_version: Optional[int] = None,
    store: Optional[EventStore] = None
) -> LedgerEvent:
    """Remove a guest (owner only); an unknown guest_id is a no-op."""
    return apply_mutation(
        event_id=event_id,
        mutate=lambda event: ledger.remove_guest(
            event, actor_id=actor_id, guest_id=guest_id
        ),
        expected_version=expected_version,
        store=store,
        action='remove guest',
    )
