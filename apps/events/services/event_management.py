"""
Event management service.

Handles event creation, listing, renaming, deletion, the declared total
cost and the financial summary.
"""

import logging
from typing import Any, List, Optional
from uuid import UUID

from django.db import DatabaseError

from apps.events import ledger
from apps.events.exceptions import EventNotFoundError, NotEventOwnerError
from apps.events.ledger import LedgerEvent, LedgerSummary
from apps.events.stores import EventStore

from .exceptions import InvalidEventNameError, LedgerSyncError
from .sync import apply_mutation, get_event_store, load_event


logger = logging.getLogger(__name__)


def create_event(
    *,
    owner_id: Any,
    name: str,
    store: Optional[EventStore] = None
) -> LedgerEvent:
    """
    Create an empty event owned by owner_id.

    The event starts with no guests, a total cost of 0.00 and no payment
    information.

    Args:
        owner_id: ID of the creating user
        name: Event name (must not be blank)

    Returns:
        Created event

    Raises:
        InvalidEventNameError: If name is blank
        LedgerSyncError: If the store fails
    """
    name = (name or '').strip()
    if not name:
        raise InvalidEventNameError("Event name cannot be blank")

    store = store or get_event_store()

    try:
        event = store.create(owner_id=owner_id, name=name)
    except DatabaseError as e:
        logger.exception("Failed to create event for user %s", owner_id)
        raise LedgerSyncError("The event was not created, please try again") from e

    logger.info("Event %s created by user %s", event.id, owner_id)
    return event


def get_event(*, event_id: UUID, store: Optional[EventStore] = None) -> LedgerEvent:
    """
    Get an event by ID. Any authenticated user may read an event.

    Raises:
        EventNotFoundError: If event doesn't exist
        LedgerSyncError: If the store fails
    """
    return load_event(event_id=event_id, store=store)


def list_events(*, owner_id: Any, store: Optional[EventStore] = None) -> List[LedgerEvent]:
    """Return events owned by owner_id, newest first."""
    store = store or get_event_store()

    try:
        return store.list_for_owner(owner_id)
    except DatabaseError as e:
        logger.exception("Failed to list events for user %s", owner_id)
        raise LedgerSyncError("Could not load events, please try again") from e


def rename_event(
    *,
    event_id: UUID,
    actor_id: Any,
    name: str,
    expected_version: Optional[int] = None,
    store: Optional[EventStore] = None
) -> LedgerEvent:
    """Rename an event (owner only). A blank name leaves it unchanged."""
    return apply_mutation(
        event_id=event_id,
        mutate=lambda event: ledger.rename(event, actor_id=actor_id, name=name),
        expected_version=expected_version,
        store=store,
        action='rename',
    )


def delete_event(*, event_id: UUID, actor_id: Any, store: Optional[EventStore] = None) -> None:
    """
    Delete an event and its embedded guest list (owner only).

    Raises:
        EventNotFoundError: If event doesn't exist
        NotEventOwnerError: If actor is not the owner
        LedgerSyncError: If the store fails
    """
    store = store or get_event_store()
    event = load_event(event_id=event_id, store=store)

    if not ledger.is_owner(event, actor_id):
        raise NotEventOwnerError(event_id=event.id, actor_id=actor_id)

    try:
        deleted = store.delete(event.id)
    except DatabaseError as e:
        logger.exception("Failed to delete event %s", event.id)
        raise LedgerSyncError("The event was not deleted, please try again") from e

    if not deleted:
        raise EventNotFoundError(event.id)

    logger.info("Event %s deleted by user %s", event.id, actor_id)


def set_total_cost(
    *,
    event_id: UUID,
    actor_id: Any,
    raw_input: Any,
    expected_version: Optional[int] = None,
    store: Optional[EventStore] = None
) -> LedgerEvent:
    """
    Set the declared total cost (owner only).

    Malformed input is stored as 0.00 (see ledger.parse_amount).
    """
    return apply_mutation(
        event_id=event_id,
        mutate=lambda event: ledger.set_total_cost(
            event, actor_id=actor_id, raw_input=raw_input
        ),
        expected_version=expected_version,
        store=store,
        action='set total cost',
    )


def get_event_summary(
    *,
    event_id: UUID,
    actor_id: Any,
    store: Optional[EventStore] = None
) -> LedgerSummary:
    """
    Get the financial summary of an event (owner only).

    Returns:
        LedgerSummary with total cost, total paid, profit/loss,
        cost per guest and guest counts

    Raises:
        EventNotFoundError: If event doesn't exist
        NotEventOwnerError: If actor is not the owner
    """
    event = load_event(event_id=event_id, store=store)

    if not ledger.is_owner(event, actor_id):
        raise NotEventOwnerError(event_id=event.id, actor_id=actor_id)

    return ledger.summarize(event)
