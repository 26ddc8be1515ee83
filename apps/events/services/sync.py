"""
Load / mutate / save cycle shared by every event mutation.

A mutation is a ledger function applied to the freshly loaded event. The
result is written back through the store with the version that was loaded,
so a concurrent writer makes the save fail with ``StaleEventError`` instead
of being overwritten. The value returned to the caller is the one the store
accepted; there is no second copy to keep in step.
"""

import logging
from typing import Any, Callable, Optional

from django.db import DatabaseError

from apps.events.exceptions import EventNotFoundError, StaleEventError
from apps.events.ledger import LedgerEvent
from apps.events.stores import DjangoEventStore, EventStore

from .exceptions import LedgerSyncError


logger = logging.getLogger(__name__)


def get_event_store() -> EventStore:
    """Return the store used by services."""
    return DjangoEventStore()


def load_event(*, event_id: Any, store: Optional[EventStore] = None) -> LedgerEvent:
    """
    Load an event through the store.

    Raises:
        EventNotFoundError: If the event does not exist
        LedgerSyncError: If the store fails
    """
    store = store or get_event_store()

    try:
        event = store.get(event_id)
    except DatabaseError as e:
        logger.exception("Failed to load event %s", event_id)
        raise LedgerSyncError("Could not load the event, please try again") from e

    if event is None:
        raise EventNotFoundError(event_id)

    return event


def apply_mutation(
    *,
    event_id: Any,
    mutate: Callable[[LedgerEvent], LedgerEvent],
    expected_version: Optional[int] = None,
    store: Optional[EventStore] = None,
    action: str = 'update'
) -> LedgerEvent:
    """
    Load an event, apply a ledger mutation and persist the result.

    Args:
        event_id: ID of the event to change
        mutate: Ledger function taking and returning a LedgerEvent
        expected_version: Version the client last saw; if given and not
            current the mutation is rejected before it runs
        store: Store to use (defaults to get_event_store())
        action: Short label for logging

    Returns:
        The stored event. If the mutation was a no-op nothing is written
        and the loaded event is returned as is.

    Raises:
        EventNotFoundError: If the event does not exist
        NotEventOwnerError: If the mutation rejects the acting user
        StaleEventError: If the event changed since expected_version / load
        LedgerSyncError: If the store fails; the change was not saved
    """
    store = store or get_event_store()
    event = load_event(event_id=event_id, store=store)

    if expected_version is not None and expected_version != event.version:
        logger.warning(
            "Rejected %s on event %s: client version %s, current %s",
            action, event.id, expected_version, event.version
        )
        raise StaleEventError(
            event_id=event.id,
            expected_version=expected_version,
            current_version=event.version,
        )

    updated = mutate(event)

    if updated == event:
        return event

    try:
        saved = store.save(updated)
    except StaleEventError:
        logger.warning("Concurrent write detected for %s on event %s", action, event.id)
        raise
    except DatabaseError as e:
        logger.exception("Failed to save %s on event %s", action, event.id)
        raise LedgerSyncError("The change was not saved, please try again") from e

    logger.info("Event %s: %s (version %s)", saved.id, action, saved.version)
    return saved
