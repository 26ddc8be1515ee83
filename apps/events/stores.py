"""
Event store (repository pattern).

Stores persist and retrieve events and always speak in ledger values
(``LedgerEvent``), never ORM rows, so services and the ledger stay
independent of the database. The interface is what services depend on;
``DjangoEventStore`` is the implementation wired in by default.

Writes are guarded by the event's ``version``: a save only lands if the
stored version still equals the version the caller loaded, and bumps it by
one. Anything else raises ``StaleEventError`` so the client reloads instead
of silently overwriting someone else's guest list.
"""

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Iterable, List, Optional

from django.core.exceptions import ValidationError
from django.db.models import F
from django.utils import timezone

from .exceptions import EventNotFoundError, StaleEventError
from .ledger import Guest, LedgerEvent, parse_amount
from .models import Event


class EventStore(ABC):
    """Interface for event persistence operations."""

    @abstractmethod
    def create(self, *, owner_id: Any, name: str) -> LedgerEvent:
        """Create an empty event (no guests, zero cost) and return it."""
        ...

    @abstractmethod
    def get(self, event_id: Any) -> Optional[LedgerEvent]:
        """Return an event by ID, or None if not found."""
        ...

    @abstractmethod
    def save(self, event: LedgerEvent) -> LedgerEvent:
        """
        Persist the event if its version is current; return the stored value.

        Raises:
            EventNotFoundError: If the event no longer exists
            StaleEventError: If the stored version differs from event.version
        """
        ...

    @abstractmethod
    def delete(self, event_id: Any) -> bool:
        """Delete an event; return False if it did not exist."""
        ...

    @abstractmethod
    def list_for_owner(self, owner_id: Any) -> List[LedgerEvent]:
        """Return the owner's events, newest first."""
        ...


# =============================================================================
# Record conversion
# =============================================================================

def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes', 'on')
    return bool(value)


def guest_to_record(guest: Guest) -> dict:
    """Serialize a guest for the JSON column (amounts as strings)."""
    return {
        'id': guest.id,
        'name': guest.name,
        'amount_paid': str(parse_amount(guest.amount_paid)),
        'has_paid': bool(guest.has_paid),
    }


def _unique_id(candidate: str, taken: set) -> str:
    suffix = 1
    unique = candidate
    while unique in taken:
        suffix += 1
        unique = f'{candidate}-{suffix}'
    return unique


def guests_from_records(records: Optional[Iterable[Any]]) -> tuple:
    """
    Rebuild guests from the JSON column.

    Also reads records written with camelCase keys (``amountPaid``,
    ``hasPaid``). Entries that are not objects are skipped.

    Ids must be unique and stable across reads, since clients address
    guests by the id of their last load. A record without an id gets
    ``legacy-<position>``; a repeated id gets ``<id>-<position>``. Both are
    written back on the next save.
    """
    guests = []
    seen = set()

    for position, record in enumerate(records or ()):
        if not isinstance(record, dict):
            continue

        guest_id = str(record.get('id') or '') or f'legacy-{position}'
        if guest_id in seen:
            guest_id = _unique_id(f'{guest_id}-{position}', seen)
        seen.add(guest_id)

        amount = record.get('amount_paid', record.get('amountPaid'))
        has_paid = record.get('has_paid', record.get('hasPaid', False))

        guests.append(Guest(
            id=guest_id,
            name=str(record.get('name') or ''),
            amount_paid=parse_amount(amount),
            has_paid=_as_bool(has_paid),
        ))

    return tuple(guests)


def to_ledger(row: Event) -> LedgerEvent:
    """Convert an ORM row into a ledger value."""
    return LedgerEvent(
        id=row.id,
        name=row.name,
        owner_id=row.owner_id,
        total_cost=parse_amount(row.total_cost),
        payment_key=row.payment_key or '',
        payment_proof_url=row.payment_proof_url or None,
        guests=guests_from_records(row.guests),
        version=row.version,
    )


# =============================================================================
# Django implementation
# =============================================================================

class DjangoEventStore(EventStore):
    """Database-backed event store using the Django ORM."""

    def create(self, *, owner_id: Any, name: str) -> LedgerEvent:
        row = Event.objects.create(owner_id=owner_id, name=name)
        return to_ledger(row)

    def get(self, event_id: Any) -> Optional[LedgerEvent]:
        try:
            row = Event.objects.get(id=event_id)
        except (Event.DoesNotExist, ValidationError, ValueError):
            return None
        return to_ledger(row)

    def save(self, event: LedgerEvent) -> LedgerEvent:
        updated = Event.objects.filter(
            id=event.id,
            version=event.version
        ).update(
            name=event.name,
            total_cost=parse_amount(event.total_cost),
            payment_key=event.payment_key or '',
            payment_proof_url=event.payment_proof_url or '',
            guests=[guest_to_record(guest) for guest in event.guests],
            version=F('version') + 1,
            updated_at=timezone.now(),
        )

        if not updated:
            current_version = (
                Event.objects
                .filter(id=event.id)
                .values_list('version', flat=True)
                .first()
            )
            if current_version is None:
                raise EventNotFoundError(event.id)
            raise StaleEventError(
                event_id=event.id,
                expected_version=event.version,
                current_version=current_version,
            )

        return replace(event, version=event.version + 1)

    def delete(self, event_id: Any) -> bool:
        try:
            deleted, _ = Event.objects.filter(id=event_id).delete()
        except (ValidationError, ValueError):
            return False
        return deleted > 0

    def list_for_owner(self, owner_id: Any) -> List[LedgerEvent]:
        rows = Event.objects.filter(owner_id=owner_id).order_by('-created_at')
        return [to_ledger(row) for row in rows]
