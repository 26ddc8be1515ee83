"""
Event ledger.

In-memory state of a single event and the rules that derive its financial
summary and keep it consistent between writes.

Everything here is pure: mutations take an event and return the next one,
they never touch the database. The caller (see ``apps.events.services``)
loads the event through the store, applies a ledger function and persists
the result. That keeps the aggregation rules testable without a backend.

Two policies apply throughout:

* Amounts are forgiving. ``parse_amount`` turns anything that is not a
  non-negative finite number within ``MAX_AMOUNT`` into ``0.00`` instead
  of raising, so a bad form field never blocks rendering the event.
* Authorization is not. Every mutation receives the acting user's id and
  raises ``NotEventOwnerError`` unless it matches the event owner.

Example::

    event = LedgerEvent(id=None, name='Birthday', owner_id=owner.id)
    event = add_guest(event, actor_id=owner.id, name='Ana',
                      raw_amount='30', has_paid=True)
    compute_total_paid(event)   # Decimal('30.00')
"""

import uuid
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional, Tuple

from .exceptions import NotEventOwnerError


CENT = Decimal('0.01')
ZERO = Decimal('0.00')
# Largest amount a 12-digit, 2-decimal column can hold
MAX_AMOUNT = Decimal('9999999999.99')


# =============================================================================
# Value objects
# =============================================================================

@dataclass(frozen=True)
class Guest:
    """A participant embedded in an event."""

    id: str
    name: str
    amount_paid: Decimal = ZERO
    # Independent of amount_paid: a guest may be flagged paid with 0.00,
    # or have money recorded without the flag.
    has_paid: bool = False


@dataclass(frozen=True)
class LedgerEvent:
    """Snapshot of an event as loaded from (or about to be written to) the store."""

    id: Any
    name: str
    owner_id: Any
    total_cost: Decimal = ZERO
    payment_key: str = ''
    payment_proof_url: Optional[str] = None
    guests: Tuple[Guest, ...] = ()
    version: int = 1


@dataclass(frozen=True)
class LedgerSummary:
    """Derived financial figures for an event."""

    total_cost: Decimal
    total_paid: Decimal
    profit_loss: Decimal
    cost_per_guest: Decimal
    guest_count: int
    paid_count: int
    is_settled: bool


# =============================================================================
# Parsing
# =============================================================================

def parse_amount(raw: Any) -> Decimal:
    """
    Coerce user input to a non-negative amount with cent precision.

    Accepts Decimal, int, float, str (surrounding whitespace ignored) and
    None. Anything that cannot be read as a finite number, any negative
    number and anything above ``MAX_AMOUNT`` becomes ``Decimal('0.00')``.
    Booleans are not amounts.

    Args:
        raw: Value from a form field, JSON body or stored record

    Returns:
        Decimal quantized to 0.01 (ROUND_HALF_UP)

    Example:
        >>> parse_amount('12.5')
        Decimal('12.50')
        >>> parse_amount('abc')
        Decimal('0.00')
        >>> parse_amount('')
        Decimal('0.00')
    """
    if raw is None or isinstance(raw, bool):
        return ZERO

    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, (int, float)):
        value = Decimal(str(raw))
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return ZERO
        try:
            value = Decimal(text)
        except InvalidOperation:
            return ZERO
    else:
        return ZERO

    if not value.is_finite() or value < 0:
        return ZERO

    try:
        value = value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # Too many digits to represent at cent precision
        return ZERO

    if value > MAX_AMOUNT:
        return ZERO
    return value


# =============================================================================
# Aggregation
# =============================================================================

def compute_total_paid(event: LedgerEvent) -> Decimal:
    """Sum of amount_paid over all guests (0.00 for an empty list)."""
    return sum((parse_amount(guest.amount_paid) for guest in event.guests), ZERO)


def compute_profit_loss(event: LedgerEvent) -> Decimal:
    """
    Actual payments minus the declared total cost.

    Non-negative means surplus or break-even, negative means shortfall.
    Always based on recorded payments, never on the even split.
    """
    return compute_total_paid(event) - parse_amount(event.total_cost)


def compute_cost_per_guest(event: LedgerEvent) -> Decimal:
    """Even split of total cost across guests; 0.00 when there are none."""
    if not event.guests:
        return ZERO
    share = parse_amount(event.total_cost) / len(event.guests)
    return share.quantize(CENT, rounding=ROUND_HALF_UP)


def summarize(event: LedgerEvent) -> LedgerSummary:
    """Collect every derived figure for display."""
    profit_loss = compute_profit_loss(event)
    return LedgerSummary(
        total_cost=parse_amount(event.total_cost),
        total_paid=compute_total_paid(event),
        profit_loss=profit_loss,
        cost_per_guest=compute_cost_per_guest(event),
        guest_count=len(event.guests),
        paid_count=sum(1 for guest in event.guests if guest.has_paid),
        is_settled=profit_loss >= 0,
    )


# =============================================================================
# Lookups
# =============================================================================

def is_owner(event: LedgerEvent, actor_id: Any) -> bool:
    """Return True if actor_id identifies the event owner."""
    if actor_id is None or event.owner_id is None:
        return False
    return str(actor_id) == str(event.owner_id)


def find_guest(event: LedgerEvent, guest_id: str) -> Optional[Guest]:
    """Return the guest with the given id, or None."""
    for guest in event.guests:
        if guest.id == guest_id:
            return guest
    return None


def _require_owner(event: LedgerEvent, actor_id: Any) -> None:
    if not is_owner(event, actor_id):
        raise NotEventOwnerError(event_id=event.id, actor_id=actor_id)


def _new_guest_id(event: LedgerEvent) -> str:
    existing = {guest.id for guest in event.guests}
    while True:
        candidate = uuid.uuid4().hex
        if candidate not in existing:
            return candidate


# =============================================================================
# Mutations (owner only)
# =============================================================================

def rename(event: LedgerEvent, *, actor_id: Any, name: str) -> LedgerEvent:
    """Change the display name. A blank name leaves the event unchanged."""
    _require_owner(event, actor_id)

    name = (name or '').strip()
    if not name:
        return event
    return replace(event, name=name)


def set_total_cost(event: LedgerEvent, *, actor_id: Any, raw_input: Any) -> LedgerEvent:
    """Set the declared total cost; malformed input becomes 0.00."""
    _require_owner(event, actor_id)
    return replace(event, total_cost=parse_amount(raw_input))


def add_guest(
    event: LedgerEvent,
    *,
    actor_id: Any,
    name: str,
    raw_amount: Any = None,
    has_paid: bool = False,
    guest_id: Optional[str] = None
) -> LedgerEvent:
    """
    Append a guest to the end of the list.

    Args:
        event: Current event state
        actor_id: Acting user (must be the owner)
        name: Guest display name; blank names are ignored
        raw_amount: Amount already paid, parsed with parse_amount
        has_paid: Paid flag
        guest_id: Optional id to use; ignored if already taken

    Returns:
        The event with the new guest appended, or the same event if the
        name was blank

    Raises:
        NotEventOwnerError: If actor_id is not the owner
    """
    _require_owner(event, actor_id)

    name = (name or '').strip()
    if not name:
        return event

    if not guest_id or find_guest(event, guest_id) is not None:
        guest_id = _new_guest_id(event)

    guest = Guest(
        id=guest_id,
        name=name,
        amount_paid=parse_amount(raw_amount),
        has_paid=bool(has_paid),
    )
    return replace(event, guests=event.guests + (guest,))


def update_guest(
    event: LedgerEvent,
    *,
    actor_id: Any,
    guest_id: str,
    raw_amount: Any,
    has_paid: bool
) -> LedgerEvent:
    """
    Replace a guest's amount and paid flag in place.

    An unknown guest_id is a no-op; position, id and name are preserved.

    Raises:
        NotEventOwnerError: If actor_id is not the owner
    """
    _require_owner(event, actor_id)

    if find_guest(event, guest_id) is None:
        return event

    guests = tuple(
        replace(guest, amount_paid=parse_amount(raw_amount), has_paid=bool(has_paid))
        if guest.id == guest_id else guest
        for guest in event.guests
    )
    return replace(event, guests=guests)


def remove_guest(event: LedgerEvent, *, actor_id: Any, guest_id: str) -> LedgerEvent:
    """Drop a guest; an unknown guest_id is a no-op."""
    _require_owner(event, actor_id)

    if find_guest(event, guest_id) is None:
        return event

    guests = tuple(guest for guest in event.guests if guest.id != guest_id)
    return replace(event, guests=guests)


def set_payment_info(
    event: LedgerEvent,
    *,
    actor_id: Any,
    payment_key: str,
    proof_url: Optional[str]
) -> LedgerEvent:
    """Replace payment key and proof locator together."""
    _require_owner(event, actor_id)
    return replace(
        event,
        payment_key=(payment_key or '').strip(),
        payment_proof_url=proof_url or None,
    )
