"""
Payment information service.

Handles the payment key and payment proof owners publish for their
guests, the "I am paying" signal from guests, and QR codes for the key.

Classes:
    PaymentKeyQRGenerator: Renders a payment key as a PNG QR code.
"""

import logging
from io import BytesIO
from typing import Any, Optional
from uuid import UUID

from apps.events import ledger
from apps.events.exceptions import NotEventOwnerError
from apps.events.ledger import LedgerEvent
from apps.events.stores import EventStore

from .exceptions import LedgerSyncError, PaymentKeyMissingError
from .payment_proof import store_payment_proof
from .sync import apply_mutation, get_event_store, load_event


logger = logging.getLogger(__name__)


def set_payment_info(
    *,
    event_id: UUID,
    actor_id: Any,
    payment_key: str,
    proof_url: Optional[str] = None,
    expected_version: Optional[int] = None,
    store: Optional[EventStore] = None
) -> LedgerEvent:
    """
    Replace the payment key and proof locator together (owner only).

    Both fields are written in the same save, so a reader never sees a new
    key next to a stale proof or the other way round.
    """
    return apply_mutation(
        event_id=event_id,
        mutate=lambda event: ledger.set_payment_info(
            event,
            actor_id=actor_id,
            payment_key=payment_key,
            proof_url=proof_url,
        ),
        expected_version=expected_version,
        store=store,
        action='set payment info',
    )


def upload_payment_proof(
    *,
    event_id: UUID,
    actor_id: Any,
    upload,
    expected_version: Optional[int] = None,
    store: Optional[EventStore] = None
) -> LedgerEvent:
    """
    Store a payment proof image and attach it to the event (owner only).

    Ownership is checked before the file is written, so non-owners cannot
    leave files behind. The current payment key is kept.

    Raises:
        EventNotFoundError: If event doesn't exist
        NotEventOwnerError: If actor is not the owner
        StaleEventError: If the event changed concurrently
        LedgerSyncError: If the file or the event could not be saved
    """
    store = store or get_event_store()
    event = load_event(event_id=event_id, store=store)

    if not ledger.is_owner(event, actor_id):
        raise NotEventOwnerError(event_id=event.id, actor_id=actor_id)

    try:
        proof_url = store_payment_proof(event_id=event.id, upload=upload)
    except OSError as e:
        logger.exception("Failed to store payment proof for event %s", event.id)
        raise LedgerSyncError("The image was not uploaded, please try again") from e

    # TODO: delete the stored file when the event write below is rejected
    return apply_mutation(
        event_id=event.id,
        mutate=lambda current: ledger.set_payment_info(
            current,
            actor_id=actor_id,
            payment_key=current.payment_key,
            proof_url=proof_url,
        ),
        expected_version=expected_version,
        store=store,
        action='upload payment proof',
    )


def signal_paying(
    *,
    event_id: UUID,
    actor_id: Any,
    store: Optional[EventStore] = None
) -> dict:
    """
    Record that a guest intends to pay and return what they need to do so.

    This does not change the event; only the owner records payments.

    Returns:
        dict: A dictionary containing:
            - event (LedgerEvent): The event
            - payment_key (str): Key to pay to (may be empty)
            - payment_proof_url (str | None): Proof image locator
            - suggested_amount (Decimal): Even split of the total cost
    """
    event = load_event(event_id=event_id, store=store)

    logger.info("User %s is paying for event %s", actor_id, event.id)

    return {
        'event': event,
        'payment_key': event.payment_key,
        'payment_proof_url': event.payment_proof_url,
        'suggested_amount': ledger.compute_cost_per_guest(event),
    }


class PaymentKeyQRGenerator:
    """
    Render an event's payment key as a QR code.

    Banking apps can scan the code instead of the guest typing the key.

    Note:
        Requires the ``qrcode`` library with PIL support.
        Install with: ``pip install qrcode[pil]``
    """

    @staticmethod
    def generate_png(payment_key: str) -> bytes:
        """
        Encode payment_key into a PNG image.

        The QR code uses error correction level M (15% recovery).
        """
        import qrcode

        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(payment_key)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffer = BytesIO()
        img.save(buffer, format='PNG')
        return buffer.getvalue()

    @staticmethod
    def generate_for_event(*, event_id: UUID, store: Optional[EventStore] = None) -> bytes:
        """
        Generate the QR code PNG for an event's payment key.

        Raises:
            EventNotFoundError: If event doesn't exist
            PaymentKeyMissingError: If the owner has not set a payment key
        """
        event = load_event(event_id=event_id, store=store)

        if not event.payment_key:
            raise PaymentKeyMissingError("No payment key has been set for this event")

        return PaymentKeyQRGenerator.generate_png(event.payment_key)
