"""
Service layer unit tests for events app.

Tests cover:
- Owner-only enforcement at the service boundary
- Optimistic concurrency (stale versions, interleaved writes)
- Store failures surfaced as retryable errors
- Payment proof upload and QR generation
"""

import pytest
import uuid
from decimal import Decimal
from unittest.mock import patch

from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError

from apps.events import ledger
from apps.events.exceptions import EventNotFoundError, NotEventOwnerError, StaleEventError
from apps.events.models import Event
from apps.events.stores import DjangoEventStore
from apps.events.services import (
    create_event,
    get_event,
    list_events,
    rename_event,
    delete_event,
    set_total_cost,
    get_event_summary,
    add_guest,
    update_guest,
    remove_guest,
    set_payment_info,
    upload_payment_proof,
    signal_paying,
    PaymentKeyQRGenerator,
)
from apps.events.services.exceptions import (
    InvalidEventNameError,
    LedgerSyncError,
    PaymentKeyMissingError,
)


PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'


class InterleavingStore(DjangoEventStore):
    """Store that lets another writer land first, once, right before a save."""

    def __init__(self, competing_change):
        self.competing_change = competing_change
        self.fired = False

    def save(self, event):
        if not self.fired:
            self.fired = True
            other = self.get(event.id)
            super().save(self.competing_change(other))
        return super().save(event)


@pytest.mark.django_db
class TestEventManagement:

    def test_create_event(self, event_owner):
        event = create_event(owner_id=event_owner.id, name='  Game night ')

        assert event.name == 'Game night'
        assert event.guests == ()
        assert event.total_cost == Decimal('0.00')

    def test_create_event_blank_name(self, event_owner):
        with pytest.raises(InvalidEventNameError):
            create_event(owner_id=event_owner.id, name='   ')

        assert Event.objects.count() == 0

    def test_create_event_store_failure(self, event_owner):
        with patch.object(DjangoEventStore, 'create', side_effect=DatabaseError('down')):
            with pytest.raises(LedgerSyncError):
                create_event(owner_id=event_owner.id, name='Picnic')

    def test_get_event_not_found(self):
        with pytest.raises(EventNotFoundError):
            get_event(event_id=uuid.uuid4())

    def test_get_event_load_failure(self, event):
        with patch.object(DjangoEventStore, 'get', side_effect=DatabaseError('down')):
            with pytest.raises(LedgerSyncError) as exc_info:
                get_event(event_id=event.id)

        assert exc_info.value.retryable is True

    def test_list_events(self, event, empty_event, event_owner, guest_user):
        assert {e.id for e in list_events(owner_id=event_owner.id)} == {event.id, empty_event.id}
        assert list_events(owner_id=guest_user.id) == []

    def test_rename_event(self, event, event_owner):
        renamed = rename_event(event_id=event.id, actor_id=event_owner.id, name='Party')

        assert renamed.name == 'Party'
        assert renamed.version == 2

    def test_rename_by_non_owner(self, event, guest_user):
        with pytest.raises(NotEventOwnerError):
            rename_event(event_id=event.id, actor_id=guest_user.id, name='Mine')

        event.refresh_from_db()
        assert event.name == 'Birthday Dinner'

    def test_delete_event(self, event, event_owner):
        delete_event(event_id=event.id, actor_id=event_owner.id)

        assert not Event.objects.filter(id=event.id).exists()

    def test_delete_event_by_non_owner(self, event, guest_user):
        with pytest.raises(NotEventOwnerError):
            delete_event(event_id=event.id, actor_id=guest_user.id)

        assert Event.objects.filter(id=event.id).exists()

    def test_set_total_cost(self, event, event_owner):
        updated = set_total_cost(event_id=event.id, actor_id=event_owner.id, raw_input='abc')

        assert updated.total_cost == Decimal('0.00')
        event.refresh_from_db()
        assert event.total_cost == Decimal('0.00')

    def test_summary_owner_only(self, event, event_owner, guest_user):
        summary = get_event_summary(event_id=event.id, actor_id=event_owner.id)

        assert summary.total_paid == Decimal('30.00')
        assert summary.profit_loss == Decimal('-70.00')
        assert summary.cost_per_guest == Decimal('50.00')

        with pytest.raises(NotEventOwnerError):
            get_event_summary(event_id=event.id, actor_id=guest_user.id)


@pytest.mark.django_db
class TestGuestManagement:

    def test_add_guest(self, empty_event, event_owner):
        event = add_guest(
            event_id=empty_event.id,
            actor_id=event_owner.id,
            name='Ana',
            raw_amount='30',
            has_paid=True
        )

        assert [guest.name for guest in event.guests] == ['Ana']
        empty_event.refresh_from_db()
        assert empty_event.guests[0]['amount_paid'] == '30.00'
        assert empty_event.version == 2

    def test_blank_name_does_not_write(self, event, event_owner):
        result = add_guest(event_id=event.id, actor_id=event_owner.id, name='  ')

        assert result.version == 1
        event.refresh_from_db()
        assert event.version == 1

    def test_non_owner_cannot_add(self, event, guest_user):
        with pytest.raises(NotEventOwnerError):
            add_guest(event_id=event.id, actor_id=guest_user.id, name='Eve')

        event.refresh_from_db()
        assert len(event.guests) == 2

    def test_update_guest(self, event, event_owner):
        updated = update_guest(
            event_id=event.id,
            actor_id=event_owner.id,
            guest_id='g-bob',
            raw_amount='70',
            has_paid=True
        )

        assert ledger.compute_profit_loss(updated) == Decimal('0.00')

    def test_update_unknown_guest_does_not_write(self, event, event_owner):
        result = update_guest(
            event_id=event.id,
            actor_id=event_owner.id,
            guest_id='missing-id',
            raw_amount='50',
            has_paid=True
        )

        assert result.version == 1
        assert len(result.guests) == 2

    def test_remove_guest(self, event, event_owner):
        updated = remove_guest(event_id=event.id, actor_id=event_owner.id, guest_id='g-ana')

        assert [guest.id for guest in updated.guests] == ['g-bob']

    def test_stale_client_version_is_rejected(self, event, event_owner):
        with pytest.raises(StaleEventError) as exc_info:
            add_guest(
                event_id=event.id,
                actor_id=event_owner.id,
                name='Cid',
                expected_version=7
            )

        assert exc_info.value.current_version == 1
        event.refresh_from_db()
        assert len(event.guests) == 2

    def test_interleaved_write_is_not_overwritten(self, event, event_owner):
        store = InterleavingStore(
            lambda other: ledger.add_guest(other, actor_id=event_owner.id, name='From tab two')
        )

        with pytest.raises(StaleEventError):
            add_guest(
                event_id=event.id,
                actor_id=event_owner.id,
                name='From tab one',
                store=store
            )

        event.refresh_from_db()
        assert [guest['name'] for guest in event.guests] == ['Ana', 'Bob', 'From tab two']

    def test_save_failure_is_retryable(self, event, event_owner):
        with patch.object(DjangoEventStore, 'save', side_effect=DatabaseError('down')):
            with pytest.raises(LedgerSyncError) as exc_info:
                add_guest(event_id=event.id, actor_id=event_owner.id, name='Cid')

        assert exc_info.value.retryable is True
        event.refresh_from_db()
        assert len(event.guests) == 2


@pytest.mark.django_db
class TestPaymentInfo:

    def test_set_payment_info(self, event, event_owner):
        updated = set_payment_info(
            event_id=event.id,
            actor_id=event_owner.id,
            payment_key='pix-key-123',
            proof_url='https://example.com/proof.png'
        )

        assert updated.payment_key == 'pix-key-123'
        assert updated.payment_proof_url == 'https://example.com/proof.png'

    def test_set_payment_info_non_owner(self, event, guest_user):
        with pytest.raises(NotEventOwnerError):
            set_payment_info(event_id=event.id, actor_id=guest_user.id, payment_key='mine')

    def test_upload_payment_proof(self, event, event_owner, media_root):
        upload = SimpleUploadedFile('receipt.PNG', b'fake-image-bytes', content_type='image/png')

        updated = upload_payment_proof(event_id=event.id, actor_id=event_owner.id, upload=upload)

        assert updated.payment_proof_url.endswith('.png')
        assert f'payment_proofs/{event.id}/' in updated.payment_proof_url
        stored = list((media_root / 'payment_proofs' / str(event.id)).iterdir())
        assert len(stored) == 1

    def test_upload_payment_proof_keeps_key(self, event, event_owner, media_root):
        set_payment_info(event_id=event.id, actor_id=event_owner.id, payment_key='key-1')
        upload = SimpleUploadedFile('proof.jpg', b'bytes', content_type='image/jpeg')

        updated = upload_payment_proof(event_id=event.id, actor_id=event_owner.id, upload=upload)

        assert updated.payment_key == 'key-1'

    def test_upload_by_non_owner_stores_nothing(self, event, guest_user, media_root):
        upload = SimpleUploadedFile('proof.png', b'bytes', content_type='image/png')

        with pytest.raises(NotEventOwnerError):
            upload_payment_proof(event_id=event.id, actor_id=guest_user.id, upload=upload)

        assert not (media_root / 'payment_proofs').exists()

    def test_upload_storage_failure(self, event, event_owner):
        upload = SimpleUploadedFile('proof.png', b'bytes', content_type='image/png')

        with patch(
            'apps.events.services.payment_info.store_payment_proof',
            side_effect=OSError('disk full')
        ):
            with pytest.raises(LedgerSyncError):
                upload_payment_proof(event_id=event.id, actor_id=event_owner.id, upload=upload)

    def test_signal_paying(self, event, guest_user):
        set_payment_info(
            event_id=event.id,
            actor_id=event.owner_id,
            payment_key='key-1'
        )

        notice = signal_paying(event_id=event.id, actor_id=guest_user.id)

        assert notice['payment_key'] == 'key-1'
        assert notice['suggested_amount'] == Decimal('50.00')
        event.refresh_from_db()
        assert event.version == 2

    def test_qr_code_for_event(self, event, event_owner):
        set_payment_info(event_id=event.id, actor_id=event_owner.id, payment_key='key-1')

        png = PaymentKeyQRGenerator.generate_for_event(event_id=event.id)

        assert png.startswith(PNG_SIGNATURE)

    def test_qr_code_without_key(self, event):
        with pytest.raises(PaymentKeyMissingError):
            PaymentKeyQRGenerator.generate_for_event(event_id=event.id)
