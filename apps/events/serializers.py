from django.conf import settings
from rest_framework import serializers

from . import ledger


# =============================================================================
# Input Serializers
# =============================================================================

class RawAmountField(serializers.CharField):
    """
    Free-form amount as typed by the user.

    Strings and numbers are passed through untouched; the ledger turns
    anything unparsable into 0.00, so malformed amounts are not a 400.
    """

    def __init__(self, **kwargs):
        kwargs.setdefault('required', False)
        kwargs.setdefault('allow_blank', True)
        kwargs.setdefault('allow_null', True)
        kwargs.setdefault('max_length', 64)
        super().__init__(**kwargs)


class VersionedInputSerializer(serializers.Serializer):
    """
    Base for mutation inputs.

    Fields:
        version (int): Version of the event the client last saw. When sent
            and outdated, the change is rejected with 409.
    """

    version = serializers.IntegerField(min_value=1, required=False)


class EventCreateSerializer(serializers.Serializer):
    """Validate input for creating an event."""

    name = serializers.CharField(max_length=200)


class EventRenameSerializer(VersionedInputSerializer):
    """Validate input for renaming an event."""

    name = serializers.CharField(max_length=200)


class TotalCostInputSerializer(VersionedInputSerializer):
    """Validate input for setting the total cost."""

    total_cost = RawAmountField()


class GuestCreateSerializer(VersionedInputSerializer):
    """
    Validate input for adding a guest.

    A blank name is accepted and leaves the event unchanged.
    """

    name = serializers.CharField(max_length=200, allow_blank=True)
    amount_paid = RawAmountField()
    has_paid = serializers.BooleanField(required=False, default=False)


class GuestUpdateSerializer(VersionedInputSerializer):
    """Validate input for updating a guest's payment."""

    amount_paid = RawAmountField(required=True)
    has_paid = serializers.BooleanField(required=True)


class PaymentInfoInputSerializer(VersionedInputSerializer):
    """
    Validate input for replacing payment information.

    Both fields are replaced; omitting payment_proof_url clears the proof.
    """

    payment_key = serializers.CharField(max_length=255, allow_blank=True)
    payment_proof_url = serializers.CharField(
        max_length=500,
        required=False,
        allow_blank=True,
        allow_null=True
    )


class PaymentProofUploadSerializer(VersionedInputSerializer):
    """Validate an uploaded payment proof image."""

    image = serializers.ImageField()

    def validate_image(self, value):
        max_mb = getattr(settings, 'EVENTS_PAYMENT_PROOF_MAX_MB', 5)
        if value.size > max_mb * 1024 * 1024:
            raise serializers.ValidationError(
                f'Image must be smaller than {max_mb} MB'
            )
        return value


# =============================================================================
# Output Serializers
# =============================================================================

class GuestSerializer(serializers.Serializer):
    """Serializer for a guest embedded in an event."""

    id = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
    amount_paid = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    has_paid = serializers.BooleanField(read_only=True)


class LedgerEventSerializer(serializers.Serializer):
    """Main serializer for an event."""

    id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)
    owner_id = serializers.UUIDField(read_only=True)
    is_owner = serializers.SerializerMethodField()
    total_cost = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    payment_key = serializers.CharField(read_only=True)
    payment_proof_url = serializers.CharField(read_only=True, allow_null=True)
    guests = GuestSerializer(many=True, read_only=True)
    version = serializers.IntegerField(read_only=True)

    def get_is_owner(self, obj):
        request = self.context.get('request')
        if request is None or not request.user.is_authenticated:
            return False
        return ledger.is_owner(obj, request.user.id)


class LedgerEventListSerializer(serializers.Serializer):
    """Lightweight serializer for list views."""

    id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)
    total_cost = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    guest_count = serializers.SerializerMethodField()
    version = serializers.IntegerField(read_only=True)

    def get_guest_count(self, obj):
        return len(obj.guests)


class LedgerSummarySerializer(serializers.Serializer):
    """Serializer for an event's financial summary."""

    total_cost = serializers.DecimalField(max_digits=12, decimal_places=2)
    # Sums over guests can exceed the width of a single stored amount
    total_paid = serializers.DecimalField(max_digits=None, decimal_places=2)
    profit_loss = serializers.DecimalField(max_digits=None, decimal_places=2)
    cost_per_guest = serializers.DecimalField(max_digits=None, decimal_places=2)
    guest_count = serializers.IntegerField()
    paid_count = serializers.IntegerField()
    is_settled = serializers.BooleanField()


class PayingNoticeSerializer(serializers.Serializer):
    """Serializer for the response to an "I am paying" signal."""

    event_id = serializers.UUIDField(source='event.id')
    payment_key = serializers.CharField()
    payment_proof_url = serializers.CharField(allow_null=True)
    suggested_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
