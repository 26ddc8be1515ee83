from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
import uuid


class Event(models.Model):
    """Shared-cost event with its guest list embedded as JSON."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)

    owner = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='owned_events'
    )

    # Financial details
    total_cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )

    # Payment collection
    payment_key = models.CharField(max_length=255, blank=True)
    payment_proof_url = models.CharField(max_length=500, blank=True)

    # [{"id": ..., "name": ..., "amount_paid": "30.00", "has_paid": true}, ...]
    guests = models.JSONField(default=list, blank=True)

    # Optimistic locking
    version = models.PositiveIntegerField(default=1)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'events'
        indexes = [
            models.Index(fields=['owner', 'created_at'], name='events_owner_created_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return self.name
