from django.contrib import admin

from .ledger import compute_profit_loss, compute_total_paid
from .models import Event
from .stores import to_ledger


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    """Admin interface for events with their ledger figures."""

    list_display = [
        'name',
        'owner',
        'total_cost',
        'guest_count',
        'total_paid',
        'profit_loss',
        'version',
        'created_at',
    ]
    list_filter = ['created_at']
    search_fields = ['name', 'owner__email', 'payment_key']
    readonly_fields = ['id', 'version', 'created_at', 'updated_at']
    raw_id_fields = ['owner']
    ordering = ['-created_at']

    @admin.display(description='Guests')
    def guest_count(self, obj):
        return len(obj.guests or [])

    @admin.display(description='Total paid')
    def total_paid(self, obj):
        return compute_total_paid(to_ledger(obj))

    @admin.display(description='Profit / loss')
    def profit_loss(self, obj):
        return compute_profit_loss(to_ledger(obj))

    def save_model(self, request, obj, form, change):
        # Edits made here must invalidate versions held by API clients
        if change:
            obj.version += 1
        super().save_model(request, obj, form, change)
