"""
Custom permission classes for events app.

Objects checked here are ledger values (``LedgerEvent``) loaded by the
services, not ORM rows.
"""
from rest_framework.permissions import BasePermission

from . import ledger


class IsEventOwner(BasePermission):
    """
    Permission: User must be the event owner.

    Usage:
        @action(detail=True, methods=['get'], permission_classes=[IsAuthenticated, IsEventOwner])
        def summary(self, request, pk=None):
            event = get_event(event_id=pk)
            self.check_object_permissions(request, event)
            ...
    """

    message = 'Only the event owner can view this.'

    def has_object_permission(self, request, view, obj):
        return ledger.is_owner(obj, getattr(request.user, 'id', None))
