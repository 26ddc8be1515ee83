"""
Events app services layer.

Services load events through the store, apply ledger rules and persist the
result. Views call these functions and never touch the store directly.
"""

from .exceptions import (
    EventsServiceError,
    InvalidEventNameError,
    LedgerSyncError,
    PaymentKeyMissingError,
)

from .sync import (
    apply_mutation,
    get_event_store,
    load_event,
)

from .event_management import (
    create_event,
    get_event,
    list_events,
    rename_event,
    delete_event,
    set_total_cost,
    get_event_summary,
)

from .guest_management import (
    add_guest,
    update_guest,
    remove_guest,
)

from .payment_info import (
    set_payment_info,
    upload_payment_proof,
    signal_paying,
    PaymentKeyQRGenerator,
)


__all__ = [
    # Exceptions
    'EventsServiceError',
    'InvalidEventNameError',
    'LedgerSyncError',
    'PaymentKeyMissingError',

    # Synchronization
    'apply_mutation',
    'get_event_store',
    'load_event',

    # Event Management
    'create_event',
    'get_event',
    'list_events',
    'rename_event',
    'delete_event',
    'set_total_cost',
    'get_event_summary',

    # Guest Management
    'add_guest',
    'update_guest',
    'remove_guest',

    # Payment Info
    'set_payment_info',
    'upload_payment_proof',
    'signal_paying',
    'PaymentKeyQRGenerator',
]
