import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.events.models import Event
from apps.events.stores import DjangoEventStore


def client_for(user):
    """Return an API client authenticated as user using JWT."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def event_owner(db):
    """Create and return the user who organizes the event."""
    return User.objects.create_user(
        email='owner@example.com',
        password='TestPass123!',
        display_name='Event Owner',
    )


@pytest.fixture
def guest_user(db):
    """Create and return a user who attends but does not own the event."""
    return User.objects.create_user(
        email='guest@example.com',
        password='TestPass123!',
        display_name='Guest User',
    )


@pytest.fixture
def owner_client(event_owner):
    """Return API client authenticated as the event owner."""
    return client_for(event_owner)


@pytest.fixture
def guest_client(guest_user):
    """Return API client authenticated as a non-owner."""
    return client_for(guest_user)


@pytest.fixture
def store():
    return DjangoEventStore()


@pytest.fixture
def event(db, event_owner):
    """Create an event with a total cost of 100.00 and two guests."""
    return Event.objects.create(
        name='Birthday Dinner',
        owner=event_owner,
        total_cost=Decimal('100.00'),
        guests=[
            {'id': 'g-ana', 'name': 'Ana', 'amount_paid': '30.00', 'has_paid': True},
            {'id': 'g-bob', 'name': 'Bob', 'amount_paid': '0.00', 'has_paid': False},
        ],
    )


@pytest.fixture
def empty_event(db, event_owner):
    """Create an event with no guests and zero cost."""
    return Event.objects.create(name='Picnic', owner=event_owner)


@pytest.fixture
def media_root(settings, tmp_path):
    """Store uploaded files in a temporary directory."""
    settings.MEDIA_ROOT = str(tmp_path)
    return tmp_path
