"""
User authentication service.

Organizers and guests sign in with email and password; the view turns
the returned user into a JWT pair.
"""

import logging

from django.db import transaction
from django.contrib.auth import get_user_model
from django.utils import timezone

from .exceptions import InvalidCredentialsError, InactiveAccountError

User = get_user_model()

logger = logging.getLogger(__name__)


@transaction.atomic
def authenticate_user(*, email: str, password: str) -> User:
    """
    Check credentials and record the sign-in time.

    The row is locked while last_login is written so two concurrent
    sign-ins for the same account do not interleave.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password (same message
            for both, so the response does not reveal which emails exist)
        InactiveAccountError: If the account was deactivated by an admin
    """
    # Emails are stored with a lower-cased domain
    lookup = User.objects.normalize_email(email)

    try:
        user = User.objects.select_for_update().get(email=lookup)
    except User.DoesNotExist:
        logger.info("Sign-in failed: no account for %s", lookup)
        raise InvalidCredentialsError("Invalid email or password")

    # Password first, so a deactivated account only shows up with valid credentials
    if not user.check_password(password):
        logger.info("Sign-in failed: wrong password for user %s", user.id)
        raise InvalidCredentialsError("Invalid email or password")

    if not user.is_active:
        raise InactiveAccountError("Account is deactivated")

    # Stamp last_login
    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])

    logger.info("User %s signed in", user.id)
    return user
