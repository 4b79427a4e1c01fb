"""
Signed one-click unsubscribe links for menu alert emails.

A token names a user id and is signed with UNSUBSCRIBE_SECRET_KEY, so links
need no server-side state. Tokens older than 90 days are rejected.
"""

import hashlib
import os
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from shared.errors import NotFoundError
from stores.settings_store import UserSettingsStore

UNSUBSCRIBE_SALT = "menu-alert-unsubscribe"
DEFAULT_MAX_AGE_DAYS = 90


def _get_serializer() -> URLSafeTimedSerializer:
    """Serializer keyed by UNSUBSCRIBE_SECRET_KEY; raises ValueError when it is unset."""
    secret = os.getenv("UNSUBSCRIBE_SECRET_KEY")
    if not secret:
        raise ValueError("UNSUBSCRIBE_SECRET_KEY must be set to sign unsubscribe links")

    return URLSafeTimedSerializer(
        secret,
        salt=UNSUBSCRIBE_SALT,
        signer_kwargs={"digest_method": hashlib.sha256},
    )


def generate_unsubscribe_token(user_id: str) -> str:
    """
    Sign a user id for an unsubscribe link.

    Raises:
        ValueError: UNSUBSCRIBE_SECRET_KEY is not configured
    """
    return _get_serializer().dumps(user_id)


def validate_unsubscribe_token(
    token: str, max_age_days: int = DEFAULT_MAX_AGE_DAYS
) -> Optional[str]:
    """User id carried by a token, or None if it is malformed, tampered or expired."""
    try:
        return _get_serializer().loads(token, max_age=max_age_days * 24 * 60 * 60)
    except (BadSignature, SignatureExpired, ValueError, TypeError):
        return None


def process_unsubscribe_token(token: str, settings_store: UserSettingsStore) -> bool:
    """
    Turn off email notifications for the user named in a token.

    Returns False for an invalid token or a user that no longer exists.
    """
    user_id = validate_unsubscribe_token(token)
    if not user_id:
        return False

    try:
        settings_store.set_email_notifications_for_user(user_id, False)
    except NotFoundError:
        return False
    return True
