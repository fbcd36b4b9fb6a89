"""Allow-list gate in front of an external identity provider.

The provider does the actual sign-in; this module only decides whether the
identity it returns may use the app. Anyone outside the allow-list is signed
straight back out.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from .config import ALLOWED_EMAILS
from .errors import AccessDeniedError

logger = logging.getLogger(__name__)


def _email_of(user: Any) -> Optional[str]:
    if user is None:
        return None
    if isinstance(user, Mapping):
        return user.get('email')
    return getattr(user, 'email', None)


def is_email_allowed(email: Optional[str], allowed: Iterable[str] = ALLOWED_EMAILS) -> bool:
    """Case-insensitive membership test; a missing email is never allowed."""
    if not email:
        return False
    return email.strip().lower() in {a.strip().lower() for a in allowed}


class AuthGate:
    """Tracks the signed-in user and enforces the allow-list.

    ``provider`` is any object with ``sign_in()`` returning a user (a mapping
    or object with an ``email``) and ``sign_out()``.
    """

    def __init__(self, provider: Any, allowed: Optional[Iterable[str]] = None):
        self.provider = provider
        self.allowed = list(ALLOWED_EMAILS if allowed is None else allowed)
        self.user: Any = None
        self.auth_error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def sign_in(self) -> Any:
        """Sign in through the provider.

        Raises:
            AccessDeniedError: If the identity is not on the allow-list; the
                provider session is signed out first
        """
        self.auth_error = None
        user = self.provider.sign_in()
        if not is_email_allowed(_email_of(user), self.allowed):
            self.provider.sign_out()
            self.user = None
            error = AccessDeniedError()
            self.auth_error = str(error)
            logger.warning("Rejected sign-in for %s", _email_of(user))
            raise error
        self.user = user
        return user

    def handle_auth_state(self, user: Any) -> Any:
        """Apply an identity change pushed by the provider (``None`` when signed out)."""
        if user is not None and not is_email_allowed(_email_of(user), self.allowed):
            self.provider.sign_out()
            self.user = None
            self.auth_error = str(AccessDeniedError())
            logger.warning("Signed out non-allow-listed user %s", _email_of(user))
            return None
        self.user = user
        self.auth_error = None
        return user

    def sign_out(self) -> None:
        self.provider.sign_out()
        self.user = None

    def clear_auth_error(self) -> None:
        self.auth_error = None
