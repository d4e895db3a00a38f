"""
Role-based access state machine.

Every request for a protected page resolves the user to one AccessState and
``route`` turns that state into a decision: admit the request, or send the
user somewhere else.
"""
from enum import Enum
from typing import NamedTuple, Optional
from urllib.parse import urlencode

from django.conf import settings
from django.urls import reverse

ACTIVE_ROLES = ('student', 'teacher', 'coordinator')


class AccessState(Enum):
    LOADING = 'loading'
    UNAUTHENTICATED = 'unauthenticated'
    PENDING = 'pending'
    ACTIVE_ROLE = 'active_role'
    ADMIN = 'admin'


class RouteDecision(NamedTuple):
    admitted: bool
    redirect_to: Optional[str] = None

    @property
    def waiting(self):
        return not self.admitted and self.redirect_to is None


ADMIT = RouteDecision(admitted=True)
WAIT = RouteDecision(admitted=False)


def resolve_access(user, role=None):
    """
    Resolve the access state of ``user``.

    ``None`` means the user has not been resolved yet. ``role`` overrides
    the role stored on the user.
    """
    if user is None:
        return AccessState.LOADING
    if not user.is_authenticated:
        return AccessState.UNAUTHENTICATED
    if user.is_superuser:
        return AccessState.ADMIN

    role = role if role is not None else getattr(user, 'role', None)
    if role == 'admin':
        return AccessState.ADMIN
    if role == 'pending':
        return AccessState.PENDING
    if role in ACTIVE_ROLES:
        return AccessState.ACTIVE_ROLE
    return AccessState.UNAUTHENTICATED


def signin_url(next_path=None):
    url = reverse('signin')
    if next_path and next_path != url:
        url = f"{url}?{urlencode({'next': next_path})}"
    return url


def route(state, path):
    """Decide what happens to a request for the protected ``path``."""
    if state is AccessState.LOADING:
        return WAIT
    if state is AccessState.UNAUTHENTICATED:
        return RouteDecision(admitted=False, redirect_to=signin_url(path))
    if state is AccessState.PENDING:
        # The notice is a public path
        return RouteDecision(admitted=False, redirect_to=reverse(settings.PENDING_ACTIVATION_URL))
    # Admins and active roles reach the requested page
    return ADMIT
