"""
Middleware guarding the protected area of the dashboard by role.
"""
import logging

from django.conf import settings
from django.contrib.auth import logout
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils.deprecation import MiddlewareMixin

from .routing import AccessState, resolve_access, route

logger = logging.getLogger(__name__)

SESSION_ROLE_KEY = 'role'


class RoleGateMiddleware(MiddlewareMixin):
    """
    Redirect requests for protected pages according to the user's access
    state. Public paths (sign-in, sign-up, admin, API, static files) pass
    through; the API is guarded by DRF permissions instead.
    """

    def is_public(self, path):
        if path in (reverse('signin'), reverse('auth:signin'), reverse('auth:signup')):
            return True
        return any(path.startswith(prefix) for prefix in settings.ROLE_GATE_PUBLIC_PREFIXES)

    def process_view(self, request, view_func, view_args, view_kwargs):
        if self.is_public(request.path):
            return None

        user = getattr(request, 'user', None)
        state = resolve_access(user)
        if user is not None and user.is_authenticated:
            self._sync_session_role(request, user)

        decision = route(state, request.path)
        if decision.admitted:
            return None
        if decision.waiting:
            response = render(request, 'auth/loading.html', status=503)
            response['Retry-After'] = '1'
            return response

        if state is AccessState.UNAUTHENTICATED and user.is_authenticated:
            # Unknown role: drop the session so sign-in does not bounce back here
            logger.warning("User %s has unknown role %r; signing out", user.username, getattr(user, 'role', None))
            logout(request)
        return redirect(decision.redirect_to)

    def _sync_session_role(self, request, user):
        role = getattr(user, 'effective_role', None)
        if request.session.get(SESSION_ROLE_KEY) != role:
            if SESSION_ROLE_KEY in request.session:
                logger.info("Role of %s changed to %s", user.username, role)
            request.session[SESSION_ROLE_KEY] = role
