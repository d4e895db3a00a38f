"""
Session-change receivers.

Sign-in and sign-out are the only session events; the role recorded here is
what the role gate compares against on later requests.
"""
import logging

from django.contrib.auth.signals import user_logged_in, user_logged_out, user_login_failed
from django.dispatch import receiver

from .middleware import SESSION_ROLE_KEY

logger = logging.getLogger(__name__)


@receiver(user_logged_in)
def handle_logged_in(sender, request, user, **kwargs):
    role = getattr(user, 'effective_role', None)
    if request is not None and hasattr(request, 'session'):
        request.session[SESSION_ROLE_KEY] = role
    logger.info("User %s signed in (role: %s)", user.username, role)


@receiver(user_logged_out)
def handle_logged_out(sender, request, user, **kwargs):
    if user is not None:
        logger.info("User %s signed out", user.username)


@receiver(user_login_failed)
def handle_login_failed(sender, credentials, request=None, **kwargs):
    logger.warning("Failed sign-in for %s", credentials.get('username', 'unknown'))
