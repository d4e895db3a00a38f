"""
Linking Student and Teacher profiles to user accounts.
"""
import logging

from django.db import transaction

from .exceptions import ProfileRegistrationError

logger = logging.getLogger(__name__)

PROFILE_KINDS = {
    'student': 'student_profile',
    'teacher': 'teacher_profile',
}


def check_registrable(user, kind):
    """Raise ProfileRegistrationError unless ``user`` may get a ``kind`` profile."""
    if kind not in PROFILE_KINDS:
        raise ProfileRegistrationError(f"Unknown profile kind '{kind}'.")
    if user.role == 'pending':
        raise ProfileRegistrationError(f"{user.username} has not been assigned a role yet.")
    if user.role != kind:
        raise ProfileRegistrationError(f"{user.username} is a {user.role}, not a {kind}.")
    if hasattr(user, PROFILE_KINDS[kind]):
        raise ProfileRegistrationError(f"{user.username} already has a {kind} profile.")


def register_profile(user, form, kind):
    """Save a StudentForm/TeacherForm as the profile of ``user``."""
    check_registrable(user, kind)
    with transaction.atomic():
        profile = form.save(commit=False)
        profile.user = user
        profile.save()
    logger.info("Registered %s profile %s for user %s", kind, profile.pk, user.username)
    return profile
