"""
Role groups and permission classes for the dashboard and its API.
"""

from rest_framework.permissions import SAFE_METHODS, BasePermission

# Users and quarter writes
MANAGER_ROLES = ['admin', 'coordinator']
# Attendance, grading, reports, classrooms and students
STAFF_ROLES = ['admin', 'coordinator', 'teacher']
MEMBER_ROLES = ['admin', 'coordinator', 'teacher', 'student']


def user_role(user):
    """Role used for access checks; superusers act as admins."""
    if not user or not user.is_authenticated:
        return None
    if user.is_superuser:
        return 'admin'
    return getattr(user, 'role', None)


def is_manager(user):
    return user_role(user) in MANAGER_ROLES


def is_staff_member(user):
    return user_role(user) in STAFF_ROLES


class IsManager(BasePermission):
    """
    Allows access to admins and coordinators.
    """
    def has_permission(self, request, view):
        return is_manager(request.user)


class IsStaffMember(BasePermission):
    """
    Allows access to teachers, coordinators and admins.
    """
    def has_permission(self, request, view):
        return is_staff_member(request.user)


class IsActiveMember(BasePermission):
    """
    Allows access to every activated user; pending users are refused.
    """
    def has_permission(self, request, view):
        return user_role(request.user) in MEMBER_ROLES


class IsManagerOrReadOnly(BasePermission):
    """
    Read access for staff, write access for managers.
    """
    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return is_staff_member(request.user)
        return is_manager(request.user)
