"""
Domain errors raised by the academics services.

Views convert these into ``messages.error`` + redirect, API views into a
400 response with an ``error`` key.
"""


class DashboardError(Exception):
    """Base class for errors a user can fix by changing their input."""


class NoActiveQuarter(DashboardError):
    def __init__(self, message="No active quarter. Activate a quarter first."):
        super().__init__(message)


class InvalidClassDate(DashboardError):
    pass


class InvalidAttendanceStatus(DashboardError):
    pass


class ProfileRegistrationError(DashboardError):
    pass
