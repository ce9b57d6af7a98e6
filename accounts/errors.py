from django.core.exceptions import PermissionDenied
from django.http import Http404


class PortalError(Exception):
    """Base class for failures raised by the portal services."""

    default_message = "Something went wrong"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConflictError(PortalError):
    default_message = "Record already exists"


class AuthenticationRequired(PortalError):
    default_message = "Please log in to continue"


class PendingApproval(PortalError):
    default_message = "Your account is pending admin approval"


class AuthorizationDenied(PortalError, PermissionDenied):
    default_message = "Access denied"


class NotFound(PortalError, Http404):
    default_message = "Not found"


class DependencyFailure(PortalError):
    default_message = "The operation could not be completed, please try again"
