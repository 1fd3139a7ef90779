"""PosTL Admin exception hierarchy."""


class PostlError(Exception):
    """Base exception for all PosTL Admin errors."""

    def __init__(self, message: str = "", code: str = "POSTL_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ConfigurationError(PostlError):
    """Raised at startup when required backend settings are missing."""

    def __init__(self, message: str = "Backend configuration missing"):
        super().__init__(message, code="CONFIG")


class BackendError(PostlError):
    """Raised when the hosted backend rejects a call.

    ``message`` carries the backend's own error text so it can be shown
    to the operator unchanged.
    """

    def __init__(self, message: str = "Backend request failed", status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message, code="BACKEND")


class FormValidationError(PostlError):
    """Raised when required form fields are missing."""

    def __init__(self, message: str = "Please fill in the shop details and contract dates"):
        super().__init__(message, code="VALIDATION")


class TenantNotFoundError(PostlError):
    """Raised when a tenant id matches no stored record."""

    def __init__(self, message: str = "Tenant not found"):
        super().__init__(message, code="NOT_FOUND")


class SubmissionInProgressError(PostlError):
    """Raised when a create/edit is submitted while another is running."""

    def __init__(self, message: str = "Another submission is still in progress"):
        super().__init__(message, code="BUSY")


class ProfileLinkError(PostlError):
    """Raised when a shop was created but its owner profile could not be linked.

    The account and the shop record both exist at that point.
    """

    def __init__(self, message: str = "Shop created, but the owner profile was not linked"):
        super().__init__(message, code="PROFILE_LINK")
