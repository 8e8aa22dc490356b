"""
Domain errors raised by services and rendered by the API as {"detail": ...}.
Identity/role errors are recoverable: the client retries with the right credentials.
"""


class PortalError(Exception):
    status_code: int = 400
    default_detail: str = "Request failed"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class AccountNotFound(PortalError):
    status_code = 404
    default_detail = "Account not found. Please create an account first."


class RoleMismatch(PortalError):
    status_code = 403
    default_detail = "Role mismatch for this account."


class IdentifierMismatch(PortalError):
    status_code = 403
    default_detail = "Identifier does not match this account."


class InvalidAdminKey(PortalError):
    status_code = 403
    default_detail = "Invalid admin key."


class InvalidIdentityToken(PortalError):
    status_code = 401
    default_detail = "Identity token is invalid or expired"


class PermissionDenied(PortalError):
    status_code = 403
    default_detail = "You do not have permission to perform this action"


class NotFound(PortalError):
    status_code = 404
    default_detail = "Not found"


class ValidationError(PortalError):
    """Form-level validation failure: missing field, bad file, reject without remarks, bad date range."""
    status_code = 422
    default_detail = "Invalid input"


class DuplicateRequest(PortalError):
    status_code = 409
    default_detail = "A derived-admin request is already pending for this account"


class InvalidTransition(PortalError):
    status_code = 409
    default_detail = "This action is not allowed in the current state"


class BackendUnavailable(PortalError):
    status_code = 503
    default_detail = "Backend is temporarily unavailable. Please try again."
