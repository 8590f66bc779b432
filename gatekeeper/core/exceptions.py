"""Custom exception classes for the access-control core."""

from fastapi import HTTPException, status


class GatekeeperError(Exception):
    """Base exception for Gatekeeper."""

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class AuthenticationError(GatekeeperError):
    """Raised when the caller is not authenticated or credentials are invalid."""
    pass


class AuthorizationError(GatekeeperError):
    """Raised when an authenticated caller lacks a permission."""
    pass


class ResourceNotFoundError(GatekeeperError):
    """Raised when a requested resource is not found."""
    pass


class BusinessRuleViolation(GatekeeperError):
    """Raised when an operation would break a domain rule."""
    pass


class ResourceConflictError(BusinessRuleViolation):
    """Raised when a unique name, username or email is already taken."""
    pass


class SystemProtectedError(BusinessRuleViolation):
    """Raised when a system record is targeted for deletion."""
    pass


class ValidationError(GatekeeperError):
    """Raised when input validation fails."""
    pass


# HTTP exception shortcuts
def not_found(detail: str = "Resource not found") -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def forbidden(detail: str = "Access denied") -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def conflict(detail: str = "Conflict") -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


def unauthorized(detail: str = "Not authenticated", login_url: str | None = None) -> HTTPException:
    headers = {"WWW-Authenticate": "Bearer"}
    if login_url:
        headers["Location"] = login_url
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail, headers=headers)
