"""Error taxonomy shared by services and API routes.

Services raise these; the handlers registered in ``app.main`` turn them into
``{"error": message}`` responses with the matching status code.
"""
from typing import Any, Optional


class DealerSeoError(Exception):
    """Base exception for Dealer SEO Hub."""

    status_code = 500

    def __init__(self, message: str = "Internal server error", details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(DealerSeoError):
    """Malformed input."""
    status_code = 400


class AuthenticationError(DealerSeoError):
    """Missing or invalid credentials."""
    status_code = 401


class AuthorizationError(DealerSeoError):
    """Caller's role or tenant does not permit the operation."""
    status_code = 403


class NotFoundError(DealerSeoError):
    """Referenced request, dealership, agency or user does not exist."""
    status_code = 404


class StateConflictError(DealerSeoError):
    """Operation not allowed in the record's current state."""
    status_code = 400


class QuotaExceededError(DealerSeoError):
    """Package quota for the billing period is used up."""
    status_code = 400
