"""
Custom exceptions for the application.
"""
from typing import Any, Dict, Optional


class FictException(Exception):
    """Base exception for all Fict exceptions."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(FictException):
    """Authentication error exception."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, status_code=401)


class StorageError(FictException):
    """Storage operation error exception."""

    def __init__(self, message: str, operation: Optional[str] = None):
        details = {"operation": operation} if operation else {}
        super().__init__(message, status_code=500, details=details)


class OAuthFlowError(FictException):
    """
    A stage of the OAuth callback pipeline failed.

    Every flow error ends only the current request, with a 400 response
    carrying ``message``.
    """

    code = "oauth_error"

    def __init__(self, message: str, provider: Optional[str] = None):
        details = {"error": self.code}
        if provider:
            details["provider"] = provider
        super().__init__(message, status_code=400, details=details)


class MissingParametersError(OAuthFlowError):
    """The callback lacked its ``code`` or ``state`` query parameter."""

    code = "missing_parameters"


class InvalidStateError(OAuthFlowError):
    """The callback echoed a state this service did not issue (possible CSRF)."""

    code = "invalid_state"

    def __init__(
        self,
        message: str = "Unfamiliar state encountered. Danger: this could be a CSRF attack!",
        provider: Optional[str] = None,
    ):
        super().__init__(message, provider=provider)


class TokenExchangeError(OAuthFlowError):
    """The authorization code could not be redeemed for an access token."""

    code = "token_exchange_failed"


class ProviderAPIError(OAuthFlowError):
    """The provider's profile API could not be queried."""

    code = "provider_api_error"
