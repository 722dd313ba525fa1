"""Exception types raised by CivicFix services."""


class CivicFixError(Exception):
    """Base error for the service."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationError(CivicFixError):
    """Invalid credentials, unconfirmed email or an unusable token."""
    status_code = 401


class AuthorizationError(CivicFixError):
    """Authenticated user lacks the role an action needs."""
    status_code = 403


class RemoteOperationError(CivicFixError):
    """Insert, update or upload rejected by Supabase."""
    status_code = 502


class RedirectRequired(Exception):
    """Raised by the session guard to send the browser elsewhere."""

    def __init__(self, location: str):
        super().__init__(location)
        self.location = location
