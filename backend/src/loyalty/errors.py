"""Error kinds raised by the loyalty service.

Each error carries the HTTP status it maps to; the API layer turns them into
``{"detail": message}`` responses.
"""


class LoyaltyError(Exception):
    """Base class for expected, client-facing failures."""

    status_code: int = 400
    default_message: str = "Bad request"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(LoyaltyError):
    """Missing or invalid input fields."""
    default_message = "Invalid input"


class NotFoundError(LoyaltyError):
    """Unknown email at login."""
    default_message = "User not found"


class ConflictError(LoyaltyError):
    """Email already registered."""
    default_message = "User already exists"


class InvalidCredentialsError(LoyaltyError):
    """Password does not match the stored hash."""
    default_message = "Invalid password"


class AuthenticationMissing(LoyaltyError):
    """No session token on a protected request."""
    status_code = 401
    default_message = "Access denied"


class AuthenticationInvalid(LoyaltyError):
    """Session token is malformed, tampered with or expired."""
    status_code = 403
    default_message = "Invalid token"
