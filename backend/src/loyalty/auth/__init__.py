"""Authentication: password hashing, session tokens and the request gate."""

from loyalty.auth.middleware import get_current_identity
from loyalty.auth.passwords import PasswordHasher
from loyalty.auth.tokens import TokenIdentity, TokenService

__all__ = [
    "PasswordHasher",
    "TokenIdentity",
    "TokenService",
    "get_current_identity",
]
