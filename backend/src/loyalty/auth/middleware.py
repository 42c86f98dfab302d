"""Authentication gate for FastAPI routes."""

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader

from loyalty.auth.tokens import TokenIdentity, TokenService
from loyalty.errors import AuthenticationMissing
from loyalty.logging_config import get_logger

logger = get_logger(__name__)

# Security scheme. Clients send either "Bearer <token>" or the bare token.
authorization_header = APIKeyHeader(name="Authorization", auto_error=False)


def extract_token(header_value: str | None) -> str | None:
    """Pull the token out of an Authorization header value.

    Args:
        header_value: Raw header value

    Returns:
        Token string or None if the header carries nothing
    """
    if not header_value:
        return None

    value = header_value.strip()
    scheme, _, rest = value.partition(" ")
    if scheme.lower() == "bearer":
        value = rest.strip()

    return value or None


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_current_identity(
    request: Request,
    authorization: str | None = Depends(authorization_header),
    token_service: TokenService = Depends(get_token_service),
) -> TokenIdentity:
    """Require a valid session token.

    Args:
        request: FastAPI request
        authorization: Authorization header
        token_service: Token verifier

    Returns:
        Identity embedded in the token

    Raises:
        AuthenticationMissing: 401 if no token was sent
        AuthenticationInvalid: 403 if the token is invalid or expired
    """
    token = extract_token(authorization)
    if not token:
        logger.debug("auth_token_missing", path=request.url.path)
        raise AuthenticationMissing()

    return token_service.verify(token)
