"""Session token issuance and verification (JWT)."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from jose import JWTError, jwt

from loyalty.errors import AuthenticationInvalid
from loyalty.logging_config import get_logger

logger = get_logger(__name__)

JWT_ALGORITHM = "HS256"
JWT_EXPIRE_MINUTES = 60

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenIdentity:
    """Account identity embedded in a session token."""

    account_id: int
    email: str


class TokenService:
    """Signs and verifies time-limited bearer tokens.

    Expiry is checked against ``clock``, not the wall clock.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = JWT_ALGORITHM,
        expire_minutes: int = JWT_EXPIRE_MINUTES,
        clock: Clock = utc_now,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.lifetime = timedelta(minutes=expire_minutes)
        self.clock = clock

    @property
    def expires_in(self) -> int:
        """Token lifetime in seconds."""
        return int(self.lifetime.total_seconds())

    def issue(self, account_id: int, email: str) -> str:
        """Create a signed access token.

        Args:
            account_id: Account primary key
            email: Account email

        Returns:
            JWT token string
        """
        issued_at = self.clock()
        payload = {
            "sub": str(account_id),
            "email": email,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.lifetime).timestamp()),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode(self, token: str) -> dict[str, Any]:
        """Check signature and expiry, returning the raw claims.

        Raises:
            AuthenticationInvalid: If the token is malformed, badly signed or expired
        """
        try:
            # Expiry is evaluated below against the injected clock
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError as e:
            logger.debug("token_verification_failed", error=str(e))
            raise AuthenticationInvalid() from e

        exp = payload.get("exp")
        if not isinstance(exp, (int, float)):
            logger.debug("token_verification_failed", error="missing exp claim")
            raise AuthenticationInvalid()
        if self.clock().timestamp() >= exp:
            logger.debug("token_expired", exp=exp)
            raise AuthenticationInvalid()

        return payload

    def verify(self, token: str) -> TokenIdentity:
        """Verify a token and return the identity it carries.

        Args:
            token: JWT token string

        Returns:
            Embedded identity

        Raises:
            AuthenticationInvalid: If the token cannot be trusted
        """
        payload = self.decode(token)

        email = payload.get("email")
        try:
            account_id = int(payload.get("sub"))
        except (TypeError, ValueError) as e:
            logger.debug("token_verification_failed", error="bad sub claim")
            raise AuthenticationInvalid() from e
        if not isinstance(email, str) or not email:
            logger.debug("token_verification_failed", error="missing email claim")
            raise AuthenticationInvalid()

        return TokenIdentity(account_id=account_id, email=email)
