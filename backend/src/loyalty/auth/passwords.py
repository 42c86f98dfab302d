"""Password hashing."""

from passlib.context import CryptContext

from loyalty.logging_config import get_logger

logger = get_logger(__name__)

BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """One-way salted bcrypt hashing of account passwords."""

    def __init__(self, rounds: int = 10):
        """Initialize hasher.

        Args:
            rounds: bcrypt cost factor
        """
        self.context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def _truncate_password(self, password: str) -> str:
        """Truncate password to 72 bytes (bcrypt limit)."""
        return password.encode("utf-8")[:BCRYPT_MAX_BYTES].decode("utf-8", errors="ignore")

    def hash(self, password: str) -> str:
        """Hash a password.

        Args:
            password: Plain password

        Returns:
            Hashed password
        """
        return self.context.hash(self._truncate_password(password))

    def verify(self, password: str, hashed: str) -> bool:
        """Verify a password against hash.

        Args:
            password: Plain password
            hashed: Stored hash

        Returns:
            True if matches
        """
        try:
            return self.context.verify(self._truncate_password(password), hashed)
        except (ValueError, TypeError) as e:
            # Unrecognized or corrupt hash
            logger.warning("password_hash_unusable", error=str(e))
            return False
