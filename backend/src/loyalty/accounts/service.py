"""Account operations: signup, login, ride logging and the dashboard view."""

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from loyalty.accounts.models import Account, LoyaltyTier, credit_points
from loyalty.auth.passwords import PasswordHasher
from loyalty.auth.tokens import TokenIdentity, TokenService
from loyalty.errors import (
    AuthenticationInvalid,
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from loyalty.logging_config import get_logger
from loyalty.referral.service import ReferralService
from loyalty.storage.db import Database

MAX_RIDE_POINTS = 1_000_000


@dataclass(frozen=True)
class RideResult:
    """Totals after a ride was logged."""

    points: int
    tier: LoyaltyTier


@dataclass(frozen=True)
class AccountSummary:
    """Read-only projection of an account."""

    email: str
    points: int
    tier: LoyaltyTier
    referral_code: str
    referred_by: str | None = None


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


class AccountService:
    """Service for account lifecycle and points."""

    def __init__(
        self,
        db: Database,
        hasher: PasswordHasher,
        tokens: TokenService,
        referrals: ReferralService,
    ):
        self.db = db
        self.hasher = hasher
        self.tokens = tokens
        self.referrals = referrals
        self.logger = get_logger(__name__)

    # ==================== SIGNUP / LOGIN ====================

    def signup(self, email: str, password: str, referral_code: str | None = None) -> str:
        """Create an account and return a session token for it.

        Args:
            email: Account email
            password: Plain password
            referral_code: Optional code of the referring account

        Returns:
            Session token

        Raises:
            ValidationError: If email or password is missing
            ConflictError: If the email is already registered
        """
        email = normalize_email(email)
        if not email or not password:
            raise ValidationError("Email and Password are required")

        password_hash = self.hasher.hash(password)

        try:
            with self.db.session() as session:
                existing = session.query(Account.id).filter(Account.email == email).first()
                if existing:
                    raise ConflictError()

                account = Account(
                    email=email,
                    password_hash=password_hash,
                    points=0,
                    tier=LoyaltyTier.BRONZE,
                    referral_code=self.referrals.new_code(session),
                )
                session.add(account)

                referrer = self.referrals.find_referrer(session, referral_code)
                if referrer:
                    self.referrals.credit_referrer(session, referrer, account)
                elif referral_code:
                    self.logger.info("referral_code_unknown", email=email)

                session.flush()
                account_id = account.id
        except IntegrityError as e:
            # Lost a race against a concurrent signup for the same email
            if self.find_by_email(email):
                raise ConflictError() from e
            raise

        self.logger.info("account_created", account_id=account_id, referred_by=account.referred_by)
        return self.tokens.issue(account_id, email)

    def login(self, email: str, password: str) -> str:
        """Check credentials and issue a fresh session token.

        Raises:
            ValidationError: If email or password is missing
            NotFoundError: If no account has this email
            InvalidCredentialsError: If the password does not match
        """
        email = normalize_email(email)
        if not email or not password:
            raise ValidationError("Email and Password are required")

        account = self.find_by_email(email)
        if not account:
            self.logger.warning("login_failed", reason="unknown_email", email=email)
            raise NotFoundError()

        if not self.hasher.verify(password, account.password_hash):
            self.logger.warning("login_failed", reason="invalid_password", account_id=account.id)
            raise InvalidCredentialsError()

        self.logger.info("account_logged_in", account_id=account.id)
        return self.tokens.issue(account.id, account.email)

    # ==================== POINTS ====================

    def log_ride(self, identity: TokenIdentity, points: int) -> RideResult:
        """Add ride points to the account and refresh its tier.

        Args:
            identity: Authenticated identity
            points: Points earned, at least 1

        Returns:
            New points total and tier

        Raises:
            ValidationError: If points is not an integer between 1 and MAX_RIDE_POINTS
        """
        if isinstance(points, bool) or not isinstance(points, int) or not 1 <= points <= MAX_RIDE_POINTS:
            raise ValidationError("Invalid points")

        with self.db.session() as session:
            updated = session.execute(credit_points(identity.account_id, points))
            if updated.rowcount == 0:
                raise AuthenticationInvalid()

            # Same transaction, so this reads back our own increment
            row = session.execute(
                select(Account.points, Account.tier).where(Account.id == identity.account_id)
            ).one()
            result = RideResult(points=row.points, tier=row.tier)

        self.logger.info(
            "ride_logged",
            account_id=identity.account_id,
            points_added=points,
            points=result.points,
            tier=result.tier.value,
        )
        return result

    # ==================== READS ====================

    def dashboard(self, identity: TokenIdentity) -> AccountSummary:
        """Current state of the authenticated account."""
        with self.db.session() as session:
            account = session.get(Account, identity.account_id)
            if not account:
                raise AuthenticationInvalid()
            return self._summary(account)

    def find_by_email(self, email: str) -> Account | None:
        """Get account by email.

        Args:
            email: Account email

        Returns:
            Account or None
        """
        with self.db.session() as session:
            return session.query(Account).filter(
                Account.email == normalize_email(email)
            ).first()

    def summary_for_email(self, email: str) -> AccountSummary:
        """Projection of the account with this email.

        Raises:
            NotFoundError: If no account has this email
        """
        account = self.find_by_email(email)
        if not account:
            raise NotFoundError()
        return self._summary(account)

    @staticmethod
    def _summary(account: Account) -> AccountSummary:
        return AccountSummary(
            email=account.email,
            points=account.points,
            tier=account.tier,
            referral_code=account.referral_code,
            referred_by=account.referred_by,
        )
