"""Referral codes and the referrer signup bonus."""

import secrets

from sqlalchemy.orm import Session

from loyalty.accounts.models import Account, credit_points
from loyalty.logging_config import get_logger

REFERRAL_CODE_LENGTH = 9
REFERRER_SIGNUP_BONUS = 10


def _generate_code(length: int = REFERRAL_CODE_LENGTH) -> str:
    """Generate a readable referral code.

    Lowercase letters and digits, avoiding confusing characters.
    """
    # Exclude confusing characters: 0, o, 1, l
    alphabet = "abcdefghijkmnpqrstuvwxyz23456789"
    return "".join(secrets.choice(alphabet) for _ in range(length))


class ReferralService:
    """Issues referral codes and credits referrers.

    All methods work inside the caller's session so that the bonus and the
    new account commit together.
    """

    def __init__(self, bonus_points: int = REFERRER_SIGNUP_BONUS, recompute_tier: bool = False):
        """Initialize referral service.

        Args:
            bonus_points: Points credited to the referrer per signup
            recompute_tier: Refresh the referrer's tier after the bonus
        """
        self.bonus_points = bonus_points
        self.recompute_tier = recompute_tier
        self.logger = get_logger(__name__)

    def new_code(self, session: Session, max_attempts: int = 10) -> str:
        """Generate a referral code no account is using yet.

        Args:
            session: Open database session
            max_attempts: Collisions tolerated before giving up

        Returns:
            Unused referral code

        Raises:
            RuntimeError: If every attempt collided
        """
        for _ in range(max_attempts):
            code = _generate_code()
            taken = session.query(Account.id).filter(Account.referral_code == code).first()
            if not taken:
                return code
        raise RuntimeError("Could not generate a unique referral code")

    def find_referrer(self, session: Session, code: str | None) -> Account | None:
        """Look up the account that owns a referral code.

        Args:
            session: Open database session
            code: Code presented at signup

        Returns:
            Referrer account or None if the code is empty or unknown
        """
        if not code:
            return None

        code = code.strip()
        if not code:
            return None

        return session.query(Account).filter(Account.referral_code == code).first()

    def credit_referrer(self, session: Session, referrer: Account, referred: Account) -> None:
        """Apply the signup bonus and record who referred the new account.

        Args:
            session: Session the new account is being created in
            referrer: Account whose code was used
            referred: Newly created account
        """
        referred.referred_by = referrer.email
        # The referrer's tier is only refreshed when explicitly configured
        session.execute(
            credit_points(referrer.id, self.bonus_points, recompute_tier=self.recompute_tier)
        )

        self.logger.info(
            "referral_bonus_applied",
            referrer_id=referrer.id,
            referred_email=referred.email,
            bonus=self.bonus_points,
        )
