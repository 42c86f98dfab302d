"""Account model and loyalty tiers."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SQLEnum, Integer, String, Update, case, func, update
from sqlalchemy.orm import Mapped, mapped_column

from loyalty.storage.db import Base

SILVER_THRESHOLD = 50
GOLD_THRESHOLD = 100


class LoyaltyTier(str, Enum):
    """Loyalty tier levels derived from points."""

    BRONZE = "Bronze"  # 0-49
    SILVER = "Silver"  # 50-99
    GOLD = "Gold"      # 100+

    @classmethod
    def from_points(cls, points: int) -> "LoyaltyTier":
        """Get tier from a points total.

        Args:
            points: Accumulated points

        Returns:
            Tier for the total
        """
        if points >= GOLD_THRESHOLD:
            return cls.GOLD
        elif points >= SILVER_THRESHOLD:
            return cls.SILVER
        else:
            return cls.BRONZE


class Account(Base):
    """Registered user of the loyalty program."""

    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Identity
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Loyalty
    points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    tier: Mapped[LoyaltyTier] = mapped_column(
        SQLEnum(LoyaltyTier, name="loyaltytier", values_callable=lambda tiers: [t.value for t in tiers]),
        default=LoyaltyTier.BRONZE,
        nullable=False,
    )

    # Referral
    referral_code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    referred_by: Mapped[str | None] = mapped_column(String(255), nullable=True)  # Referrer's email

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, email={self.email}, points={self.points}, tier={self.tier})>"


def tier_case(points):
    """SQL counterpart of ``LoyaltyTier.from_points`` for a points expression."""
    return case(
        (points >= GOLD_THRESHOLD, LoyaltyTier.GOLD.value),
        (points >= SILVER_THRESHOLD, LoyaltyTier.SILVER.value),
        else_=LoyaltyTier.BRONZE.value,
    )


def credit_points(account_id: int, amount: int, recompute_tier: bool = True) -> Update:
    """Build an atomic ``points = points + amount`` update for one account.

    The increment happens in the database, so concurrent credits never
    overwrite each other.

    Args:
        account_id: Account to credit
        amount: Points to add
        recompute_tier: Also set the tier from the new total

    Returns:
        UPDATE statement
    """
    new_total = Account.points + amount
    values = {"points": new_total}
    if recompute_tier:
        values["tier"] = tier_case(new_total)

    return (
        update(Account)
        .where(Account.id == account_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
