"""Loyalty accounts: the account record and tiers."""

from loyalty.accounts.models import Account, LoyaltyTier

__all__ = ["Account", "LoyaltyTier"]
