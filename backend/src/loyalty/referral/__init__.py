"""Referral system.

A new account that signs up with another account's code credits that account
with bonus points and records the referrer's email.
"""

from loyalty.referral.service import REFERRER_SIGNUP_BONUS, ReferralService

__all__ = ["REFERRER_SIGNUP_BONUS", "ReferralService"]
