import threading

import pytest
from fastapi.testclient import TestClient

from loyalty.accounts.models import LoyaltyTier
from loyalty.api.main import create_app

from conftest import auth, signup


def referral_code_of(client, token):
    return client.get("/dashboard", headers=auth(token)).json()["referralCode"]


def test_referral_credits_referrer(client, token, accounts):
    code = referral_code_of(client, token)

    res = signup(client, "friend@ridershare.com", referral_code=code)
    assert res.status_code == 201

    referrer = accounts.find_by_email("rider@ridershare.com")
    friend = accounts.find_by_email("friend@ridershare.com")
    assert referrer.points == 10
    assert friend.referred_by == "rider@ridershare.com"
    assert friend.points == 0


def test_referral_bonus_accumulates(client, token, accounts):
    code = referral_code_of(client, token)
    for i in range(3):
        signup(client, f"friend{i}@ridershare.com", referral_code=code)
    assert accounts.find_by_email("rider@ridershare.com").points == 30


def test_unknown_referral_code(client, token, accounts):
    res = signup(client, "friend@ridershare.com", referral_code="nosuchcode")
    assert res.status_code == 201

    assert accounts.find_by_email("friend@ridershare.com").referred_by is None
    assert accounts.find_by_email("rider@ridershare.com").points == 0


@pytest.mark.parametrize("code", ["", "   "])
def test_blank_referral_code_is_ignored(client, token, accounts, code):
    res = signup(client, "friend@ridershare.com", referral_code=code)
    assert res.status_code == 201
    assert accounts.find_by_email("friend@ridershare.com").referred_by is None


def test_duplicate_signup_does_not_credit_referrer(client, token, accounts):
    code = referral_code_of(client, token)
    signup(client, "friend@ridershare.com", referral_code=code)

    res = signup(client, "friend@ridershare.com", referral_code=code)
    assert res.status_code == 400
    assert accounts.find_by_email("rider@ridershare.com").points == 10


def test_referral_bonus_leaves_tier_by_default(client, token, accounts):
    client.post("/logRide", json={"points": 45}, headers=auth(token))
    code = referral_code_of(client, token)

    signup(client, "friend@ridershare.com", referral_code=code)

    referrer = accounts.find_by_email("rider@ridershare.com")
    assert referrer.points == 55
    assert referrer.tier is LoyaltyTier.BRONZE

    # The next ride brings the tier back in line
    res = client.post("/logRide", json={"points": 1}, headers=auth(token))
    assert res.json() == {"points": 56, "tier": "Silver"}


def test_referral_bonus_can_recompute_tier(settings, clock):
    settings = settings.model_copy(update={"referral_bonus_recomputes_tier": True, "referral_bonus_points": 50})
    app = create_app(settings, clock=clock)

    with TestClient(app) as client:
        token = signup(client, "rider@ridershare.com").json()["token"]
        code = referral_code_of(client, token)
        signup(client, "friend@ridershare.com", referral_code=code)

        res = client.get("/dashboard", headers=auth(token))
        assert res.json()["points"] == 50
        assert res.json()["tier"] == "Silver"


def test_concurrent_referrals_are_all_credited(client, token, accounts):
    code = referral_code_of(client, token)
    errors = []

    def refer(i):
        try:
            accounts.signup(f"friend{i}@ridershare.com", "pw", referral_code=code)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=refer, args=(i,)) for i in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert accounts.find_by_email("rider@ridershare.com").points == 60
