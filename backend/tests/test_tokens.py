import pytest
from jose import jwt

from loyalty.auth.middleware import extract_token
from loyalty.auth.tokens import TokenIdentity, TokenService
from loyalty.errors import AuthenticationInvalid

from conftest import SECRET


@pytest.fixture
def tokens(clock):
    return TokenService(SECRET, clock=clock)


def test_issue_and_verify(tokens):
    token = tokens.issue(7, "rider@ridershare.com")
    assert tokens.verify(token) == TokenIdentity(account_id=7, email="rider@ridershare.com")


def test_expiry_is_one_hour(tokens, clock):
    token = tokens.issue(7, "rider@ridershare.com")
    claims = jwt.get_unverified_claims(token)
    assert claims["exp"] - claims["iat"] == 3600
    assert tokens.expires_in == 3600


def test_accepted_before_expiry(tokens, clock):
    token = tokens.issue(7, "rider@ridershare.com")
    clock.advance(minutes=59)
    assert tokens.verify(token).account_id == 7


def test_rejected_after_expiry(tokens, clock):
    token = tokens.issue(7, "rider@ridershare.com")
    clock.advance(minutes=61)
    with pytest.raises(AuthenticationInvalid):
        tokens.verify(token)


def test_rejects_other_secret(tokens, clock):
    other = TokenService("another_secret", clock=clock)
    with pytest.raises(AuthenticationInvalid):
        tokens.verify(other.issue(7, "rider@ridershare.com"))


def test_rejects_tampered_payload(tokens):
    header, _, signature = tokens.issue(7, "rider@ridershare.com").split(".")
    _, payload, _ = tokens.issue(8, "someone@ridershare.com").split(".")
    with pytest.raises(AuthenticationInvalid):
        tokens.verify(f"{header}.{payload}.{signature}")


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_rejects_malformed(tokens, token):
    with pytest.raises(AuthenticationInvalid):
        tokens.verify(token)


def test_rejects_missing_claims(tokens, clock):
    exp = int(clock().timestamp()) + 600
    no_sub = jwt.encode({"email": "rider@ridershare.com", "exp": exp}, SECRET, algorithm="HS256")
    no_exp = jwt.encode({"sub": "7", "email": "rider@ridershare.com"}, SECRET, algorithm="HS256")
    for token in (no_sub, no_exp):
        with pytest.raises(AuthenticationInvalid):
            tokens.verify(token)


@pytest.mark.parametrize(
    "header, expected",
    [
        ("Bearer abc.def.ghi", "abc.def.ghi"),
        ("bearer abc.def.ghi", "abc.def.ghi"),
        ("abc.def.ghi", "abc.def.ghi"),
        ("Bearer", None),
        ("Bearer   ", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_token(header, expected):
    assert extract_token(header) == expected
