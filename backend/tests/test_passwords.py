import pytest

from loyalty.auth.passwords import PasswordHasher


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


def test_hash_is_salted_and_not_the_password(hasher):
    first = hasher.hash("hunter2")
    second = hasher.hash("hunter2")
    assert "hunter2" not in first
    assert first != second
    assert first.startswith("$2b$04$")


def test_verify(hasher):
    hashed = hasher.hash("hunter2")
    assert hasher.verify("hunter2", hashed)
    assert not hasher.verify("hunter3", hashed)


def test_verify_unusable_hash_is_false(hasher):
    assert not hasher.verify("hunter2", "not-a-bcrypt-hash")


def test_long_passwords_use_first_72_bytes(hasher):
    password = "x" * 72
    hashed = hasher.hash(password + "tail")
    assert hasher.verify(password, hashed)
