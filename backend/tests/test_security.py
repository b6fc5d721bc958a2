from datetime import timedelta
from unittest.mock import patch
from jose import jwt
from freedomgate.core.security import TokenService, hash_password, verify_password
from freedomgate.core.timeutil import utcnow


def test_hash_is_not_plaintext_and_verifies():
    h = hash_password("Passw0rd!")
    assert h != "Passw0rd!"
    assert verify_password("Passw0rd!", h)
    assert not verify_password("wrong", h)


def test_verify_against_garbage_hash_is_false():
    assert verify_password("Passw0rd!", "not-a-bcrypt-hash") is False


def test_user_token_roundtrip():
    tokens = TokenService("secret")
    token = tokens.create_user_token(42, "a@example.com", "Alice")
    assert tokens.verify_user_token(token) == {"user_id": 42, "email": "a@example.com", "name": "Alice"}


def test_wrong_secret_returns_none():
    token = TokenService("secret").create_user_token(1, "a@example.com", "Alice")
    assert TokenService("other").verify_user_token(token) is None


def test_expired_token_returns_none():
    tokens = TokenService("secret", expire_days=7)
    past = utcnow() - timedelta(days=8)
    with patch("freedomgate.core.security.utcnow", return_value=past):
        token = tokens.create_user_token(1, "a@example.com", "Alice")
    assert tokens.verify_user_token(token) is None


def test_garbage_token_returns_none():
    assert TokenService("secret").verify_user_token("not.a.jwt") is None


def test_token_kinds_are_not_interchangeable():
    tokens = TokenService("secret")
    admin = tokens.create_admin_token(1, "ops@example.com", "Ops", "superadmin")
    user = tokens.create_user_token(1, "a@example.com", "Alice")
    assert tokens.verify_user_token(admin) is None
    assert tokens.verify_admin_token(user) is None
    assert tokens.verify_admin_token(admin)["role"] == "superadmin"


def test_token_without_kind_is_rejected():
    token = jwt.encode({"sub": "1", "email": "a@example.com", "name": "A"}, "secret", algorithm="HS256")
    assert TokenService("secret").verify_user_token(token) is None


def test_max_age_matches_lifetime():
    assert TokenService("secret", expire_days=7).max_age_seconds == 7 * 24 * 3600
