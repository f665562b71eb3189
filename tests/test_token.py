from datetime import timedelta

import pytest
from jose import jwt

from tasktracker import config
from tasktracker.errors import InvalidToken
from tasktracker.utils.auth import create_token, hash_password, verify_password, verify_token


def test_token_round_trip():
    token = create_token(42)
    assert verify_token(token) == 42


def test_token_claims_carry_issuer_and_audience():
    claims = jwt.get_unverified_claims(create_token(7))
    assert claims["sub"] == "7"
    assert claims["iss"] == config.TOKEN_ISSUER
    assert claims["aud"] == config.TOKEN_AUDIENCE
    assert claims["exp"] > claims["iat"]


def test_default_lifetime_is_seven_days():
    claims = jwt.get_unverified_claims(create_token(1))
    assert claims["exp"] - claims["iat"] == pytest.approx(7 * 24 * 3600, abs=2)


def test_expired_token_is_rejected():
    token = create_token(1, expires_delta=timedelta(seconds=-10))
    with pytest.raises(InvalidToken) as exc:
        verify_token(token)
    assert "expired" in exc.value.message.lower()


def test_expiry_setting_is_read_at_call_time(monkeypatch):
    monkeypatch.setattr(config, "ACCESS_TOKEN_EXPIRE_MINUTES", -1)
    with pytest.raises(InvalidToken):
        verify_token(create_token(1))


def test_token_signed_with_other_secret_is_rejected():
    forged = jwt.encode(
        {"sub": "1", "iss": config.TOKEN_ISSUER, "aud": config.TOKEN_AUDIENCE, "exp": 9999999999},
        "some-other-secret",
        algorithm=config.ALGORITHM,
    )
    with pytest.raises(InvalidToken):
        verify_token(forged)


def test_token_for_other_audience_is_rejected():
    token = jwt.encode(
        {"sub": "1", "iss": config.TOKEN_ISSUER, "aud": "someone-else", "exp": 9999999999},
        config.SECRET_KEY,
        algorithm=config.ALGORITHM,
    )
    with pytest.raises(InvalidToken):
        verify_token(token)


def test_token_without_numeric_subject_is_rejected():
    token = jwt.encode(
        {"sub": "alice", "iss": config.TOKEN_ISSUER, "aud": config.TOKEN_AUDIENCE, "exp": 9999999999},
        config.SECRET_KEY,
        algorithm=config.ALGORITHM,
    )
    with pytest.raises(InvalidToken):
        verify_token(token)


@pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c"])
def test_malformed_token_is_rejected(token):
    with pytest.raises(InvalidToken):
        verify_token(token)


def test_password_hash_and_verify():
    hashed = hash_password("Secret123")
    assert hashed != "Secret123"
    assert verify_password("Secret123", hashed)
    assert not verify_password("Secret124", hashed)


def test_hash_password_rejects_more_than_72_bytes():
    with pytest.raises(ValueError, match="72 bytes"):
        hash_password("a" * 100)
