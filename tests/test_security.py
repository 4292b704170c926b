"""Token and password helpers."""

from passport_posts_api.app.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


def test_token_round_trip():
    token = create_access_token({"sub": "42"})
    payload = decode_access_token(token)
    assert payload["sub"] == "42"
    assert payload["exp"] > 0


def test_tampered_and_expired_tokens_are_rejected():
    token = create_access_token({"sub": "42"})
    header, payload, signature = token.split(".")
    forged = create_access_token({"sub": "1"}).split(".")[1]

    assert decode_access_token(f"{header}.{forged}.{signature}") is None
    assert decode_access_token("garbage") is None
    assert decode_access_token(create_access_token({"sub": "42"}, expires_delta=-10)) is None


def test_password_hashing():
    hashed = hash_password("secret123")
    assert "$" in hashed
    assert hashed != hash_password("secret123")
    assert verify_password("secret123", hashed)
    assert not verify_password("secret124", hashed)
    assert not verify_password("", hashed)
    assert not verify_password("secret123", "not-a-hash")
