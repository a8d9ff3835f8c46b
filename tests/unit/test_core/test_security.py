"""Tests for the token codec and password hashing."""

import uuid
from datetime import UTC, datetime, timedelta

import jwt as pyjwt
import pytest

from ems_api.core.config import Settings
from ems_api.core.security import (
    InvalidSignature,
    MalformedToken,
    TokenCodec,
    TokenExpired,
    hash_password,
    verify_password,
)


class TestTokenCodec:
    """Tests for TokenCodec issue/verify."""

    def test_round_trip_returns_subject(self, codec: TokenCodec) -> None:
        for subject in (str(uuid.uuid4()), "user@domain.com", "42"):
            claims = codec.verify(codec.issue(subject))
            assert claims.subject_id == subject

    def test_issued_at_is_embedded(self, codec: TokenCodec) -> None:
        issued = datetime(2026, 1, 15, 9, 30, 12, 500_000, tzinfo=UTC)
        with pytest.raises(TokenExpired):
            # An hour-long lifetime starting in January has long passed.
            codec.verify(codec.issue("abc", now=issued))

        recent = datetime.now(UTC).replace(microsecond=0) - timedelta(minutes=5)
        claims = codec.verify(codec.issue("abc", now=recent))
        assert claims.issued_at == recent

    def test_expired_token_rejected(self, codec: TokenCodec) -> None:
        token = codec.issue("abc", now=datetime.now(UTC) - timedelta(hours=2))
        with pytest.raises(TokenExpired):
            codec.verify(token)

    def test_wrong_secret_rejected(self, codec: TokenCodec, settings: Settings) -> None:
        other = TokenCodec(settings.model_copy(update={"jwt_secret_key": "another-secret-key-of-enough-length!"}))
        with pytest.raises(InvalidSignature):
            codec.verify(other.issue("abc"))

    def test_tampered_payload_rejected(self, codec: TokenCodec) -> None:
        header, _payload, signature = codec.issue("abc").split(".")
        forged_payload = pyjwt.utils.base64url_encode(b'{"sub":"admin","iat":1,"exp":9999999999}').decode()
        with pytest.raises(InvalidSignature):
            codec.verify(f"{header}.{forged_payload}.{signature}")

    @pytest.mark.parametrize("token", ["", "not-a-token", "not.a.valid.token.at.all"])
    def test_malformed_token_rejected(self, codec: TokenCodec, token: str) -> None:
        with pytest.raises(MalformedToken):
            codec.verify(token)

    def test_missing_subject_rejected(self, codec: TokenCodec, settings: Settings) -> None:
        now = datetime.now(UTC)
        token = pyjwt.encode(
            {"iat": now, "exp": now + timedelta(minutes=5)},
            settings.jwt_secret_key,
            algorithm="HS256",
        )
        with pytest.raises(MalformedToken):
            codec.verify(token)

    def test_missing_issued_at_rejected(self, codec: TokenCodec, settings: Settings) -> None:
        token = pyjwt.encode(
            {"sub": "abc", "exp": datetime.now(UTC) + timedelta(minutes=5)},
            settings.jwt_secret_key,
            algorithm="HS256",
        )
        with pytest.raises(MalformedToken):
            codec.verify(token)

    def test_other_algorithm_rejected(self, codec: TokenCodec, settings: Settings) -> None:
        now = datetime.now(UTC)
        token = pyjwt.encode(
            {"sub": "abc", "iat": now, "exp": now + timedelta(minutes=5)},
            settings.jwt_secret_key,
            algorithm="HS512",
        )
        with pytest.raises(MalformedToken):
            codec.verify(token)

    def test_lifetime_from_settings(self, codec: TokenCodec) -> None:
        assert codec.lifetime == timedelta(minutes=60)


class TestPasswordHashing:
    """Tests for password hashing and verification."""

    def test_hash_is_not_plaintext(self) -> None:
        assert hash_password("admin123") != "admin123"

    def test_verify_correct_password(self) -> None:
        hashed = hash_password("admin123")
        assert verify_password("admin123", hashed) is True

    def test_verify_wrong_password(self) -> None:
        hashed = hash_password("admin123")
        assert verify_password("admin124", hashed) is False

    def test_same_password_produces_different_hashes(self) -> None:
        """Bcrypt uses a random salt."""
        assert hash_password("hr123") != hash_password("hr123")
