"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from ems_api.core.config import Settings

_SECRET = "a-secret-key-that-is-at-least-32-chars"


def _settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "_env_file": None,
        "database_url": "sqlite+aiosqlite:///:memory:",
        "jwt_secret_key": _SECRET,
    }
    values.update(overrides)
    return Settings(**values)  # type: ignore[arg-type]


class TestSettings:
    """Tests for Settings defaults and validation."""

    def test_defaults(self) -> None:
        settings = _settings()
        assert settings.jwt_algorithm == "HS256"
        assert settings.jwt_access_token_expire_minutes == 60 * 24 * 7
        assert settings.api_prefix == "/api"
        assert settings.seed_on_startup is False
        assert settings.seed_admin_email == "admin@company.com"
        assert settings.seed_hr_email == "hr@company.com"

    def test_short_secret_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _settings(jwt_secret_key="too-short")

    def test_asymmetric_algorithm_rejected(self) -> None:
        with pytest.raises(ValidationError, match="symmetric"):
            _settings(jwt_algorithm="RS256")

    def test_algorithm_uppercased(self) -> None:
        assert _settings(jwt_algorithm="hs512").jwt_algorithm == "HS512"

    def test_non_positive_lifetime_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _settings(jwt_access_token_expire_minutes=0)

    def test_cors_origin_list(self) -> None:
        settings = _settings(cors_origins=" http://a.example , ,http://b.example")
        assert settings.cors_origin_list == ["http://a.example", "http://b.example"]
        assert _settings().cors_origin_list == []

    def test_trusted_proxy_header_list(self) -> None:
        assert _settings().trusted_proxy_header_list == []
        configured = _settings(trusted_proxy_headers="X-Forwarded-For, X-Real-IP")
        assert configured.trusted_proxy_header_list == ["X-Forwarded-For", "X-Real-IP"]

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db/ems")
        monkeypatch.setenv("JWT_SECRET_KEY", _SECRET)
        monkeypatch.setenv("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", "15")
        settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert settings.database_url == "postgresql+asyncpg://u:p@db/ems"
        assert settings.jwt_access_token_expire_minutes == 15

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("/api", "/api"), ("api/", "/api"), ("/v2/api/", "/v2/api"), ("/", "")],
    )
    def test_api_prefix_normalized(self, raw: str, expected: str) -> None:
        assert _settings(api_prefix=raw).api_prefix == expected
