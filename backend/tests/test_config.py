# ruff: noqa: INP001

from __future__ import annotations

import pytest
from pydantic import ValidationError

from trellone.core.config import Settings

STRONG_SECRET = "prod-secret-value-that-is-long-enough-0123456789"


def _settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "environment": "prod",
        "jwt_secret_access_token": STRONG_SECRET,
        "jwt_secret_invite_token": STRONG_SECRET + "-invite",
        "_env_file": None,
    }
    values.update(overrides)
    return Settings(**values)  # type: ignore[arg-type]


def test_production_accepts_strong_secrets() -> None:
    settings = _settings()

    assert settings.environment == "prod"
    assert settings.db_auto_migrate is False


@pytest.mark.parametrize(
    "secret",
    ["short", "change-me", "dev-access-token-secret-change-me-0123456789"],
)
def test_production_rejects_weak_access_secret(secret: str) -> None:
    with pytest.raises(ValidationError, match="JWT_SECRET_ACCESS_TOKEN"):
        _settings(jwt_secret_access_token=secret)


def test_production_rejects_weak_invite_secret() -> None:
    with pytest.raises(ValidationError, match="JWT_SECRET_INVITE_TOKEN"):
        _settings(jwt_secret_invite_token="secret")


def test_dev_allows_placeholder_secrets_and_enables_auto_migrate() -> None:
    settings = Settings(
        environment="dev",
        jwt_secret_access_token="change-me",
        _env_file=None,  # type: ignore[call-arg]
    )

    assert settings.db_auto_migrate is True


def test_dev_respects_explicit_auto_migrate_opt_out() -> None:
    settings = Settings(
        environment="dev",
        db_auto_migrate=False,
        _env_file=None,  # type: ignore[call-arg]
    )

    assert settings.db_auto_migrate is False
