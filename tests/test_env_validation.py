"""
Tests for environment validation and the environment summary.
"""

import pytest

from core.validation import (
    detect_cloudflare,
    get_environment_summary,
    validate_cloudflare_environment,
    validate_environment,
)


@pytest.mark.parametrize(
    "storage_type, missing, overrides",
    [
        ("upstash", "UPSTASH_URL", {"upstash_url": None, "upstash_token": "tok-1234567890"}),
        ("upstash", "UPSTASH_TOKEN", {"upstash_url": "https://x.upstash.io", "upstash_token": ""}),
        ("redis", "REDIS_URL", {"redis_url": None}),
        ("d1", "D1_DATABASE_ID", {"d1_database_id": None}),
    ],
)
def test_missing_required_variable_is_error(make_settings, storage_type, missing, overrides):
    settings = make_settings(storage_type=storage_type, **overrides)

    result = validate_environment(settings)

    assert not result.valid
    assert any(missing in error for error in result.errors)


@pytest.mark.parametrize(
    "overrides",
    [
        {"storage_type": "upstash", "upstash_url": "https://x.upstash.io", "upstash_token": "tok-1234567890"},
        {"storage_type": "redis", "redis_url": "rediss://cache:6380"},
        {"storage_type": "d1", "d1_database_id": "db-1", "d1_account_id": "acc", "d1_api_token": "tok"},
        {"storage_type": "localstorage", "enable_register": False},
    ],
)
def test_complete_configuration_is_valid(make_settings, overrides):
    result = validate_environment(make_settings(**overrides))

    assert result.valid
    assert result.errors == []
    assert result.warnings == []


def test_upstash_format_problems_are_warnings(make_settings):
    settings = make_settings(
        storage_type="upstash",
        upstash_url="http://x.upstash.io",
        upstash_token="short",
    )

    result = validate_environment(settings)

    assert result.valid
    assert "UPSTASH_URL should start with https://" in result.warnings
    assert "UPSTASH_TOKEN length looks incorrect" in result.warnings


def test_redis_url_scheme_warning(make_settings):
    result = validate_environment(make_settings(redis_url="localhost:6379"))

    assert result.valid
    assert result.warnings == ["REDIS_URL should start with redis:// or rediss://"]


def test_d1_missing_api_credentials_only_warns(make_settings):
    result = validate_environment(make_settings(storage_type="d1", d1_database_id="db-1"))

    assert result.valid
    assert any("D1_ACCOUNT_ID" in w for w in result.warnings)
    assert any("D1_API_TOKEN" in w for w in result.warnings)


def test_unknown_storage_type_is_warning_only(make_settings):
    result = validate_environment(make_settings(storage_type="mongodb"))

    assert result.valid
    assert "Unknown storage type: mongodb" in result.warnings


def test_common_checks_are_warnings(make_settings):
    settings = make_settings(
        storage_type="localstorage",
        username=None,
        password="12345",
        site_name=None,
        enable_register=True,
    )

    result = validate_environment(settings)

    assert result.valid
    warnings = " | ".join(result.warnings)
    assert "USERNAME" in warnings
    assert "PASSWORD should be at least 6 characters long" in warnings
    assert "localstorage" in warnings
    assert "SITE_NAME" in warnings


def test_missing_password_is_warning(make_settings):
    result = validate_environment(make_settings(password=None))

    assert result.valid
    assert any("PASSWORD" in w for w in result.warnings)


def test_explicit_storage_type_overrides_settings(make_settings):
    settings = make_settings(storage_type="localstorage", redis_url=None)

    assert validate_environment(settings).valid
    assert not validate_environment(settings, "redis").valid


def test_each_call_returns_fresh_result(settings):
    first = validate_environment(settings)
    first.errors.append("mutated")

    assert validate_environment(settings).errors == []


def test_summary_never_contains_secret_values(make_settings):
    settings = make_settings(
        storage_type="upstash",
        upstash_url="https://x.upstash.io",
        upstash_token="super-secret-token",
        password="admin-pass",
        site_name=None,
    )

    summary = get_environment_summary(settings)

    assert summary["has_upstash_token"] is True
    assert summary["has_password"] is True
    assert summary["has_redis_url"] is False
    assert summary["site_name"] == "MoonTV"
    rendered = repr(summary)
    assert "super-secret-token" not in rendered
    assert "admin-pass" not in rendered


def test_cloudflare_detection(settings):
    assert detect_cloudflare({"cf-ray": "8a1b2c3d-AMS"})
    assert not detect_cloudflare({"user-agent": "curl"})
    assert validate_cloudflare_environment(settings, {"cf-ray": "8a1b2c3d-AMS"})
    assert not validate_cloudflare_environment(settings, {})


@pytest.mark.parametrize(
    "raw, normalized",
    [
        ("", "localstorage"),
        ("   ", "localstorage"),
        (None, "localstorage"),
        ("Redis", "redis"),
        (" UPSTASH ", "upstash"),
        ("d1", "d1"),
        ("MongoDB", "mongodb"),
    ],
)
def test_storage_type_is_normalized(make_settings, raw, normalized):
    assert make_settings(storage_type=raw).storage_type == normalized


def test_blank_storage_type_is_local_mode(make_settings):
    settings = make_settings(storage_type="", redis_url=None)

    assert settings.is_local_storage
    assert validate_environment(settings).valid


def test_mixed_case_storage_type_gets_backend_checks(make_settings):
    result = validate_environment(make_settings(storage_type="Redis", redis_url=None))

    assert not result.valid
    assert "Missing required environment variable: REDIS_URL" in result.errors
    assert not any("Unknown storage type" in w for w in result.warnings)


def test_explicit_storage_type_is_normalized(make_settings):
    settings = make_settings(storage_type="localstorage", redis_url=None)

    assert not validate_environment(settings, " REDIS ").valid
