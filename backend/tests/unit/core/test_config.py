"""Unit tests for environment-driven configuration helpers."""

from __future__ import annotations

import pytest

from tokenstore.core.config import (
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    env_bool,
    env_int,
    get_config,
)


@pytest.mark.parametrize("raw", ["1", "true", "YES", " on "])
def test_env_bool_truthy(monkeypatch, raw):
    monkeypatch.setenv("FLAG_UNDER_TEST", raw)
    assert env_bool("FLAG_UNDER_TEST") is True


def test_env_bool_default_when_unset(monkeypatch):
    monkeypatch.delenv("FLAG_UNDER_TEST", raising=False)
    assert env_bool("FLAG_UNDER_TEST", True) is True
    monkeypatch.setenv("FLAG_UNDER_TEST", "nope")
    assert env_bool("FLAG_UNDER_TEST", True) is False


def test_env_int(monkeypatch):
    monkeypatch.setenv("TTL_UNDER_TEST", " 90 ")
    assert env_int("TTL_UNDER_TEST", 5) == 90

    monkeypatch.setenv("TTL_UNDER_TEST", "")
    assert env_int("TTL_UNDER_TEST", 5) == 5

    monkeypatch.setenv("TTL_UNDER_TEST", "ninety")
    with pytest.raises(ValueError, match="TTL_UNDER_TEST"):
        env_int("TTL_UNDER_TEST", 5)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("development", DevelopmentConfig),
        ("Testing", TestingConfig),
        ("production", ProductionConfig),
        ("staging", DevelopmentConfig),
    ],
)
def test_get_config_by_app_env(monkeypatch, name, expected):
    monkeypatch.setenv("APP_ENV", name)
    assert get_config() is expected


def test_production_never_allows_weak_fallback():
    assert ProductionConfig.TOKEN_ID_ALLOW_WEAK_FALLBACK is False
