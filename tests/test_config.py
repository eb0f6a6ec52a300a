"""Environment-driven settings."""

import pytest

from contribution_review.config import (
    AppConfig,
    CosmosConfig,
    ReviewConfig,
    ServiceBusConfig,
    StorageConfig,
    _env,
    _env_int,
    load_settings,
)

_REVIEW_KEYS = (
    "REVIEW_CURRENCY",
    "REVIEW_MAX_EVIDENCE_BYTES",
    "REVIEW_PAGE_SIZE",
    "REVIEW_SEARCH_DEBOUNCE_MS",
)


@pytest.fixture
def clean_env(monkeypatch):
    for key in (
        *_REVIEW_KEYS,
        "APP_ENV",
        "COSMOS_DATABASE",
        "AZURE_STORAGE_CONTAINER",
        "AZURE_SERVICEBUS_TOPIC",
    ):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_env_prefers_the_environment(clean_env) -> None:
    clean_env.setenv("REVIEW_CURRENCY", "USD")
    assert _env("REVIEW_CURRENCY", "EGP") == "USD"
    assert _env("APP_ENV", "development") == "development"


@pytest.mark.parametrize(("raw", "expected"), [("", 7), ("many", 7), ("12", 12)])
def test_env_int(clean_env, raw, expected) -> None:
    clean_env.setenv("REVIEW_PAGE_SIZE", raw)
    assert _env_int("REVIEW_PAGE_SIZE", 7) == expected


@pytest.mark.parametrize(("env", "development"), [("development", True), ("staging", False)])
def test_development_mode_follows_app_env(clean_env, env, development) -> None:
    clean_env.setenv("APP_ENV", env)
    assert AppConfig().is_development is development


def test_cosmos_database_has_a_default(clean_env) -> None:
    clean_env.setenv("COSMOS_ENDPOINT", "http://localhost:8081")
    cosmos = CosmosConfig()
    assert (cosmos.endpoint, cosmos.database) == ("http://localhost:8081", "contribution-review")


def test_evidence_container_and_topic_defaults(clean_env) -> None:
    assert StorageConfig().container == "contributions"
    assert ServiceBusConfig().topic_name == "contribution-events"


def test_review_tunables(clean_env) -> None:
    review = ReviewConfig()
    assert review.currency == "EGP"
    assert review.max_evidence_bytes == 5 * 1024 * 1024
    assert review.page_size == 10
    assert review.search_debounce_ms == 300

    clean_env.setenv("REVIEW_SEARCH_DEBOUNCE_MS", "50")
    assert ReviewConfig().search_debounce_ms == 50


def test_load_settings_builds_every_section(clean_env) -> None:
    clean_env.setattr("contribution_review.config.load_dotenv", lambda: None)
    clean_env.setenv("APP_ENV", "production")
    clean_env.setenv("REVIEW_CURRENCY", "USD")
    settings = load_settings()
    assert settings.review.currency == "USD"
    assert settings.app.is_development is False
    assert settings.storage.container == "contributions"
