"""Environment-driven configuration for the contribution review service."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

_DEFAULT_MAX_EVIDENCE_BYTES = 5 * 1024 * 1024


def _env(key: str, default: str = "") -> str:
    """Read an environment variable, falling back to ``default``."""
    return os.environ.get(key, default)


def _env_int(key: str, default: int) -> int:
    raw = _env(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class CosmosConfig:
    endpoint: str = field(default_factory=lambda: _env("COSMOS_ENDPOINT"))
    key: str = field(default_factory=lambda: _env("COSMOS_KEY"))
    database: str = field(default_factory=lambda: _env("COSMOS_DATABASE", "contribution-review"))


@dataclass(frozen=True)
class StorageConfig:
    """Blob storage for payment evidence.

    A connection string wins over an account URL. The account URL is used with
    ``DefaultAzureCredential`` in deployed environments.
    """

    connection_string: str = field(default_factory=lambda: _env("AZURE_STORAGE_CONNECTION_STRING"))
    account_url: str = field(default_factory=lambda: _env("AZURE_STORAGE_ACCOUNT_URL"))
    container: str = field(default_factory=lambda: _env("AZURE_STORAGE_CONTAINER", "contributions"))


@dataclass(frozen=True)
class ServiceBusConfig:
    connection_string: str = field(default_factory=lambda: _env("AZURE_SERVICEBUS_CONNECTION_STRING"))
    topic_name: str = field(default_factory=lambda: _env("AZURE_SERVICEBUS_TOPIC", "contribution-events"))


@dataclass(frozen=True)
class MonitorConfig:
    connection_string: str = field(default_factory=lambda: _env("APPLICATIONINSIGHTS_CONNECTION_STRING"))


@dataclass(frozen=True)
class ReviewConfig:
    """Tunables for the review workflow."""

    currency: str = field(default_factory=lambda: _env("REVIEW_CURRENCY", "EGP"))
    max_evidence_bytes: int = field(
        default_factory=lambda: _env_int("REVIEW_MAX_EVIDENCE_BYTES", _DEFAULT_MAX_EVIDENCE_BYTES)
    )
    page_size: int = field(default_factory=lambda: _env_int("REVIEW_PAGE_SIZE", 10))
    search_debounce_ms: int = field(default_factory=lambda: _env_int("REVIEW_SEARCH_DEBOUNCE_MS", 300))


@dataclass(frozen=True)
class AppConfig:
    env: str = field(default_factory=lambda: _env("APP_ENV", "development"))
    secret_key: str = field(default_factory=lambda: _env("APP_SECRET_KEY"))
    log_level: str = field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))

    @property
    def is_development(self) -> bool:
        return self.env == "development"


@dataclass(frozen=True)
class Settings:
    cosmos: CosmosConfig = field(default_factory=CosmosConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    servicebus: ServiceBusConfig = field(default_factory=ServiceBusConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    review: ReviewConfig = field(default_factory=ReviewConfig)
    app: AppConfig = field(default_factory=AppConfig)


def load_settings() -> Settings:
    """Load ``.env`` (if present) and build the settings tree."""
    load_dotenv()
    return Settings()
