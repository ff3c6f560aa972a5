"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from environment variables (12-factor app)
  - Fall back to .env file
  - Validate types and constraints at startup

Only AppSettings is a BaseSettings instance. Sub-settings are plain
BaseModel classes populated by AppSettings via env_nested_delimiter="__",
so the env var STORE__PATH maps to store.path, FEEDS__KINTO_URL maps to
feeds.kinto_url, etc.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from revocation_audit.domain.models import ComparisonMode

# Resolve the .env file relative to the project root (two levels above this file),
# so settings load correctly regardless of the working directory at runtime.
_ENV_FILE = Path(__file__).parent.parent.parent / ".env"

KINTO_ONECRL_URL = (
    "https://firefox.settings.services.mozilla.com/v1/buckets/security-state/collections/onecrl/records"
)
CCADB_REVOKED_INTERMEDIATES_URL = (
    "https://ccadb.my.salesforce-sites.com/mozilla/PublicIntermediateCertsRevokedWithPEMCSV"
)


class StoreSettings(BaseModel):
    """Location and geometry of the LMDB environment holding cert_storage."""

    path: Path = Field(description="Directory of the LMDB environment (e.g. <profile>/security_state)")
    table: str = Field(default="cert_storage", min_length=1, description="Named database to read")
    map_size: int = Field(default=16777216, ge=4096, description="LMDB map size in bytes")
    max_dbs: int = Field(default=2, ge=1, description="Maximum named databases in the environment")


class FeedSettings(BaseModel):
    """Remote feed endpoints. revocations.txt has no public default."""

    kinto_url: str = Field(default=KINTO_ONECRL_URL, description="Kinto OneCRL records endpoint")
    revocations_url: str | None = Field(default=None, description="revocations.txt URL")
    ccadb_url: str = Field(
        default=CCADB_REVOKED_INTERMEDIATES_URL,
        description="CCADB revoked intermediates CSV report",
    )


class AppSettings(BaseSettings):
    """
    Root application settings — aggregates all sub-settings.

    Load order (highest priority first):
      1. Environment variables
      2. .env file
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    store: StoreSettings
    feeds: FeedSettings = Field(default_factory=lambda: FeedSettings())

    mode: ComparisonMode = Field(default=ComparisonMode.KINTO)
    quarantine_malformed: bool = Field(default=False)
    http_timeout_seconds: int = Field(default=60, ge=1)
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.strip().upper()

    @model_validator(mode="after")
    def require_feeds_for_mode(self) -> AppSettings:
        """three_way compares against revocations.txt, which has no default URL."""
        if self.mode is ComparisonMode.THREE_WAY and not self.feeds.revocations_url:
            raise ValueError("mode=three_way requires FEEDS__REVOCATIONS_URL")
        return self
