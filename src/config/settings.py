"""
Configuration Management for the Ledger Reconciler

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Reconciliation engine defaults (limits, fallbacks, sane period range)."""

    model_config = SettingsConfigDict(
        env_prefix="ENGINE_",
        extra="ignore"
    )

    recent_transactions_limit: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Default number of rows in the recent transactions view"
    )
    top_categories_limit: Optional[int] = Field(
        default=None,
        ge=1,
        description="Truncate the category breakdown to this many rows (None = all)"
    )

    # Requested periods outside this range are rejected
    min_year: int = Field(
        default=1900,
        ge=1,
        description="Earliest year accepted for a period"
    )
    max_year: int = Field(
        default=2200,
        le=9998,
        description="Latest year accepted for a period"
    )

    # Presentation fallbacks carried on result rows
    default_category_icon: str = Field(
        default="📦",
        description="Icon used for budget rows whose category has no emoji"
    )
    default_category_color: str = Field(
        default="#4CAF50",
        description="Color used for rows whose category has no color"
    )
    uncategorized_label: str = Field(
        default="Uncategorized",
        description="Label for transactions whose category cannot be resolved"
    )
    uncategorized_icon: str = Field(
        default="📝",
        description="Icon for transactions whose category cannot be resolved"
    )

    @model_validator(mode='after')
    def validate_year_range(self) -> 'EngineSettings':
        if self.min_year > self.max_year:
            raise ValueError("min_year must be <= max_year")
        return self


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets ledger storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    accounts_sheet_name: str = Field(
        default="Accounts",
        description="Name of the sheet for accounts"
    )
    categories_sheet_name: str = Field(
        default="Categories",
        description="Name of the sheet for categories"
    )
    transactions_sheet_name: str = Field(
        default="Transactions",
        description="Name of the sheet for transactions"
    )
    budgets_sheet_name: str = Field(
        default="Budgets",
        description="Name of the sheet for budgets"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment, attached to the startup log"
    )
    debug_mode: bool = Field(
        default=False,
        description="Force DEBUG logging regardless of log_level"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Log level for the stdlib handler behind structlog"
    )

    storage_backend: str = Field(
        default="memory",
        pattern="^(memory|google_sheets)$",
        description="Which ledger store backend to build"
    )

    @property
    def effective_log_level(self) -> str:
        """Debug mode overrides the configured log level."""
        return "DEBUG" if self.debug_mode else self.log_level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def engine(self) -> EngineSettings:
        return EngineSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    sections = {
        "engine": lambda: settings.engine,
        "google_sheets": lambda: settings.google_sheets,
        "app": lambda: settings.app,
    }
    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
