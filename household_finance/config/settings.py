"""
Configuration Management for the Household Finance Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated when a section is loaded.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

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

    # One worksheet per record stream
    transactions_sheet_name: str = Field(
        default="Transactions",
        description="Name of the sheet for transactions"
    )
    savings_accounts_sheet_name: str = Field(
        default="SavingsAccounts",
        description="Name of the sheet for savings accounts"
    )
    savings_snapshots_sheet_name: str = Field(
        default="SavingsSnapshots",
        description="Name of the append-only sheet for savings snapshots"
    )
    categories_sheet_name: str = Field(
        default="Categories",
        description="Name of the sheet for household custom categories"
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
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Labels used by the category breakdown
    other_category_label: str = Field(
        default="Other",
        min_length=1,
        description="Category for expenses recorded without one"
    )
    savings_category_label: str = Field(
        default="Savings",
        min_length=1,
        description="Single breakdown bucket for all saving deposits"
    )
    currency_label: str = Field(
        default="Ft",
        description="Currency suffix for formatted amounts"
    )

    # Chart geometry (viewbox units)
    trend_chart_width: int = Field(default=320, ge=10)
    trend_chart_height: int = Field(default=90, ge=10)
    savings_chart_width: int = Field(default=260, ge=10)
    savings_chart_height: int = Field(default=80, ge=10)
    chart_padding: int = Field(default=10, ge=0)

    @field_validator('chart_padding')
    @classmethod
    def validate_chart_padding(cls, v: int) -> int:
        """Padding must leave room for the plot in the smallest chart."""
        if v * 2 >= 80:
            raise ValueError("Chart padding leaves no room for the plot")
        return v


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

    # Note: These are loaded lazily to allow partial configuration

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

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
