"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from household_finance.config import AppSettings, GoogleSheetsSettings, get_settings


class TestAppSettings:
    """Tests for application settings."""

    def test_defaults(self):
        settings = AppSettings()
        assert settings.other_category_label == "Other"
        assert settings.savings_category_label == "Savings"
        assert settings.chart_padding == 10

    def test_labels_from_environment(self, monkeypatch):
        monkeypatch.setenv("OTHER_CATEGORY_LABEL", "Egyéb")
        assert AppSettings().other_category_label == "Egyéb"

    def test_padding_must_leave_room(self):
        with pytest.raises(ValidationError):
            AppSettings(chart_padding=40)

    def test_empty_label_is_rejected(self):
        with pytest.raises(ValidationError):
            AppSettings(savings_category_label="")


class TestGoogleSheetsSettings:
    """Tests for the Sheets backend settings."""

    def test_sheet_names_default(self, monkeypatch, tmp_path):
        credentials = tmp_path / "credentials.json"
        credentials.write_text("{}")
        monkeypatch.setenv("GOOGLE_SHEETS_CREDENTIALS_PATH", str(credentials))
        monkeypatch.setenv("GOOGLE_SHEETS_SPREADSHEET_ID", "sheet-1")

        settings = GoogleSheetsSettings()
        assert settings.transactions_sheet_name == "Transactions"
        assert settings.savings_snapshots_sheet_name == "SavingsSnapshots"

    def test_settings_are_cached(self):
        assert get_settings() is get_settings()
