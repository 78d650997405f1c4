"""Tests for component wiring."""

import logging
from decimal import Decimal

import pytest

from src.config import AppSettings, validate_all_settings
from src.engine import ReconciliationService
from src.orchestrator import create_app_components
from src.services.storage import InMemoryLedgerStore
from tests.factories import account_rows, category_rows, transaction_rows


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in [
        "STORAGE_BACKEND",
        "GOOGLE_SHEETS_CREDENTIALS_PATH",
        "GOOGLE_SHEETS_SPREADSHEET_ID",
        "DEBUG_MODE",
        "LOG_LEVEL",
        "APP_ENVIRONMENT",
    ]:
        monkeypatch.delenv(name, raising=False)


class TestCreateAppComponents:
    """Tests for the component factory."""

    def test_memory_backend_by_default(self):
        """Test the default backend is in-memory."""
        service, store, sheets_client = create_app_components()

        assert isinstance(service, ReconciliationService)
        assert isinstance(store, InMemoryLedgerStore)
        assert sheets_client is None

    def test_unconfigured_sheets_falls_back_to_memory(self, monkeypatch):
        """Test missing Sheets settings do not fail startup."""
        monkeypatch.setenv("STORAGE_BACKEND", "google_sheets")
        _, store, sheets_client = create_app_components()

        assert isinstance(store, InMemoryLedgerStore)
        assert sheets_client is None

    @pytest.mark.asyncio
    async def test_components_answer_reads(self):
        """Test the wired service reads the wired store."""
        service, store, _ = create_app_components(use_storage=False)
        store.load_rows(
            accounts=account_rows(),
            categories=category_rows(),
            transactions=transaction_rows(),
        )

        balance = await service.get_account_balance("1", "10")
        assert balance.balance == Decimal("6050")

    @pytest.mark.parametrize("debug_mode, expected", [("true", "DEBUG"), ("false", "WARNING")])
    def test_debug_mode_overrides_log_level(self, monkeypatch, debug_mode, expected):
        """Test debug mode forces DEBUG logging for the wired components."""
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        monkeypatch.setenv("DEBUG_MODE", debug_mode)
        levels = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: levels.append(kwargs["level"]))

        create_app_components(use_storage=False)

        assert levels == [expected]

    def test_app_environment_is_read_from_env(self, monkeypatch):
        """Test the environment name is configurable."""
        monkeypatch.setenv("APP_ENVIRONMENT", "production")
        assert AppSettings().app_environment == "production"


class TestValidateAllSettings:
    """Tests for the startup settings check."""

    def test_missing_sheets_settings_reported(self):
        """Test each settings section is checked on its own."""
        results = validate_all_settings()

        assert results["engine"] is True
        assert results["app"] is True
        assert results["google_sheets"] is False
        assert "google_sheets_error" in results
