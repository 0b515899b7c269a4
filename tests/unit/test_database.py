"""
Tests for the Supabase client wiring.
"""

from unittest.mock import MagicMock, patch

import pytest

from config.database import (
    SupabaseClientError,
    check_catalog_connection,
    get_supabase_client,
    get_supabase_client_optional,
)
from config.settings import get_settings_for_testing


@pytest.fixture(autouse=True)
def fresh_client():
    get_supabase_client.cache_clear()
    yield
    get_supabase_client.cache_clear()


class TestGetSupabaseClient:

    def test_blank_credentials_named(self):
        settings = get_settings_for_testing(supabase_url=" ", supabase_service_key="")

        with patch("config.database.get_settings", return_value=settings):
            with pytest.raises(SupabaseClientError) as exc_info:
                get_supabase_client()

        assert "SUPABASE_URL" in str(exc_info.value)
        assert "SUPABASE_SERVICE_KEY" in str(exc_info.value)

    def test_client_is_shared(self):
        settings = get_settings_for_testing()

        with patch("config.database.get_settings", return_value=settings), \
                patch("config.database.create_client", return_value=MagicMock()) as create:
            first = get_supabase_client()
            second = get_supabase_client()

        assert first is second
        create.assert_called_once_with("https://test.supabase.co", "test-key")

    def test_rejected_credentials(self):
        with patch("config.database.create_client", side_effect=ValueError("Invalid API key")):
            with pytest.raises(SupabaseClientError):
                get_supabase_client()

            assert get_supabase_client_optional() is None


class TestCheckCatalogConnection:

    def test_not_configured(self):
        assert check_catalog_connection(None) == ("not_configured", None)

    def test_connected(self, mock_supabase_client):
        mock_supabase_client.table.return_value.execute.return_value.data = [{"id": "p1"}]

        assert check_catalog_connection(mock_supabase_client) == ("connected", None)
        mock_supabase_client.table.assert_called_with("products")

    def test_empty_catalog(self, mock_supabase_client):
        mock_supabase_client.table.return_value.execute.return_value.data = []

        assert check_catalog_connection(mock_supabase_client) == ("empty", None)

    def test_error(self, mock_supabase_client):
        mock_supabase_client.table.return_value.execute.side_effect = RuntimeError("timeout")

        assert check_catalog_connection(mock_supabase_client) == ("error", "timeout")
