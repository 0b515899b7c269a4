"""
Supabase client for the store adapters.

One client is shared by the catalog and event-log stores. It is created on
first use so the API can start (and report itself degraded) before the
project credentials are in place.
"""

from functools import lru_cache
from typing import Optional, Tuple

from supabase import Client, create_client

from config.settings import get_settings


class SupabaseClientError(Exception):
    """Supabase credentials are missing or the client could not be built."""
    pass


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """
    Shared Supabase client, authenticated with the service role key.

    Raises:
        SupabaseClientError: if SUPABASE_URL / SUPABASE_SERVICE_KEY are blank
            or the client rejects them
    """
    settings = get_settings()
    missing = [
        name for name, value in (
            ("SUPABASE_URL", settings.supabase_url),
            ("SUPABASE_SERVICE_KEY", settings.supabase_service_key),
        )
        if not value.strip()
    ]
    if missing:
        raise SupabaseClientError(f"Missing Supabase configuration: {', '.join(missing)}")

    try:
        return create_client(settings.supabase_url, settings.supabase_service_key)
    except Exception as e:
        raise SupabaseClientError(f"Failed to create Supabase client: {e}") from e


def get_supabase_client_optional() -> Optional[Client]:
    try:
        return get_supabase_client()
    except SupabaseClientError:
        return None


def check_catalog_connection(client: Optional[Client]) -> Tuple[str, Optional[str]]:
    """
    Read one product id to see whether the catalog is reachable.

    Returns ``(status, error)`` where status is one of ``connected``,
    ``empty`` (reachable, no products), ``not_configured`` or ``error``.
    """
    if client is None:
        return "not_configured", None
    try:
        result = client.table("products").select("id").limit(1).execute()
    except Exception as e:
        return "error", str(e)
    return ("connected" if result.data else "empty"), None
