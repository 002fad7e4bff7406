"""
HomeStaff - Supabase Client.

Low-level database access. All queries go through here.
"""

import logging
from typing import Any

from supabase import Client, create_client

from homestaff.config import settings
from homestaff.db.errors import StoreError

logger = logging.getLogger(__name__)

# Singleton client instances
_client: Client | None = None
_service_client: Client | None = None


def get_client() -> Client:
    """
    Get the Supabase client (anon key).

    Uses singleton pattern to reuse connection.
    """
    global _client

    if _client is None:
        _client = create_client(
            settings.supabase_url,
            settings.supabase_anon_key,
        )

    return _client


def get_service_client() -> Client:
    """
    Get the service-role Supabase client.

    Bypasses RLS. Only used for token validation and admin CLI commands.
    """
    global _service_client

    if _service_client is None:
        _service_client = create_client(
            settings.supabase_url,
            settings.supabase_service_role_key,
        )

    return _service_client


def get_authenticated_client(access_token: str) -> Client:
    """
    Create a client that runs queries as the given user.

    A fresh client per request so RLS policies see the caller's JWT.
    """
    client = create_client(settings.supabase_url, settings.supabase_anon_key)
    client.postgrest.auth(access_token)
    return client


def execute(query: Any, action: str) -> Any:
    """
    Execute a PostgREST query builder.

    Failures are logged and re-raised as StoreError("Failed to <action>: ...").
    """
    try:
        return query.execute()
    except Exception as e:
        logger.error(f"Failed to {action}: {e}")
        raise StoreError(f"Failed to {action}: {e}") from e
