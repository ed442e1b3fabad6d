"""Supabase client construction."""

from supabase import Client, create_client

from src.config import Settings, get_settings


def get_supabase_client(settings: Settings | None = None) -> Client:
    """Create a Supabase client.

    A new client is returned on every call; callers hold on to it and pass it
    to the components that need it.
    """
    settings = settings or get_settings()
    return create_client(settings.supabase_url, settings.supabase_service_key)
