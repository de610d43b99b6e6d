"""Authentication helpers."""

from .supabase_client import get_supabase_client, verify_token

__all__ = ["get_supabase_client", "verify_token"]
