"""
Database module for Buyer Leads.

Provides Supabase integration for hosted lead storage.
"""

from .supabase_client import (
    SupabaseClient,
    DatabaseConfig,
    DatabaseError,
    get_client
)

__all__ = [
    "SupabaseClient",
    "DatabaseConfig",
    "DatabaseError",
    "get_client"
]
