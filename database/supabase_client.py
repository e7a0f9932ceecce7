"""
Supabase Database Client for Buyer Leads

Provides hosted storage for buyer lead records. Every query is scoped to
the owner (``user_id``) passed in by the caller, so one user can never read
or change another user's leads through this client.

Why Supabase?
- Managed Postgres with row-level security
- PostgREST query builder (filters, ranges, ordering) from Python
- Built-in auth that supplies the owner id
"""

import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from postgrest.exceptions import APIError
from supabase import Client, create_client

if TYPE_CHECKING:
    from leads.models import BuyerFilter

logger = logging.getLogger(__name__)

# Columns a caller may never change on an existing lead
IMMUTABLE_COLUMNS = ("id", "user_id", "owner_id", "created_at")

# Characters with meaning inside a PostgREST or() expression
SEARCH_RESERVED = re.compile(r"[,()*%\\]")


class DatabaseError(RuntimeError):
    """
    Raised when a Supabase query fails.

    Attributes:
        message: Human-readable error description
        code: Postgres/PostgREST error code (if available)
        details: Extra detail returned by the server (if available)
    """

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details

    def __str__(self) -> str:
        parts = [self.message]
        if self.code:
            parts.append(f"(code={self.code})")
        return " ".join(parts)

    @classmethod
    def from_api_error(cls, error: APIError) -> "DatabaseError":
        return cls(
            error.message or str(error),
            code=error.code,
            details=error.details,
        )


@dataclass
class DatabaseConfig:
    """Supabase connection configuration."""
    url: str
    key: str  # anon/public key for client-side, service key for server-side
    table: str = "buyers"

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """Load config from environment variables."""
        url = os.getenv("SUPABASE_URL")
        key = os.getenv("SUPABASE_KEY")

        if not url or not key:
            raise ValueError(
                "Missing Supabase credentials. Set SUPABASE_URL and SUPABASE_KEY environment variables."
            )

        return cls(url=url, key=key, table=os.getenv("SUPABASE_BUYERS_TABLE", "buyers"))


class SupabaseClient:
    """
    Supabase client for buyer lead operations.

    Every method takes the owner id explicitly; there is no ambient
    "current user". Failures surface as ``DatabaseError``.
    """

    def __init__(self, config: Optional[DatabaseConfig] = None, client: Optional[Client] = None):
        """
        Initialize Supabase client.

        Args:
            config: Database configuration. If None, loads from environment.
            client: Pre-built supabase Client (skips create_client).
        """
        if config is None:
            config = DatabaseConfig.from_env()

        self.config = config
        self.client: Client = client or create_client(config.url, config.key)
        logger.debug("SupabaseClient initialized for table %s", config.table)

    def _table(self):
        return self.client.table(self.config.table)

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except APIError as e:
            logger.error("Failed to %s: %s", action, e.message)
            raise DatabaseError.from_api_error(e) from e

    # ==========================================
    # BUYER OPERATIONS
    # ==========================================

    def list_buyers(self, owner_id: str, filters: Optional["BuyerFilter"] = None) -> List[Dict]:
        """
        List an owner's leads, newest first.

        Args:
            owner_id: Owner whose leads are returned
            filters: Optional search, exact-match and paging options

        Returns:
            List of buyer rows
        """
        query = (
            self._table()
            .select("*")
            .eq("user_id", owner_id)
            .order("created_at", desc=True)
        )

        if filters:
            if filters.search:
                term = SEARCH_RESERVED.sub(" ", filters.search).strip()
                if term:
                    query = query.or_(
                        f"full_name.ilike.%{term}%,email.ilike.%{term}%,phone.ilike.%{term}%"
                    )
            for column in ("city", "property_type", "status", "timeline"):
                value = getattr(filters, column)
                if value:
                    query = query.eq(column, value)
            if filters.limit:
                query = query.range(filters.offset, filters.offset + filters.limit - 1)

        result = self._execute(query, "list buyers")
        logger.debug("Listed %d buyers for owner %s", len(result.data or []), owner_id)
        return result.data or []

    def create_buyer(self, owner_id: str, fields: Dict[str, Any]) -> Dict:
        """
        Insert a lead owned by ``owner_id``.

        Returns:
            Created buyer row with server-assigned id and timestamps
        """
        data = _mutable(fields)
        data["user_id"] = owner_id

        result = self._execute(self._table().insert(data), "create buyer")
        if not result.data:
            raise DatabaseError("Database insert returned no row")
        return result.data[0]

    def update_buyer(self, buyer_id: str, owner_id: str, fields: Dict[str, Any]) -> Dict:
        """
        Replace the mutable fields of one of the owner's leads.

        id, owner and created_at are never changed.

        Raises:
            DatabaseError: If the query fails or no lead matched
        """
        data = _mutable(fields)
        data["updated_at"] = datetime.now(timezone.utc).isoformat()

        query = self._table().update(data).eq("id", buyer_id).eq("user_id", owner_id)
        result = self._execute(query, "update buyer")
        if not result.data:
            raise DatabaseError(f"Buyer lead not found: {buyer_id}")
        return result.data[0]

    def delete_buyer(self, buyer_id: str, owner_id: str) -> bool:
        """Delete one of the owner's leads. Returns False if none matched."""
        query = self._table().delete().eq("id", buyer_id).eq("user_id", owner_id)
        result = self._execute(query, "delete buyer")
        return bool(result.data)

    def get_buyer(self, buyer_id: str, owner_id: str) -> Optional[Dict]:
        """Fetch one of the owner's leads by id."""
        query = (
            self._table()
            .select("*")
            .eq("id", buyer_id)
            .eq("user_id", owner_id)
            .limit(1)
        )
        result = self._execute(query, "fetch buyer")
        return result.data[0] if result.data else None


def _mutable(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in fields.items() if key not in IMMUTABLE_COLUMNS}


# Singleton instance for convenience
_client: Optional[SupabaseClient] = None


def get_client() -> SupabaseClient:
    """Get or create singleton Supabase client."""
    global _client
    if _client is None:
        _client = SupabaseClient()
    return _client
