"""Supabase-backed state store."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from diva_irma.services.state import Keyspace, StateStore


@dataclass
class SupabaseStateStore(StateStore):
    """Supabase implementation for DIVA and IRMA state.

    Expects a table with ``keyspace`` and ``key`` text columns forming a
    unique constraint and a ``value`` jsonb column.
    """

    client: Client
    table: str = "diva_state"

    def get(self, keyspace: Keyspace, key: str) -> object | None:
        """Return the stored value, if present."""
        response = (
            self.client.table(self.table)
            .select("value")
            .eq("keyspace", keyspace.value)
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0]["value"]

    def set(self, keyspace: Keyspace, key: str, record: object) -> None:
        """Insert or replace the value for a key."""
        response = (
            self.client.table(self.table)
            .upsert(
                {
                    "keyspace": keyspace.value,
                    "key": key,
                    "value": record,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                },
                on_conflict="keyspace,key",
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"Failed to store {keyspace.value} entry")

    def delete(self, keyspace: Keyspace, key: str) -> None:
        """Delete the value for a key."""
        self.client.table(self.table).delete().eq("keyspace", keyspace.value).eq(
            "key", key
        ).execute()
