from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any

from supabase import Client, create_client

from property_alerts.core.errors import StoreError
from property_alerts.core.models import (
    PropertyRecord,
    SavedSearch,
    property_from_row,
    saved_search_from_row,
    tracking_to_row,
)
from property_alerts.core.timezone_guard import DEFAULT_TIMEZONE


PROPERTIES_TABLE = "properties"
SAVED_SEARCHES_TABLE = "saved_searches"


class SupabaseRepo:
    def __init__(
        self,
        url: str | None = None,
        service_role_key: str | None = None,
        tz_name: str = DEFAULT_TIMEZONE,
    ) -> None:
        supabase_url = url or os.environ.get("SUPABASE_URL")
        supabase_key = service_role_key or os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
        if not supabase_url or not supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required.")
        self.client: Client = create_client(supabase_url, supabase_key)
        self.tz_name = tz_name

    # Property source

    def find_active(self, created_after: datetime | None = None) -> list[PropertyRecord]:
        query = self.client.table(PROPERTIES_TABLE).select("*").eq("is_active", True)
        if created_after is not None:
            query = query.gte("created_at", created_after.isoformat())
        rows = self._execute(query.order("created_at", desc=True), PROPERTIES_TABLE)
        return [property_from_row(row) for row in rows]

    # Saved-search store

    def find_active_alertable(self) -> list[SavedSearch]:
        query = (
            self.client.table(SAVED_SEARCHES_TABLE)
            .select("*")
            .eq("is_active", True)
            .eq("alert_settings->>is_active", "true")
            .order("created_at")
        )
        return [saved_search_from_row(row, self.tz_name) for row in self._execute(query, SAVED_SEARCHES_TABLE)]

    def save_tracking(self, search: SavedSearch) -> None:
        update_row = tracking_to_row(search.tracking)
        update_row["updated_at"] = datetime.now(timezone.utc).isoformat()
        # Single-row update keyed by id; only the tracking columns are written.
        query = self.client.table(SAVED_SEARCHES_TABLE).update(update_row).eq("id", search.id)
        self._execute(query, SAVED_SEARCHES_TABLE)

    def insert_search(self, row: dict[str, Any]) -> SavedSearch:
        insert_row = {key: value for key, value in row.items() if not (key == "id" and not value)}
        insert_row.pop("created_at", None)
        rows = self._execute(self.client.table(SAVED_SEARCHES_TABLE).insert(insert_row), SAVED_SEARCHES_TABLE)
        if not rows:
            raise StoreError("Insert returned no row", table=SAVED_SEARCHES_TABLE)
        return saved_search_from_row(rows[0], self.tz_name)

    def get_search(self, search_id: str) -> SavedSearch | None:
        query = self.client.table(SAVED_SEARCHES_TABLE).select("*").eq("id", search_id).limit(1)
        rows = self._execute(query, SAVED_SEARCHES_TABLE)
        return saved_search_from_row(rows[0], self.tz_name) if rows else None

    def find_active_by_name(self, user_email: str, name: str) -> SavedSearch | None:
        query = (
            self.client.table(SAVED_SEARCHES_TABLE)
            .select("*")
            .eq("user_email", user_email)
            .eq("name", name)
            .eq("is_active", True)
            .limit(1)
        )
        rows = self._execute(query, SAVED_SEARCHES_TABLE)
        return saved_search_from_row(rows[0], self.tz_name) if rows else None

    def list_searches_for_user(self, user_email: str) -> list[SavedSearch]:
        query = (
            self.client.table(SAVED_SEARCHES_TABLE)
            .select("*")
            .eq("user_email", user_email)
            .eq("is_active", True)
            .order("created_at", desc=True)
        )
        return [saved_search_from_row(row, self.tz_name) for row in self._execute(query, SAVED_SEARCHES_TABLE)]

    def update_search(self, search_id: str, changes: dict[str, Any]) -> SavedSearch | None:
        update_row = dict(changes)
        update_row["updated_at"] = datetime.now(timezone.utc).isoformat()
        query = self.client.table(SAVED_SEARCHES_TABLE).update(update_row).eq("id", search_id)
        rows = self._execute(query, SAVED_SEARCHES_TABLE)
        return saved_search_from_row(rows[0], self.tz_name) if rows else None

    def _execute(self, query: Any, table: str) -> list[dict[str, Any]]:
        try:
            return query.execute().data or []
        except Exception as exc:
            raise StoreError("Supabase request failed", table=table, original_error=exc) from exc
