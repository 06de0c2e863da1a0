from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from property_alerts.core.models import PropertyRecord, SavedSearch, SendResult


class PropertySource(Protocol):
    def find_active(self, created_after: datetime | None = None) -> list[PropertyRecord]:
        """Active properties, newest first, optionally created at or after `created_after`."""


class SearchStore(Protocol):
    def find_active_alertable(self) -> list[SavedSearch]:
        """Active saved searches whose alerts are switched on."""

    def save_tracking(self, search: SavedSearch) -> None:
        """Persist the tracking fields of one saved search."""


class SearchRepository(SearchStore, Protocol):
    def insert_search(self, row: dict[str, Any]) -> SavedSearch: ...

    def get_search(self, search_id: str) -> SavedSearch | None: ...

    def find_active_by_name(self, user_email: str, name: str) -> SavedSearch | None: ...

    def list_searches_for_user(self, user_email: str) -> list[SavedSearch]: ...

    def update_search(self, search_id: str, changes: dict[str, Any]) -> SavedSearch | None: ...


class Mailer(Protocol):
    def send(self, recipient: str, subject: str, body: str) -> SendResult:
        """Deliver one message. Delivery failures come back as SendResult(success=False)."""
