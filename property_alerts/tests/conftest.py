from __future__ import annotations

import dataclasses
from datetime import date, datetime, timezone
from typing import Any

import pytest

from property_alerts.core.errors import StoreError
from property_alerts.core.models import (
    AlertSettings,
    AlertTracking,
    Owner,
    PropertyRecord,
    SavedSearch,
    SearchCriteria,
    SendResult,
)


NOW = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)


def make_property(id: str = "p1", **overrides: Any) -> PropertyRecord:
    values: dict[str, Any] = {
        "title": "Modern apartment",
        "description": "Two bedroom apartment close to the CBD",
        "price": 50000.0,
        "location": "Westlands, Nairobi",
        "county": "Nairobi",
        "constituency": "Westlands",
        "ward": "Parklands",
        "type": "apartment",
        "bedrooms": 2,
        "bathrooms": 1,
        "created_at": NOW,
        "is_active": True,
    }
    values.update(overrides)
    return PropertyRecord(id=id, **values)


def make_search(
    id: str = "s1",
    email: str = "jane@example.com",
    criteria: SearchCriteria | None = None,
    max_alerts_per_day: int = 5,
    alerts_sent_today: int = 0,
    total_alerts_sent: int = 0,
    last_alert_reset_date: date | None = date(2026, 3, 10),
    alerts_active: bool = True,
    is_active: bool = True,
) -> SavedSearch:
    return SavedSearch(
        id=id,
        owner=Owner(email=email, name="Jane"),
        criteria=criteria or SearchCriteria(),
        name=f"Search {id}",
        alert_settings=AlertSettings(is_active=alerts_active, max_alerts_per_day=max_alerts_per_day),
        is_active=is_active,
        tracking=AlertTracking(
            total_alerts_sent=total_alerts_sent,
            alerts_sent_today=alerts_sent_today,
            last_alert_reset_date=last_alert_reset_date,
        ),
    )


class FakeStore:
    """In-memory property source and saved-search store."""

    def __init__(
        self,
        properties: list[PropertyRecord] | None = None,
        searches: list[SavedSearch] | None = None,
    ) -> None:
        self.properties = list(properties or [])
        self.searches = list(searches or [])
        self.saved: dict[str, AlertTracking] = {}
        self.save_calls: list[str] = []
        self.fail_save_ids: set[str] = set()
        self.fail_reads = False
        self.search_fetches = 0

    def find_active(self, created_after: datetime | None = None) -> list[PropertyRecord]:
        if self.fail_reads:
            raise StoreError("store down", table="properties")
        rows = [p for p in self.properties if p.is_active]
        if created_after is not None:
            rows = [p for p in rows if p.created_at is not None and p.created_at >= created_after]
        return sorted(rows, key=lambda p: p.created_at or NOW, reverse=True)

    def find_active_alertable(self) -> list[SavedSearch]:
        self.search_fetches += 1
        return [s for s in self.searches if s.is_active and s.alert_settings.is_active]

    def save_tracking(self, search: SavedSearch) -> None:
        self.save_calls.append(search.id)
        if search.id in self.fail_save_ids:
            raise StoreError("update failed", table="saved_searches")
        self.saved[search.id] = dataclasses.replace(search.tracking)


class FakeMailer:
    def __init__(self, failing: set[str] | None = None, raising: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.raising = raising or set()
        self.sent: list[tuple[str, str, str]] = []

    def send(self, recipient: str, subject: str, body: str) -> SendResult:
        if recipient in self.raising:
            raise TimeoutError("mail server timed out")
        if recipient in self.failing:
            return SendResult(success=False, error="mailbox unavailable")
        self.sent.append((recipient, subject, body))
        return SendResult(success=True, message_id=f"msg-{len(self.sent)}")


@pytest.fixture
def fake_mailer() -> FakeMailer:
    return FakeMailer()
