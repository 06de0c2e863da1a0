from datetime import timedelta
from typing import Any

import pytest

from property_alerts.core.errors import DuplicateSearchError, NotFoundError, ValidationError
from property_alerts.core.models import AlertSettings, SavedSearch, SearchCriteria, saved_search_from_row
from property_alerts.core.searches import SearchService

from conftest import NOW, FakeStore, make_property


class RowRepo(FakeStore):
    """Saved-search rows kept as dicts, the way the database returns them."""

    def __init__(self, properties=None) -> None:
        super().__init__(properties=properties)
        self.rows: dict[str, dict[str, Any]] = {}

    def insert_search(self, row: dict[str, Any]) -> SavedSearch:
        search_id = f"s{len(self.rows) + 1}"
        stored = dict(row, id=search_id, created_at=(NOW + timedelta(minutes=len(self.rows))).isoformat())
        self.rows[search_id] = stored
        return saved_search_from_row(stored)

    def get_search(self, search_id: str) -> SavedSearch | None:
        row = self.rows.get(search_id)
        return saved_search_from_row(row) if row else None

    def find_active_by_name(self, user_email: str, name: str) -> SavedSearch | None:
        for row in self.rows.values():
            if row["user_email"] == user_email and row["name"] == name and row["is_active"]:
                return saved_search_from_row(row)
        return None

    def list_searches_for_user(self, user_email: str) -> list[SavedSearch]:
        rows = [r for r in self.rows.values() if r["user_email"] == user_email and r["is_active"]]
        rows.sort(key=lambda r: r["created_at"], reverse=True)
        return [saved_search_from_row(r) for r in rows]

    def update_search(self, search_id: str, changes: dict[str, Any]) -> SavedSearch | None:
        row = self.rows.get(search_id)
        if row is None:
            return None
        row.update(changes)
        return saved_search_from_row(row)


def _service(properties=None) -> tuple[SearchService, RowRepo]:
    repo = RowRepo(properties=properties)
    return SearchService(repo, repo), repo


def test_create_normalizes_and_applies_default_settings():
    service, repo = _service()

    search = service.create(" Jane@Example.com ", " Jane ", SearchCriteria(county="Nairobi"), " Flats ")

    assert search.owner.email == "jane@example.com"
    assert search.name == "Flats"
    assert search.alert_settings == AlertSettings(is_active=True, frequency="daily", max_alerts_per_day=5)
    assert repo.rows[search.id]["alerts_sent_today"] == 0


def test_create_rejects_duplicate_active_name():
    service, _ = _service()
    service.create("jane@example.com", "Jane", SearchCriteria(), "Flats")

    with pytest.raises(DuplicateSearchError):
        service.create("JANE@example.com", "Jane", SearchCriteria(), "Flats")


def test_create_allows_name_of_deleted_search():
    service, _ = _service()
    first = service.create("jane@example.com", "Jane", SearchCriteria(), "Flats")
    service.delete(first.id)

    second = service.create("jane@example.com", "Jane", SearchCriteria(), "Flats")

    assert second.id != first.id


@pytest.mark.parametrize(
    "kwargs",
    [
        {"user_email": "", "user_name": "Jane", "criteria": SearchCriteria(), "name": "Flats"},
        {"user_email": "a@example.com", "user_name": "Jane", "criteria": SearchCriteria(), "name": "  "},
        {"user_email": "a@example.com", "user_name": "Jane", "criteria": SearchCriteria(property_types=("castle",)), "name": "x"},
        {"user_email": "a@example.com", "user_name": "Jane", "criteria": SearchCriteria(min_price=-1), "name": "x"},
        {
            "user_email": "a@example.com",
            "user_name": "Jane",
            "criteria": SearchCriteria(),
            "name": "x",
            "alert_settings": AlertSettings(max_alerts_per_day=21),
        },
        {
            "user_email": "a@example.com",
            "user_name": "Jane",
            "criteria": SearchCriteria(),
            "name": "x",
            "alert_settings": AlertSettings(frequency="hourly"),
        },
    ],
)
def test_create_rejects_malformed_input(kwargs):
    service, _ = _service()
    with pytest.raises(ValidationError):
        service.create(**kwargs)


def test_get_unknown_search_raises_not_found():
    service, _ = _service()
    with pytest.raises(NotFoundError):
        service.get("missing")


def test_update_ignores_tracking_fields_and_validates_settings():
    service, repo = _service()
    search = service.create("jane@example.com", "Jane", SearchCriteria(), "Flats")

    updated = service.update(
        search.id,
        {"alerts_sent_today": 99, "total_alerts_sent": 99, "description": "near work", "alert_settings": {"max_alerts_per_day": 2}},
    )

    assert updated.description == "near work"
    assert updated.alert_settings.max_alerts_per_day == 2
    assert updated.tracking.alerts_sent_today == 0
    assert repo.rows[search.id]["total_alerts_sent"] == 0

    with pytest.raises(ValidationError):
        service.update(search.id, {"alert_settings": {"max_alerts_per_day": 0}})
    with pytest.raises(NotFoundError):
        service.update("missing", {"description": "x"})


def test_delete_is_soft_and_hides_from_user_listing():
    service, repo = _service()
    keep = service.create("jane@example.com", "Jane", SearchCriteria(), "Keep")
    gone = service.create("jane@example.com", "Jane", SearchCriteria(), "Gone")

    service.delete(gone.id)

    assert repo.rows[gone.id]["is_active"] is False
    assert [s.id for s in service.list_for_user("JANE@example.com")] == [keep.id]
    with pytest.raises(NotFoundError):
        service.delete("missing")


def test_preview_matches_full_catalog_with_limit():
    props = [make_property(f"p{i}", price=1000 * i, created_at=NOW - timedelta(days=i)) for i in range(1, 6)]
    service, _ = _service(properties=props)
    search = service.create("jane@example.com", "Jane", SearchCriteria(max_price=4000), "Cheap")

    page, total = service.preview_matching_properties(search.id, limit=2)

    assert total == 4
    assert [p.id for p in page] == ["p1", "p2"]
