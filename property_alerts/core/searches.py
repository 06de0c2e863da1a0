from __future__ import annotations

import logging
from typing import Any

from property_alerts.core.errors import DuplicateSearchError, NotFoundError, ValidationError
from property_alerts.core.interfaces import PropertySource, SearchRepository
from property_alerts.core.matching import filter_matching
from property_alerts.core.models import (
    FREQUENCIES,
    MAX_ALERTS_PER_DAY_LIMIT,
    PROPERTY_TYPES,
    AlertSettings,
    PropertyRecord,
    SavedSearch,
    SearchCriteria,
    alert_settings_from_row,
    alert_settings_to_row,
    criteria_from_row,
    criteria_to_row,
)


LOGGER = logging.getLogger(__name__)

# Tracking columns are owned by the alert engine and never written through an update.
UPDATABLE_FIELDS = {
    "user_name",
    "user_phone",
    "search_criteria",
    "alert_settings",
    "name",
    "description",
    "is_active",
}
MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500


class SearchService:
    def __init__(self, repo: SearchRepository, property_source: PropertySource) -> None:
        self.repo = repo
        self.property_source = property_source

    def create(
        self,
        user_email: str,
        user_name: str,
        criteria: SearchCriteria,
        name: str,
        user_phone: str | None = None,
        alert_settings: AlertSettings | None = None,
        description: str | None = None,
    ) -> SavedSearch:
        email = (user_email or "").strip().lower()
        clean_name = (name or "").strip()
        owner_name = (user_name or "").strip()
        if not email or not owner_name or criteria is None or not clean_name:
            raise ValidationError(
                "Missing required fields: userEmail, userName, searchCriteria, and name are required"
            )
        settings = alert_settings or AlertSettings()
        validate_criteria(criteria)
        validate_alert_settings(settings)
        _validate_text(clean_name, (description or "").strip())

        if self.repo.find_active_by_name(email, clean_name) is not None:
            raise DuplicateSearchError(email, clean_name)

        search = self.repo.insert_search(
            {
                "user_email": email,
                "user_name": owner_name,
                "user_phone": (user_phone or "").strip() or None,
                "search_criteria": criteria_to_row(criteria),
                "alert_settings": alert_settings_to_row(settings),
                "name": clean_name,
                "description": (description or "").strip() or None,
                "is_active": True,
                "total_alerts_sent": 0,
                "alerts_sent_today": 0,
            }
        )
        LOGGER.info("Saved search created id=%s email=%s", search.id, email)
        return search

    def get(self, search_id: str) -> SavedSearch:
        search = self.repo.get_search(search_id)
        if search is None:
            raise NotFoundError(search_id)
        return search

    def list_for_user(self, user_email: str) -> list[SavedSearch]:
        email = (user_email or "").strip().lower()
        if not email:
            raise ValidationError("User email is required")
        return self.repo.list_searches_for_user(email)

    def update(self, search_id: str, changes: dict[str, Any]) -> SavedSearch:
        update_row = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}
        if "search_criteria" in update_row:
            criteria = criteria_from_row(update_row["search_criteria"])
            validate_criteria(criteria)
            update_row["search_criteria"] = criteria_to_row(criteria)
        if "alert_settings" in update_row:
            settings = alert_settings_from_row(update_row["alert_settings"])
            validate_alert_settings(settings)
            update_row["alert_settings"] = alert_settings_to_row(settings)
        if "name" in update_row:
            update_row["name"] = str(update_row["name"] or "").strip()
            if not update_row["name"]:
                raise ValidationError("Saved search name cannot be empty")
        _validate_text(update_row.get("name", ""), str(update_row.get("description") or ""))

        search = self.repo.update_search(search_id, update_row)
        if search is None:
            raise NotFoundError(search_id)
        return search

    def delete(self, search_id: str) -> None:
        if self.repo.update_search(search_id, {"is_active": False}) is None:
            raise NotFoundError(search_id)
        LOGGER.info("Saved search deactivated id=%s", search_id)

    def preview_matching_properties(self, search_id: str, limit: int = 10) -> tuple[list[PropertyRecord], int]:
        """
        Matches over the whole active catalog, newest first.
        Returns the first `limit` matches and the total number of matches.
        """
        search = self.get(search_id)
        matching = filter_matching(search.criteria, self.property_source.find_active())
        return matching[: max(0, limit)], len(matching)


def validate_criteria(criteria: SearchCriteria) -> None:
    unknown = [value for value in criteria.property_types if value not in PROPERTY_TYPES]
    if unknown:
        raise ValidationError("Unknown property types", {"property_types": ",".join(unknown)})
    for field_name in (
        "min_price",
        "max_price",
        "min_bedrooms",
        "max_bedrooms",
        "min_bathrooms",
        "max_bathrooms",
    ):
        value = getattr(criteria, field_name)
        if value is not None and value < 0:
            raise ValidationError("Range bounds must not be negative", {field_name: value})


def validate_alert_settings(settings: AlertSettings) -> None:
    if settings.frequency not in FREQUENCIES:
        raise ValidationError("Unknown alert frequency", {"frequency": settings.frequency})
    if not 1 <= settings.max_alerts_per_day <= MAX_ALERTS_PER_DAY_LIMIT:
        raise ValidationError(
            "maxAlertsPerDay must be between 1 and 20",
            {"max_alerts_per_day": settings.max_alerts_per_day},
        )


def _validate_text(name: str, description: str) -> None:
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError("Saved search name is too long", {"max_length": MAX_NAME_LENGTH})
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError("Saved search description is too long", {"max_length": MAX_DESCRIPTION_LENGTH})
