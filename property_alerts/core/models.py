from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

from property_alerts.core.timezone_guard import DEFAULT_TIMEZONE, local_today


FREQUENCIES = ("immediate", "daily", "weekly")
PROPERTY_TYPES = ("apartment", "house", "land", "commercial", "office")
DEFAULT_MAX_ALERTS_PER_DAY = 5
MAX_ALERTS_PER_DAY_LIMIT = 20


@dataclass(frozen=True, slots=True)
class SearchCriteria:
    county: str | None = None
    constituency: str | None = None
    ward: str | None = None
    property_types: tuple[str, ...] = ()
    min_price: float | None = None
    max_price: float | None = None
    min_bedrooms: int | None = None
    max_bedrooms: int | None = None
    min_bathrooms: int | None = None
    max_bathrooms: int | None = None
    search_term: str | None = None


@dataclass(frozen=True, slots=True)
class AlertSettings:
    is_active: bool = True
    frequency: str = "daily"  # immediate | daily | weekly, advisory only
    max_alerts_per_day: int = DEFAULT_MAX_ALERTS_PER_DAY


@dataclass(frozen=True, slots=True)
class Owner:
    email: str
    name: str
    phone: str | None = None


@dataclass(slots=True)
class AlertTracking:
    last_alert_sent: datetime | None = None
    total_alerts_sent: int = 0
    alerts_sent_today: int = 0
    last_alert_reset_date: date | None = None


@dataclass(frozen=True, slots=True)
class SavedSearch:
    id: str
    owner: Owner
    criteria: SearchCriteria
    name: str
    alert_settings: AlertSettings = field(default_factory=AlertSettings)
    description: str | None = None
    is_active: bool = True
    # The only part of a saved search the alert engine mutates.
    tracking: AlertTracking = field(default_factory=AlertTracking)
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class PropertyRecord:
    id: str
    title: str | None
    description: str | None
    price: float | None
    location: str | None
    county: str | None = None
    constituency: str | None = None
    ward: str | None = None
    type: str | None = None
    bedrooms: int | None = None
    bathrooms: int | None = None
    created_at: datetime | None = None
    is_active: bool = True
    images: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class MatchResult:
    search: SavedSearch
    properties: list[PropertyRecord]

    @property
    def match_count(self) -> int:
        return len(self.properties)


@dataclass(frozen=True, slots=True)
class SendResult:
    success: bool
    message_id: str | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class DeliveryOutcome:
    saved_search_id: str
    user_email: str
    success: bool = False
    skipped: bool = False
    reason: str | None = None
    message_id: str | None = None
    properties_count: int | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"savedSearchId": self.saved_search_id, "userEmail": self.user_email}
        if self.skipped:
            out.update({"skipped": True, "reason": self.reason})
        elif self.success:
            out.update({"success": True, "messageId": self.message_id, "propertiesCount": self.properties_count})
        else:
            out.update({"success": False, "error": self.error})
        return out


@dataclass(slots=True)
class RunSummary:
    matches: list[MatchResult]
    new_properties_count: int
    checked_searches: int
    delivery_outcomes: list[DeliveryOutcome]

    @property
    def total_matches(self) -> int:
        return len(self.matches)

    def to_dict(self) -> dict[str, Any]:
        return {
            "matches": [
                {
                    "savedSearchId": match.search.id,
                    "userEmail": match.search.owner.email,
                    "propertyIds": [prop.id for prop in match.properties],
                    "matchCount": match.match_count,
                }
                for match in self.matches
            ],
            "totalMatches": self.total_matches,
            "newPropertiesCount": self.new_properties_count,
            "checkedSearches": self.checked_searches,
            "deliveryOutcomes": [outcome.to_dict() for outcome in self.delivery_outcomes],
        }


def criteria_from_row(row: dict[str, Any] | None) -> SearchCriteria:
    row = row or {}
    return SearchCriteria(
        county=_clean_str(row.get("county")),
        constituency=_clean_str(row.get("constituency")),
        ward=_clean_str(row.get("ward")),
        property_types=tuple(str(value) for value in (row.get("property_types") or []) if value),
        min_price=_safe_float(row.get("min_price")),
        max_price=_safe_float(row.get("max_price")),
        min_bedrooms=_safe_int(row.get("min_bedrooms")),
        max_bedrooms=_safe_int(row.get("max_bedrooms")),
        min_bathrooms=_safe_int(row.get("min_bathrooms")),
        max_bathrooms=_safe_int(row.get("max_bathrooms")),
        search_term=_clean_str(row.get("search_term")),
    )


def criteria_to_row(criteria: SearchCriteria) -> dict[str, Any]:
    return {
        "county": criteria.county,
        "constituency": criteria.constituency,
        "ward": criteria.ward,
        "property_types": list(criteria.property_types),
        "min_price": criteria.min_price,
        "max_price": criteria.max_price,
        "min_bedrooms": criteria.min_bedrooms,
        "max_bedrooms": criteria.max_bedrooms,
        "min_bathrooms": criteria.min_bathrooms,
        "max_bathrooms": criteria.max_bathrooms,
        "search_term": criteria.search_term,
    }


def alert_settings_from_row(row: dict[str, Any] | None) -> AlertSettings:
    row = row or {}
    max_alerts = _safe_int(row.get("max_alerts_per_day"))
    return AlertSettings(
        is_active=bool(row.get("is_active", True)),
        frequency=str(row.get("frequency") or "daily"),
        max_alerts_per_day=max_alerts if max_alerts is not None else DEFAULT_MAX_ALERTS_PER_DAY,
    )


def alert_settings_to_row(settings: AlertSettings) -> dict[str, Any]:
    return {
        "is_active": settings.is_active,
        "frequency": settings.frequency,
        "max_alerts_per_day": settings.max_alerts_per_day,
    }


def tracking_to_row(tracking: AlertTracking) -> dict[str, Any]:
    return {
        "last_alert_sent": tracking.last_alert_sent.isoformat() if tracking.last_alert_sent else None,
        "total_alerts_sent": tracking.total_alerts_sent,
        "alerts_sent_today": tracking.alerts_sent_today,
        "last_alert_reset_date": (
            tracking.last_alert_reset_date.isoformat() if tracking.last_alert_reset_date else None
        ),
    }


def saved_search_from_row(row: dict[str, Any], tz_name: str = DEFAULT_TIMEZONE) -> SavedSearch:
    created_at = parse_dt(row.get("created_at"))
    reset_date = parse_date(row.get("last_alert_reset_date"))
    if reset_date is None and created_at is not None:
        # Rows written before tracking existed start their day on creation.
        reset_date = local_today(created_at, tz_name)
    return SavedSearch(
        id=str(row["id"]),
        owner=Owner(
            email=str(row.get("user_email") or "").strip().lower(),
            name=str(row.get("user_name") or "").strip(),
            phone=_clean_str(row.get("user_phone")),
        ),
        criteria=criteria_from_row(row.get("search_criteria")),
        name=str(row.get("name") or "").strip(),
        alert_settings=alert_settings_from_row(row.get("alert_settings")),
        description=_clean_str(row.get("description")),
        is_active=bool(row.get("is_active", True)),
        tracking=AlertTracking(
            last_alert_sent=parse_dt(row.get("last_alert_sent")),
            total_alerts_sent=_safe_int(row.get("total_alerts_sent")) or 0,
            alerts_sent_today=_safe_int(row.get("alerts_sent_today")) or 0,
            last_alert_reset_date=reset_date,
        ),
        created_at=created_at,
    )


def saved_search_to_row(search: SavedSearch) -> dict[str, Any]:
    row = {
        "id": search.id,
        "user_email": search.owner.email,
        "user_name": search.owner.name,
        "user_phone": search.owner.phone,
        "search_criteria": criteria_to_row(search.criteria),
        "alert_settings": alert_settings_to_row(search.alert_settings),
        "name": search.name,
        "description": search.description,
        "is_active": search.is_active,
        "created_at": search.created_at.isoformat() if search.created_at else None,
    }
    row.update(tracking_to_row(search.tracking))
    return row


def property_from_row(row: dict[str, Any]) -> PropertyRecord:
    return PropertyRecord(
        id=str(row["id"]),
        title=row.get("title"),
        description=row.get("description"),
        price=_safe_float(row.get("price")),
        location=row.get("location"),
        county=row.get("county"),
        constituency=row.get("constituency"),
        ward=row.get("ward"),
        type=row.get("type"),
        bedrooms=_safe_int(row.get("bedrooms")),
        bathrooms=_safe_int(row.get("bathrooms")),
        created_at=parse_dt(row.get("created_at")),
        is_active=bool(row.get("is_active", True)),
        images=tuple(str(value) for value in (row.get("images") or []) if value),
    )


def parse_dt(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    if isinstance(value, str) and value.strip():
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed
    return None


def parse_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text)
        parsed = parse_dt(text)
        return parsed.date() if parsed else None
    return None


def _clean_str(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _safe_int(value: Any) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _safe_float(value: Any) -> float | None:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None
