from __future__ import annotations

from datetime import datetime

from property_alerts.core.models import SavedSearch
from property_alerts.core.timezone_guard import DEFAULT_TIMEZONE, local_today


def reset_if_new_day(search: SavedSearch, now: datetime, tz_name: str = DEFAULT_TIMEZONE) -> bool:
    """
    Lazily zero the daily counter once the local calendar day has moved on.
    Returns True when a reset happened.
    """
    today = local_today(now, tz_name)
    tracking = search.tracking
    if tracking.last_alert_reset_date is None or tracking.last_alert_reset_date < today:
        tracking.alerts_sent_today = 0
        tracking.last_alert_reset_date = today
        return True
    return False


def remaining_budget(search: SavedSearch) -> int:
    return max(0, search.alert_settings.max_alerts_per_day - search.tracking.alerts_sent_today)


def has_budget(search: SavedSearch) -> bool:
    return remaining_budget(search) > 0


def record_sent(search: SavedSearch, now: datetime) -> None:
    tracking = search.tracking
    tracking.alerts_sent_today += 1
    tracking.total_alerts_sent += 1
    tracking.last_alert_sent = now
