from __future__ import annotations

import os
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


DEFAULT_TIMEZONE = "Africa/Nairobi"


def local_today(now: datetime, tz_name: str = DEFAULT_TIMEZONE) -> date:
    """
    Calendar day of `now` in the alert timezone, i.e. `now` truncated to local midnight.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(ZoneInfo(tz_name)).date()


def should_run_local_time(
    now_utc: datetime | None = None,
    target_hour: int | None = None,
    target_minute: int | None = None,
    tz_name: str | None = None,
) -> bool:
    """
    True if current local time equals target hour/minute.
    """
    resolved_hour = target_hour if target_hour is not None else _env_int("RUN_HOUR_LOCAL", default=7)
    resolved_minute = target_minute if target_minute is not None else _env_int("RUN_MINUTE_LOCAL", default=0)
    resolved_tz = tz_name or os.environ.get("ALERTS_TIMEZONE") or DEFAULT_TIMEZONE

    resolved_hour = max(0, min(23, resolved_hour))
    resolved_minute = max(0, min(59, resolved_minute))

    current_utc = now_utc or datetime.now(timezone.utc)
    local = current_utc.astimezone(ZoneInfo(resolved_tz))
    return local.hour == resolved_hour and local.minute == resolved_minute


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except (TypeError, ValueError):
        return default
