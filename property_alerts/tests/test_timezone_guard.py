from datetime import date, datetime, timezone

from property_alerts.core.timezone_guard import local_today, should_run_local_time


def test_should_run_local_time_true():
    dt = datetime(2026, 1, 15, 4, 0, tzinfo=timezone.utc)
    assert should_run_local_time(dt, target_hour=7, target_minute=0, tz_name="Africa/Nairobi") is True


def test_should_run_local_time_false():
    dt = datetime(2026, 1, 15, 7, 0, tzinfo=timezone.utc)
    assert should_run_local_time(dt, target_hour=7, target_minute=0, tz_name="Africa/Nairobi") is False


def test_local_today_rolls_over_at_local_midnight():
    assert local_today(datetime(2026, 1, 15, 20, 59, tzinfo=timezone.utc)) == date(2026, 1, 15)
    assert local_today(datetime(2026, 1, 15, 21, 0, tzinfo=timezone.utc)) == date(2026, 1, 16)
    # Naive values are read as UTC.
    assert local_today(datetime(2026, 1, 15, 21, 0), "UTC") == date(2026, 1, 15)
