from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone

from property_alerts.core.dispatcher import AlertDispatcher
from property_alerts.core.errors import RunInProgressError
from property_alerts.core.models import DeliveryOutcome, RunSummary
from property_alerts.core.scanner import MatchScanner


LOGGER = logging.getLogger(__name__)


class AlertRunCoordinator:
    def __init__(self, scanner: MatchScanner, dispatcher: AlertDispatcher) -> None:
        self.scanner = scanner
        self.dispatcher = dispatcher
        # One run at a time per process; overlapping triggers are rejected, not queued.
        self._run_lock = threading.Lock()

    def run(self, hours_back: int = 24, now: datetime | None = None) -> RunSummary:
        if not self._run_lock.acquire(blocking=False):
            raise RunInProgressError()
        try:
            return self._run(hours_back, now or datetime.now(timezone.utc))
        finally:
            self._run_lock.release()

    def _run(self, hours_back: int, now: datetime) -> RunSummary:
        window_start = now - timedelta(hours=hours_back)
        LOGGER.info("Alert run started hours_back=%s window_start=%s", hours_back, window_start.isoformat())

        matches = self.scanner.scan(window_start, now=now)
        outcomes: list[DeliveryOutcome] = []
        if matches:
            LOGGER.info("Sending %s property alerts...", len(matches))
            outcomes = self.dispatcher.dispatch(matches, now=now)

        summary = RunSummary(
            matches=matches,
            new_properties_count=self.scanner.last_new_properties_count,
            checked_searches=self.scanner.last_checked_searches,
            delivery_outcomes=outcomes,
        )
        LOGGER.info(
            "Alert run completed new_properties=%s checked_searches=%s matches=%s sent=%s failed=%s skipped=%s",
            summary.new_properties_count,
            summary.checked_searches,
            summary.total_matches,
            sum(1 for o in outcomes if o.success),
            sum(1 for o in outcomes if not o.success and not o.skipped),
            sum(1 for o in outcomes if o.skipped),
        )
        return summary
