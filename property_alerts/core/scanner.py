from __future__ import annotations

import logging
from datetime import datetime, timezone

from property_alerts.core.interfaces import PropertySource, SearchStore
from property_alerts.core.matching import filter_matching
from property_alerts.core.models import MatchResult
from property_alerts.core.quota import has_budget, reset_if_new_day
from property_alerts.core.timezone_guard import DEFAULT_TIMEZONE


LOGGER = logging.getLogger(__name__)


class MatchScanner:
    """
    Pairs newly listed properties with the saved searches that still have
    alert budget today. Only in-memory tracking state is touched here.
    """

    def __init__(
        self,
        property_source: PropertySource,
        search_store: SearchStore,
        tz_name: str = DEFAULT_TIMEZONE,
    ) -> None:
        self.property_source = property_source
        self.search_store = search_store
        self.tz_name = tz_name
        self.last_new_properties_count = 0
        self.last_checked_searches = 0

    def scan(self, window_start: datetime, now: datetime | None = None) -> list[MatchResult]:
        now = now or datetime.now(timezone.utc)
        self.last_new_properties_count = 0
        self.last_checked_searches = 0

        new_properties = self.property_source.find_active(created_after=window_start)
        self.last_new_properties_count = len(new_properties)
        if not new_properties:
            LOGGER.info("No new properties since %s", window_start.isoformat())
            return []

        searches = self.search_store.find_active_alertable()
        self.last_checked_searches = len(searches)

        results: list[MatchResult] = []
        for search in searches:
            reset_if_new_day(search, now, self.tz_name)
            if not has_budget(search):
                LOGGER.info("Skipping search=%s email=%s: daily limit reached", search.id, search.owner.email)
                continue

            matching = filter_matching(search.criteria, new_properties)
            if matching:
                results.append(MatchResult(search=search, properties=matching))

        LOGGER.info(
            "Scan complete new_properties=%s checked_searches=%s matches=%s",
            len(new_properties),
            len(searches),
            len(results),
        )
        return results
