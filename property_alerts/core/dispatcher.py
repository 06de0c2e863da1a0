from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Sequence

from property_alerts.core.interfaces import Mailer, SearchStore
from property_alerts.core.models import DeliveryOutcome, MatchResult, PropertyRecord, SavedSearch
from property_alerts.core.quota import has_budget, record_sent, remaining_budget
from property_alerts.core.render import DEFAULT_FRONTEND_URL, alert_subject, render_alert_text


LOGGER = logging.getLogger(__name__)

DAILY_LIMIT_REASON = "daily-limit"

Renderer = Callable[[SavedSearch, Sequence[PropertyRecord], str], str]


class AlertDispatcher:
    def __init__(
        self,
        mailer: Mailer,
        search_store: SearchStore,
        frontend_base_url: str = DEFAULT_FRONTEND_URL,
        renderer: Renderer = render_alert_text,
    ) -> None:
        self.mailer = mailer
        self.search_store = search_store
        self.frontend_base_url = frontend_base_url
        self.renderer = renderer

    def dispatch(self, results: list[MatchResult], now: datetime | None = None) -> list[DeliveryOutcome]:
        """
        Send one alert per match result. A failed send never stops the batch and
        never consumes quota; a successful one is persisted before moving on.
        """
        outcomes: list[DeliveryOutcome] = []
        for result in results:
            search = result.search
            if not has_budget(search):
                LOGGER.info("Skipping alert for %s - daily limit reached", search.owner.email)
                outcomes.append(
                    DeliveryOutcome(
                        saved_search_id=search.id,
                        user_email=search.owner.email,
                        skipped=True,
                        reason=DAILY_LIMIT_REASON,
                    )
                )
                continue

            try:
                body = self.renderer(search, result.properties, self.frontend_base_url)
                sent = self.mailer.send(search.owner.email, alert_subject(search), body)
            except Exception as exc:  # noqa: BLE001
                LOGGER.exception("Error sending alert to %s", search.owner.email)
                outcomes.append(
                    DeliveryOutcome(
                        saved_search_id=search.id,
                        user_email=search.owner.email,
                        success=False,
                        error=str(exc),
                    )
                )
                continue

            if not sent.success:
                LOGGER.warning("Alert delivery failed search=%s error=%s", search.id, sent.error)
                outcomes.append(
                    DeliveryOutcome(
                        saved_search_id=search.id,
                        user_email=search.owner.email,
                        success=False,
                        error=sent.error,
                    )
                )
                continue

            record_sent(search, now or datetime.now(timezone.utc))
            # StoreError propagates: tracking already saved for earlier searches stays intact.
            self.search_store.save_tracking(search)
            LOGGER.info("Alert sent search=%s remaining_today=%s", search.id, remaining_budget(search))
            outcomes.append(
                DeliveryOutcome(
                    saved_search_id=search.id,
                    user_email=search.owner.email,
                    success=True,
                    message_id=sent.message_id,
                    properties_count=result.match_count,
                )
            )
        return outcomes
