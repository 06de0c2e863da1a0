from __future__ import annotations

import argparse
import json
import logging
import os

from property_alerts.core.config import AlertsConfig
from property_alerts.core.coordinator import AlertRunCoordinator
from property_alerts.core.dispatcher import AlertDispatcher
from property_alerts.core.mailer import build_mailer
from property_alerts.core.models import RunSummary
from property_alerts.core.scanner import MatchScanner
from property_alerts.core.supabase_repo import SupabaseRepo
from property_alerts.core.timezone_guard import should_run_local_time


logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
LOGGER = logging.getLogger(__name__)


def build_coordinator(config: AlertsConfig, repo: SupabaseRepo | None = None) -> AlertRunCoordinator:
    repo = repo or SupabaseRepo(
        url=config.supabase_url,
        service_role_key=config.supabase_key,
        tz_name=config.tz_name,
    )
    scanner = MatchScanner(property_source=repo, search_store=repo, tz_name=config.tz_name)
    dispatcher = AlertDispatcher(
        mailer=build_mailer(config.mail),
        search_store=repo,
        frontend_base_url=config.frontend_base_url,
    )
    return AlertRunCoordinator(scanner, dispatcher)


def run_alerts(hours_back: int | None = None, force_run: bool = False) -> RunSummary | None:
    config = AlertsConfig.from_env().validate()
    force_run = force_run or os.environ.get("FORCE_RUN", "").lower() in {"1", "true", "yes"}
    if not force_run and not should_run_local_time(tz_name=config.tz_name):
        LOGGER.info("Time guard skipped run (not the configured %s run time).", config.tz_name)
        return None
    if force_run:
        LOGGER.info("FORCE_RUN enabled: bypassing time guard.")

    coordinator = build_coordinator(config)
    return coordinator.run(hours_back=hours_back or config.hours_back)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Match new properties against saved searches and send alerts.")
    parser.add_argument("--hours-back", type=int, default=None, help="Look-back window for new properties.")
    parser.add_argument("--force", action="store_true", help="Bypass configured local run-time guard.")
    parser.add_argument("--json", action="store_true", help="Print the run summary as JSON.")
    args = parser.parse_args()
    summary = run_alerts(hours_back=args.hours_back, force_run=args.force)
    if summary is not None and args.json:
        print(json.dumps(summary.to_dict(), indent=2))
