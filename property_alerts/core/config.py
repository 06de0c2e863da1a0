from __future__ import annotations

import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from property_alerts.core.errors import ConfigError
from property_alerts.core.render import DEFAULT_FRONTEND_URL
from property_alerts.core.timezone_guard import DEFAULT_TIMEZONE


MAIL_MODES = {"log", "smtp", "http"}
DEFAULT_FROM_ADDRESS = "noreply@zawamuproperties.com"


@dataclass(frozen=True, slots=True)
class MailConfig:
    mode: str = "log"  # log | smtp | http
    host: str | None = None
    port: int = 587
    user: str | None = None
    password: str | None = None
    from_address: str = DEFAULT_FROM_ADDRESS
    api_url: str | None = None
    api_key: str | None = None
    timeout_seconds: float = 15.0

    @property
    def has_auth(self) -> bool:
        return bool(self.user and self.password)


@dataclass(frozen=True, slots=True)
class AlertsConfig:
    mail: MailConfig
    frontend_base_url: str = DEFAULT_FRONTEND_URL
    tz_name: str = DEFAULT_TIMEZONE
    hours_back: int = 24
    supabase_url: str | None = None
    supabase_key: str | None = None

    @classmethod
    def from_env(cls) -> AlertsConfig:
        mail = MailConfig(
            mode=(_env_str("MAIL_MODE") or "log").lower(),
            host=_env_str("MAIL_HOST"),
            port=_env_int("MAIL_PORT", 587),
            user=_env_str("MAIL_USER"),
            password=_env_str("MAIL_PASSWORD"),
            from_address=_env_str("MAIL_FROM") or DEFAULT_FROM_ADDRESS,
            api_url=_env_str("MAIL_API_URL"),
            api_key=_env_str("MAIL_API_KEY"),
            timeout_seconds=_env_float("MAIL_TIMEOUT_SECONDS", 15.0),
        )
        return cls(
            mail=mail,
            frontend_base_url=_env_str("FRONTEND_URL") or DEFAULT_FRONTEND_URL,
            tz_name=_env_str("ALERTS_TIMEZONE") or DEFAULT_TIMEZONE,
            hours_back=_env_int("ALERTS_HOURS_BACK", 24),
            supabase_url=_env_str("SUPABASE_URL"),
            supabase_key=_env_str("SUPABASE_SERVICE_ROLE_KEY"),
        )

    def validate(self) -> AlertsConfig:
        mail = self.mail
        if mail.mode not in MAIL_MODES:
            raise ConfigError("Unknown MAIL_MODE", {"mode": mail.mode})
        if bool(mail.user) != bool(mail.password):
            raise ConfigError("MAIL_USER and MAIL_PASSWORD must be set together.")
        if mail.mode == "smtp":
            if not mail.host:
                raise ConfigError("MAIL_HOST is required for smtp mode.")
            if not 1 <= mail.port <= 65535:
                raise ConfigError("MAIL_PORT out of range", {"port": mail.port})
        if mail.mode == "http" and (not mail.api_url or not mail.api_key):
            raise ConfigError("MAIL_API_URL and MAIL_API_KEY are required for http mode.")
        if mail.timeout_seconds <= 0:
            raise ConfigError("MAIL_TIMEOUT_SECONDS must be positive", {"timeout": mail.timeout_seconds})
        if "@" not in mail.from_address:
            raise ConfigError("MAIL_FROM is not an email address", {"from": mail.from_address})
        if self.hours_back <= 0:
            raise ConfigError("ALERTS_HOURS_BACK must be positive", {"hours_back": self.hours_back})
        try:
            ZoneInfo(self.tz_name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigError("Unknown ALERTS_TIMEZONE", {"tz": self.tz_name}) from exc
        return self


def _env_str(name: str) -> str | None:
    raw = os.environ.get(name)
    if raw is None:
        return None
    stripped = raw.strip()
    return stripped or None


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except (TypeError, ValueError):
        return default
