from __future__ import annotations

import logging
import smtplib
import time
from email.message import EmailMessage
from email.utils import make_msgid

import httpx

from property_alerts.core.config import MailConfig
from property_alerts.core.errors import ConfigError, DeliveryError
from property_alerts.core.interfaces import Mailer
from property_alerts.core.models import SendResult


LOGGER = logging.getLogger(__name__)


class LogMailer:
    """Development mailer: logs the message instead of sending it."""

    def send(self, recipient: str, subject: str, body: str) -> SendResult:
        LOGGER.info("EMAIL ALERT (development mode) to=%s subject=%s", recipient, subject)
        LOGGER.debug("Body:\n%s", body)
        return SendResult(success=True, message_id=f"dev-mode-{int(time.time() * 1000)}")


class SmtpMailer:
    def __init__(
        self,
        host: str,
        port: int,
        from_address: str,
        user: str | None = None,
        password: str | None = None,
        timeout_seconds: float = 15.0,
    ) -> None:
        self.host = host
        self.port = port
        self.from_address = from_address
        self.user = user
        self.password = password
        self.timeout_seconds = timeout_seconds

    def send(self, recipient: str, subject: str, body: str) -> SendResult:
        message = EmailMessage()
        message["From"] = self.from_address
        message["To"] = recipient
        message["Subject"] = subject
        message["Message-ID"] = make_msgid(domain=self.from_address.split("@")[-1])
        message.set_content(body)
        try:
            self._deliver(message)
        except DeliveryError as exc:
            LOGGER.warning("SMTP delivery failed to=%s: %s", recipient, exc)
            return SendResult(success=False, error=str(exc))
        return SendResult(success=True, message_id=message["Message-ID"])

    def _deliver(self, message: EmailMessage) -> None:
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout_seconds) as client:
                if self.user and self.password:
                    client.starttls()
                    client.login(self.user, self.password)
                client.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            # OSError covers refused connections and socket timeouts.
            raise DeliveryError("SMTP send failed", recipient=str(message["To"]), original_error=exc) from exc


class HttpRelayMailer:
    """Sends through a transactional mail HTTP API (JSON body, bearer token)."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        from_address: str,
        timeout_seconds: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_url = api_url
        self.api_key = api_key
        self.from_address = from_address
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    def send(self, recipient: str, subject: str, body: str) -> SendResult:
        request_body = {
            "from": self.from_address,
            "to": [recipient],
            "subject": subject,
            "text": body,
        }
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        try:
            with httpx.Client(timeout=self.timeout_seconds, transport=self.transport) as client:
                response = client.post(self.api_url, json=request_body, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            LOGGER.warning("Mail relay delivery failed to=%s: %s", recipient, exc)
            return SendResult(success=False, error=str(DeliveryError("Mail relay send failed", recipient, exc)))

        # Accepted by the relay; the body only carries an optional message id.
        return SendResult(success=True, message_id=_relay_message_id(response))


def build_mailer(config: MailConfig) -> Mailer:
    if config.mode == "log":
        return LogMailer()
    if config.mode == "smtp":
        if not config.host:
            raise ConfigError("MAIL_HOST is required for smtp mode.")
        return SmtpMailer(
            host=config.host,
            port=config.port,
            from_address=config.from_address,
            user=config.user if config.has_auth else None,
            password=config.password if config.has_auth else None,
            timeout_seconds=config.timeout_seconds,
        )
    if config.mode == "http":
        if not config.api_url or not config.api_key:
            raise ConfigError("MAIL_API_URL and MAIL_API_KEY are required for http mode.")
        return HttpRelayMailer(
            api_url=config.api_url,
            api_key=config.api_key,
            from_address=config.from_address,
            timeout_seconds=config.timeout_seconds,
        )
    raise ConfigError("Unknown MAIL_MODE", {"mode": config.mode})


def _relay_message_id(response: httpx.Response) -> str | None:
    if not response.content:
        return None
    try:
        payload = response.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    message_id = payload.get("id") or payload.get("messageId")
    return str(message_id) if message_id else None
