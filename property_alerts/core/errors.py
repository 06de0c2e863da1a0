"""
Exception hierarchy for the alert engine.

Per-item delivery failures are reported in run outcomes; store failures
abort the current run and propagate to the trigger.
"""

from __future__ import annotations

from typing import Any


class AlertsError(Exception):
    """Base for all alert engine errors. `context` is rendered into str()."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{base_msg} (context: {context_str})"
        return base_msg


class ValidationError(AlertsError):
    """Malformed criteria, alert settings or search metadata."""


class DuplicateSearchError(ValidationError):
    def __init__(self, user_email: str, name: str) -> None:
        super().__init__(
            "You already have a saved search with this name",
            {"user_email": user_email, "name": name},
        )


class ConfigError(ValidationError):
    """Invalid startup configuration."""


class NotFoundError(AlertsError):
    def __init__(self, search_id: str) -> None:
        self.search_id = search_id
        super().__init__("Saved search not found", {"search_id": search_id})


class DeliveryError(AlertsError):
    """Mail transport failure. Mailers convert it into a failed SendResult."""

    def __init__(self, message: str, recipient: str | None = None, original_error: Exception | None = None) -> None:
        self.recipient = recipient
        self.original_error = original_error
        context: dict[str, Any] = {}
        if recipient:
            context["recipient"] = recipient
        if original_error:
            context["original_error"] = str(original_error)
        super().__init__(message, context)


class StoreError(AlertsError):
    """Property or saved-search store unavailable. Fatal for the current run."""

    def __init__(self, message: str, table: str | None = None, original_error: Exception | None = None) -> None:
        self.table = table
        self.original_error = original_error
        context: dict[str, Any] = {}
        if table:
            context["table"] = table
        if original_error:
            context["original_error"] = str(original_error)
        super().__init__(message, context)


class RunInProgressError(AlertsError):
    def __init__(self) -> None:
        super().__init__("An alert run is already in progress")
