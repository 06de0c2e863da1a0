from __future__ import annotations

from typing import Sequence

from property_alerts.core.models import PropertyRecord, SavedSearch, SearchCriteria


DEFAULT_FRONTEND_URL = "http://localhost:5173"


def alert_subject(search: SavedSearch) -> str:
    return f"New Properties Match Your Search: {search.name}"


def render_alert_text(
    search: SavedSearch,
    properties: Sequence[PropertyRecord],
    frontend_base_url: str = DEFAULT_FRONTEND_URL,
) -> str:
    base = frontend_base_url.rstrip("/")
    lines = [
        f"New Properties Match Your Search: {search.name}",
        "",
        f"Hello {search.owner.name},",
        "",
        f"We found {len(properties)} new properties that match your saved search.",
    ]

    criteria_lines = describe_criteria(search.criteria)
    if criteria_lines:
        lines += ["", "Your Search Criteria:"]
        lines += [f"- {line}" for line in criteria_lines]

    lines += ["", "Matching Properties:"]
    for prop in properties:
        lines += [
            "",
            f"- {prop.title or 'Untitled property'}",
            f"  {format_price(prop.price)}",
            f"  {prop.type or 'property'}",
            f"  {_display_location(prop)}",
        ]
        if prop.bedrooms:
            lines.append(f"  Bedrooms: {prop.bedrooms}")
        if prop.bathrooms:
            lines.append(f"  Bathrooms: {prop.bathrooms}")
        if prop.images:
            lines.append(f"  Photo: {prop.images[0]}")
        lines.append(f"  View: {base}/listings/{prop.id}")

    lines += [
        "",
        f"View all properties: {base}/listings",
        f"Manage your searches: {base}/dashboard",
        "",
        "This alert was sent because you have an active saved search.",
        "If you no longer wish to receive these alerts, you can disable them in your dashboard.",
    ]
    return "\n".join(lines)


def describe_criteria(criteria: SearchCriteria) -> list[str]:
    out: list[str] = []
    if criteria.county:
        parts = [criteria.county, criteria.constituency, criteria.ward]
        out.append("Location: " + ", ".join(part for part in parts if part))
    if criteria.property_types:
        out.append("Property Types: " + ", ".join(criteria.property_types))
    if criteria.min_price or criteria.max_price:
        low = format_price(criteria.min_price) if criteria.min_price else "Any"
        high = format_price(criteria.max_price) if criteria.max_price else "Any"
        out.append(f"Price Range: {low} - {high}")
    if criteria.min_bedrooms:
        out.append(f"Min Bedrooms: {criteria.min_bedrooms}")
    if criteria.min_bathrooms:
        out.append(f"Min Bathrooms: {criteria.min_bathrooms}")
    if criteria.search_term:
        out.append(f'Search Term: "{criteria.search_term}"')
    return out


def format_price(value: float | None) -> str:
    if value is None:
        return "Price on request"
    if float(value).is_integer():
        return f"KSh {int(value):,}"
    return f"KSh {value:,.2f}"


def _display_location(prop: PropertyRecord) -> str:
    if prop.ward and prop.constituency and prop.county:
        return f"{prop.ward}, {prop.constituency}, {prop.county}"
    return prop.location or ""
