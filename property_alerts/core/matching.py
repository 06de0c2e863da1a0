from __future__ import annotations

from typing import Iterable

from property_alerts.core.models import PropertyRecord, SearchCriteria


def matches(criteria: SearchCriteria, prop: PropertyRecord) -> bool:
    """
    True if the property satisfies every clause present in the criteria.
    Absent clauses pass; an empty criteria matches everything.
    """
    for wanted, actual in (
        (criteria.county, prop.county),
        (criteria.constituency, prop.constituency),
        (criteria.ward, prop.ward),
    ):
        if wanted and actual and wanted.lower() != actual.lower():
            return False

    if criteria.property_types and prop.type not in criteria.property_types:
        return False

    for minimum, maximum, value in (
        (criteria.min_price, criteria.max_price, prop.price),
        (criteria.min_bedrooms, criteria.max_bedrooms, prop.bedrooms),
        (criteria.min_bathrooms, criteria.max_bathrooms, prop.bathrooms),
    ):
        if not _within(value, minimum, maximum):
            return False

    if criteria.search_term:
        haystack = " ".join(
            [prop.title or "", prop.description or "", prop.location or ""]
        ).lower()
        if criteria.search_term.lower() not in haystack:
            return False

    return True


def filter_matching(criteria: SearchCriteria, properties: Iterable[PropertyRecord]) -> list[PropertyRecord]:
    return [prop for prop in properties if matches(criteria, prop)]


def _within(value: float | None, minimum: float | None, maximum: float | None) -> bool:
    # Zero bounds count as "no constraint", same as an absent bound.
    # A property without the value cannot violate a bound.
    if value is None:
        return True
    if minimum and value < minimum:
        return False
    if maximum and value > maximum:
        return False
    return True
