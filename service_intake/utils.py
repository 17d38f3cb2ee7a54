"""Shared utilities used across the service intake pipeline."""

import re
from typing import Iterable


def normalize_text(value: str) -> str:
    """Lower-case, trim, and collapse internal whitespace runs to one space.

    Examples:
        >>> normalize_text("  Trinidad   AND Tobago ")
        'trinidad and tobago'
    """
    return re.sub(r"\s+", " ", value.strip().lower())


def service_key(name: str) -> str:
    """Build the lookup key for a service name.

    Examples:
        >>> service_key("Driver License")
        'driver_license'
    """
    return re.sub(r"\s+", "_", name.strip().lower())


def is_blank(value: object) -> bool:
    """True when a value is missing or empty after trimming."""
    return value is None or str(value).strip() == ""


def is_decline(value: object, phrases: Iterable[str]) -> bool:
    """True when a value is one of the decline phrases (case and whitespace insensitive)."""
    if value is None:
        return False
    return normalize_text(str(value)) in {normalize_text(p) for p in phrases}
