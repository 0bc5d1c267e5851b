"""Telecom (ContactPoint) helpers shared by Patient, Practitioner and Location."""

import re
from typing import Any

from fhir_records.transform.paths import get_list, get_str

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def find_by(items: list[Any], key: str, value: str) -> dict[str, Any]:
    """First dict in ``items`` whose ``key`` equals ``value``, or an empty dict."""
    for item in items:
        if isinstance(item, dict) and item.get(key) == value:
            return item
    return {}


def telecom_value(resource: dict[str, Any], system: str) -> str:
    """Value of the first ContactPoint with the given system, or ""."""
    return get_str(find_by(get_list(resource, "telecom"), "system", system), "value")


def build_telecom(
    phone: str | None, email: str | None, use: str | None = "work"
) -> list[dict[str, str]]:
    """ContactPoints for the values that are set; empty when neither is."""
    telecom = []
    for system, value in (("phone", phone), ("email", email)):
        if value:
            point = {"system": system, "value": value}
            if use:
                point["use"] = use
            telecom.append(point)
    return telecom


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))
