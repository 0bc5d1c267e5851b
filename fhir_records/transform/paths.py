"""
Tolerant accessors for FHIR JSON.

Clinical resources routinely omit optional elements, so every accessor here
degrades to a default instead of raising. Paths mix dict keys and list
indices, e.g. ``get_str(resource, "code", "coding", 0, "system")``.
"""

from datetime import date, datetime, timezone
from typing import Any

_MISSING = object()


def get_path(obj: Any, *path: str | int, default: Any = None) -> Any:
    """Walk ``path`` through nested dicts and lists, returning ``default`` on any miss."""
    current = obj
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or not -len(current) <= step < len(current):
                return default
            current = current[step]
        else:
            if not isinstance(current, dict):
                return default
            current = current.get(step, _MISSING)
            if current is _MISSING:
                return default
    if current is None:
        return default
    return current


def get_str(obj: Any, *path: str | int, default: Any = "") -> Any:
    """Return a non-empty string at ``path``; numbers are rendered with ``str()``."""
    value = get_path(obj, *path)
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str) and value:
        return value
    return default


def get_number(obj: Any, *path: str | int) -> int | float | None:
    """Return the int or float at ``path``, or None."""
    value = get_path(obj, *path)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def get_bool(obj: Any, *path: str | int, default: bool | None = None) -> bool | None:
    """Return the boolean at ``path``, or ``default``."""
    value = get_path(obj, *path)
    return value if isinstance(value, bool) else default


def get_list(obj: Any, *path: str | int) -> list[Any]:
    """Return the list at ``path``, or an empty list."""
    value = get_path(obj, *path)
    return value if isinstance(value, list) else []


def get_dict(obj: Any, *path: str | int) -> dict[str, Any]:
    """Return the dict at ``path``, or an empty dict."""
    value = get_path(obj, *path)
    return value if isinstance(value, dict) else {}


def set_path(resource: dict[str, Any], path: tuple[str | int, ...], value: Any) -> None:
    """
    Assign ``value`` at ``path``, creating intermediate containers.

    An integer step creates a single-element list, which is how FHIR 0..*
    elements are written when the UI only carries the first item.
    """
    current: Any = resource
    for index, step in enumerate(path):
        last = index == len(path) - 1
        next_step = None if last else path[index + 1]
        if isinstance(step, int):
            while len(current) <= step:
                current.append(None)
            if last:
                current[step] = value
            else:
                if not isinstance(current[step], (dict, list)):
                    current[step] = [] if isinstance(next_step, int) else {}
                current = current[step]
        else:
            if last:
                current[step] = value
            else:
                if not isinstance(current.get(step), (dict, list)):
                    current[step] = [] if isinstance(next_step, int) else {}
                current = current[step]


def format_fhir_date(value: str | date | datetime | None) -> str | None:
    """Render a date-like value as the ISO-8601 text FHIR expects."""
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def now_iso() -> str:
    """Current UTC time as an ISO-8601 timestamp with second precision."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def is_blank(value: Any) -> bool:
    """True for None, whitespace-only strings and empty collections."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return not value
    return False
