"""
Search bundle assembler.

Turns a FHIR searchset Bundle into a uniform ``SearchResult`` of flat
records, whatever the resource kind.
"""

from collections.abc import Callable
from typing import Any

from fhir_records.schemas.records import RecordModel, RecordT, SearchResult
from fhir_records.transform.paths import get_list, get_str


def from_bundle(
    bundle: dict[str, Any] | None,
    map_fn: Callable[[dict[str, Any]], RecordT],
    record_type: type[RecordT] | type[RecordModel] = RecordModel,
    resource_type: str | None = None,
) -> SearchResult[Any]:
    """
    Map every entry resource of a Bundle through ``map_fn``.

    Args:
        bundle: FHIR Bundle, typically of type searchset
        map_fn: Mapper from a wire resource to a UI record
        record_type: Record model used to parametrize the result
        resource_type: When given, entries of other types (e.g. included
            OperationOutcome resources) are skipped

    Returns:
        SearchResult with the mapped records, the server total (or the number
        of mapped records when the bundle carries none) and whether the
        bundle links to a next page
    """
    records: list[Any] = []
    for entry in get_list(bundle, "entry"):
        resource = entry.get("resource") if isinstance(entry, dict) else None
        if not isinstance(resource, dict):
            continue
        if resource_type and resource.get("resourceType") not in (None, resource_type):
            continue
        records.append(map_fn(resource))

    total = bundle.get("total") if isinstance(bundle, dict) else None
    if isinstance(total, bool) or not isinstance(total, int):
        total = len(records)

    return SearchResult[record_type](  # type: ignore[valid-type]
        entry=records,
        total=total,
        has_next_page=_has_next_link(bundle),
    )


def next_page_url(bundle: dict[str, Any] | None) -> str | None:
    """Return the URL of the bundle's ``next`` link, if any."""
    for link in get_list(bundle, "link"):
        if get_str(link, "relation") == "next":
            return get_str(link, "url", default=None)
    return None


def _has_next_link(bundle: dict[str, Any] | None) -> bool:
    """A ``next`` link means another page exists, even without a URL."""
    return any(get_str(link, "relation") == "next" for link in get_list(bundle, "link"))
