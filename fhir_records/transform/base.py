"""
Declarative base for resource mappers.

A mapper converts one FHIR resource kind to and from its flat UI record. The
repetitive parts (coded fields, references, sort names, search parameters,
required fields) are declared as tables on the subclass; resource-specific
structure goes in the ``extract_fields`` / ``build_fields`` hooks.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, ClassVar, Generic

from fhir_records.schemas.records import ListRequest, RecordT, SearchResult
from fhir_records.transform.bundle import from_bundle
from fhir_records.transform.coding import build_codeable_concept, extract_coding
from fhir_records.transform.paths import (
    format_fhir_date,
    get_path,
    get_str,
    is_blank,
    set_path,
)
from fhir_records.transform.references import build_reference, parse_reference


@dataclass(frozen=True)
class CodedField:
    """
    A CodeableConcept flattened into record attributes.

    ``path`` points at the concept; an integer step means the first item of a
    0..* element. ``code``/``display``/``system`` name record attributes
    (display and system may be None when the record does not keep them).
    """

    path: tuple[str | int, ...]
    code: str
    display: str | None = None
    system: str | None = None
    default_system: str = ""
    default_code: str = ""
    default_display: str = ""
    display_lookup: Mapping[str, str] | None = None
    optional: bool = False

    def read(self, resource: dict[str, Any]) -> dict[str, str | None]:
        concept = get_path(resource, *self.path)
        if self.optional and not isinstance(concept, dict):
            # Absent optional concepts read back as None, not as defaults
            return {attr: None for attr in (self.code, self.display, self.system) if attr}
        coding = extract_coding(concept, self.default_system)
        values: dict[str, str | None] = {self.code: coding.code}
        if self.display:
            values[self.display] = coding.display
        if self.system:
            values[self.system] = coding.system
        return values

    def write(self, record: Any, resource: dict[str, Any]) -> None:
        code = getattr(record, self.code, None) or ""
        if self.optional and not code:
            return
        code = code or self.default_code
        system = getattr(record, self.system, None) if self.system else None
        system = system or self.default_system
        display = getattr(record, self.display, None) if self.display else None
        if not display:
            if self.display_lookup is not None:
                display = self.display_lookup.get(code, self.default_display)
            else:
                display = self.default_display
        set_path(resource, self.path, build_codeable_concept(system, code, display))


@dataclass(frozen=True)
class ReferenceField:
    """A Reference flattened to a bare id on the record."""

    path: tuple[str | int, ...]
    attr: str
    target_type: str
    optional: bool = False

    def read(self, resource: dict[str, Any]) -> dict[str, str | None]:
        reference = get_str(resource, *self.path, "reference")
        if self.optional and not reference:
            return {self.attr: None}
        return {self.attr: parse_reference(reference, self.target_type)}

    def write(self, record: Any, resource: dict[str, Any]) -> None:
        value = getattr(record, self.attr, None)
        if self.optional and not value:
            return
        set_path(resource, self.path, {"reference": build_reference(self.target_type, value)})


# Search parameters; a list value is sent as a repeated parameter (date=ge..&date=le..)
SearchParams = dict[str, str | list[str]]


def render_param(value: Any) -> str | None:
    """Render a filter value as a query parameter string; None when unset."""
    if is_blank(value):
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return format_fhir_date(value)
    if isinstance(value, (list, tuple)):
        return ",".join(str(item) for item in value if not is_blank(item)) or None
    return str(value)


class ResourceMapper(Generic[RecordT]):
    """Bidirectional mapper between one FHIR resource kind and its UI record."""

    resource_type: ClassVar[str]
    record_type: type[RecordT]
    list_request_type: ClassVar[type[ListRequest]] = ListRequest

    coded_fields: ClassVar[tuple[CodedField, ...]] = ()
    reference_fields: ClassVar[tuple[ReferenceField, ...]] = ()

    # UI field name -> server sort parameter
    sort_field_names: ClassVar[Mapping[str, str]] = {}
    # List request attribute -> server search parameter (later entries win)
    filter_params: ClassVar[Mapping[str, str]] = {}
    # Server parameter that receives the free-text search, if supported
    search_param: ClassVar[str | None] = None
    # Whether the server honours _offset paging for this resource
    supports_offset: ClassVar[bool] = True
    # (record attribute, message) pairs checked by validate()
    required_fields: ClassVar[tuple[tuple[str, str], ...]] = ()

    # ------------------------------------------------------------------
    # Wire -> record
    # ------------------------------------------------------------------
    def from_fhir(self, resource: dict[str, Any] | None) -> RecordT:
        """
        Map a wire resource to a UI record.

        Total: missing or malformed elements become empty strings, None, or
        the documented per-field defaults.
        """
        if not isinstance(resource, dict):
            resource = {}
        fields: dict[str, Any] = {"id": get_str(resource, "id", default=None)}
        for coded in self.coded_fields:
            fields.update(coded.read(resource))
        for reference in self.reference_fields:
            fields.update(reference.read(resource))
        fields.update(self.extract_fields(resource))
        return self.record_type(**fields)

    def extract_fields(self, resource: dict[str, Any]) -> dict[str, Any]:
        """Resource-specific extraction; returns record attributes."""
        return {}

    # ------------------------------------------------------------------
    # Record -> wire
    # ------------------------------------------------------------------
    def to_fhir(
        self,
        record: RecordT | Mapping[str, Any],
        *,
        for_update: bool | None = None,
    ) -> dict[str, Any]:
        """
        Build the wire resource from a (possibly partial) record.

        Args:
            record: UI record, or a mapping of its fields
            for_update: False drops the id (create), True keeps it (update),
                None keeps it only when the record has one

        Returns:
            FHIR resource dict; optional elements are omitted, never null
        """
        record = self.coerce_record(record)
        resource: dict[str, Any] = {"resourceType": self.resource_type}
        record_id = (record.id or "").strip() if isinstance(record.id, str) else ""
        if for_update is not False and record_id:
            resource["id"] = record_id
        for coded in self.coded_fields:
            coded.write(record, resource)
        for reference in self.reference_fields:
            reference.write(record, resource)
        self.build_fields(record, resource)
        return resource

    def build_fields(self, record: RecordT, resource: dict[str, Any]) -> None:
        """Resource-specific construction; mutates ``resource`` in place."""
        return None

    def coerce_record(self, record: RecordT | Mapping[str, Any]) -> RecordT:
        """Accept either a record or a plain mapping of its fields."""
        if isinstance(record, self.record_type):
            return record
        return self.record_type.model_validate(record)

    # ------------------------------------------------------------------
    # Search parameters
    # ------------------------------------------------------------------
    def map_sort_fields(
        self,
        sort_fields: list[str],
        sort_directions: list[str] | None = None,
    ) -> list[str]:
        """
        Translate UI sort fields to server sort parameters.

        Unmapped names pass through. Only an explicit ``asc`` sorts
        ascending; any other or missing direction gets the ``-`` prefix.
        """
        directions = sort_directions or []
        mapped: list[str] = []
        for index, field in enumerate(sort_fields):
            name = self.sort_field_names.get(field, field)
            direction = directions[index] if index < len(directions) else None
            mapped.append(name if direction == "asc" else f"-{name}")
        return mapped

    def map_filters(self, request: ListRequest | Mapping[str, Any]) -> SearchParams:
        """
        Translate a list request into server search parameters.

        Only defined, non-empty values are emitted. Extra filters the request
        carries beyond its declared fields pass through unchanged.
        """
        request = self.coerce_request(request)
        params: SearchParams = {}
        for attr, param in self.filter_params.items():
            rendered = render_param(getattr(request, attr, None))
            if rendered is not None:
                params[param] = rendered
        if self.search_param:
            search = render_param(request.search)
            if search is not None:
                params[self.search_param] = search
        self.extra_filters(request, params)
        for key, value in (request.model_extra or {}).items():
            rendered = render_param(value)
            if rendered is not None:
                params[key] = rendered
        return params

    def extra_filters(self, request: Any, params: SearchParams) -> None:
        """Resource-specific filters that do not fit the parameter table."""
        return None

    def coerce_request(self, request: ListRequest | Mapping[str, Any]) -> Any:
        """Accept either a list request model or a plain mapping."""
        if isinstance(request, ListRequest):
            return request
        return self.list_request_type.model_validate(dict(request))

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def validate(self, record: RecordT | Mapping[str, Any]) -> list[str]:
        """Return human-readable messages for missing required fields."""
        record = self.coerce_record(record)
        errors = [
            message
            for attr, message in self.required_fields
            if is_blank(getattr(record, attr, None))
        ]
        errors.extend(self.extra_validation(record))
        return errors

    def extra_validation(self, record: RecordT) -> list[str]:
        """Resource-specific checks beyond required fields."""
        return []

    # ------------------------------------------------------------------
    # Bundles
    # ------------------------------------------------------------------
    def from_bundle(self, bundle: dict[str, Any] | None) -> SearchResult[RecordT]:
        """Map a search Bundle of this resource kind."""
        return from_bundle(
            bundle,
            self.from_fhir,
            record_type=self.record_type,
            resource_type=self.resource_type,
        )
