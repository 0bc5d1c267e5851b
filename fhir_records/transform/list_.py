"""
List mapper and entry management.

A FHIR List groups references to other resources (an allergy list, a
worklist, ...). Entries are flattened to ``{type, reference}`` pairs and the
``deleted`` marker is only meaningful for lists in ``changes`` mode.
"""

from typing import Any

from fhir_records.exceptions import MappingError
from fhir_records.schemas.records import CamelModel, DateLike, ListRequest, RecordModel
from fhir_records.transform.base import ReferenceField, ResourceMapper
from fhir_records.transform.coding import (
    CodeOption,
    build_codeable_concept,
    display_for,
    extract_coding,
)
from fhir_records.transform.paths import (
    format_fhir_date,
    get_bool,
    get_list,
    get_str,
    is_blank,
    now_iso,
)
from fhir_records.transform.references import build_reference, parse_reference, split_reference

LIST_CODE_SYSTEM = "https://r4.fhir.space/codesystem-list-example-codes.html"

LIST_STATUS_OPTIONS = (
    CodeOption("current", "Current"),
    CodeOption("retired", "Retired"),
    CodeOption("entered-in-error", "Entered in Error"),
)

LIST_MODE_OPTIONS = (
    CodeOption("working", "Working"),
    CodeOption("snapshot", "Snapshot"),
    CodeOption("changes", "Changes"),
)

LIST_CODE_OPTIONS = (
    CodeOption("alerts", "Alerts", LIST_CODE_SYSTEM),
    CodeOption("adverserxns", "Adverse Reactions", LIST_CODE_SYSTEM),
    CodeOption("allergies", "Allergies", LIST_CODE_SYSTEM),
    CodeOption("medications", "Medication List", LIST_CODE_SYSTEM),
    CodeOption("problems", "Problem List", LIST_CODE_SYSTEM),
    CodeOption("worklist", "Worklist", LIST_CODE_SYSTEM),
    CodeOption("waiting", "Waiting List", LIST_CODE_SYSTEM),
    CodeOption("protocols", "Protocols", LIST_CODE_SYSTEM),
    CodeOption("plans", "Care Plans", LIST_CODE_SYSTEM),
)


class ListEntry(CamelModel):
    reference: str = ""  # bare id
    type: str = ""  # resource type of the referenced item
    display: str | None = None
    deleted: bool = False
    date: DateLike | None = None


class ListRecord(RecordModel):
    status: str = ""
    mode: str = ""
    title: str = ""
    code: str = ""
    code_display: str = ""
    code_system: str = LIST_CODE_SYSTEM
    subject: str = ""  # Patient id
    date: DateLike = ""
    source: str | None = None  # Practitioner id
    entries: list[ListEntry] = []
    note: str | None = None


class ListTemplate(CamelModel):
    title: str
    code: str
    code_display: str
    status: str = "current"
    mode: str = "working"


COMMON_LIST_TEMPLATES = (
    ListTemplate(title="Current Allergy List", code="allergies", code_display="Allergies"),
    ListTemplate(title="Current Problem List", code="problems", code_display="Problem List"),
    ListTemplate(
        title="Current Medication List", code="medications", code_display="Medication List"
    ),
    ListTemplate(title="Current Care Plans", code="plans", code_display="Care Plans"),
    ListTemplate(
        title="Adverse Reactions List", code="adverserxns", code_display="Adverse Reactions"
    ),
)


class ListListRequest(ListRequest):
    patient: str | None = None
    code: str | None = None
    status: str | None = None
    title: str | None = None
    date: str | None = None


class ListMapper(ResourceMapper[ListRecord]):
    resource_type = "List"
    record_type = ListRecord
    list_request_type = ListListRequest

    reference_fields = (
        ReferenceField(path=("subject",), attr="subject", target_type="Patient"),
    )

    sort_field_names = {
        "date": "date",
        "title": "title",
        "code": "code",
        "status": "status",
    }
    filter_params = {
        "patient": "patient",
        "code": "code",
        "status": "status",
        "title": "title",
        "date": "date",
        # Lists page with _count only; the server ignores _offset here
        "page_size": "_count",
    }
    supports_offset = False

    required_fields = (
        ("title", "Title is required"),
        ("code", "Code is required"),
        ("subject", "Subject (Patient ID) is required"),
        ("status", "Status is required"),
        ("mode", "Mode is required"),
    )

    def extract_fields(self, resource: dict[str, Any]) -> dict[str, Any]:
        coding = extract_coding(resource.get("code"), LIST_CODE_SYSTEM)
        source = get_str(resource, "source", "reference")
        return {
            "status": get_str(resource, "status"),
            "mode": get_str(resource, "mode"),
            "title": get_str(resource, "title"),
            "code": coding.code,
            "code_display": coding.display,
            "code_system": coding.system,
            "date": get_str(resource, "date", default=None) or now_iso(),
            "source": parse_reference(source, "Practitioner") or None,
            "entries": [
                _extract_entry(entry)
                for entry in get_list(resource, "entry")
                if isinstance(entry, dict)
            ],
            "note": get_str(resource, "note", 0, "text", default=None),
        }

    def build_fields(self, record: ListRecord, resource: dict[str, Any]) -> None:
        mode = record.mode or "working"
        resource["meta"] = {"versionId": "1", "lastUpdated": now_iso()}
        resource["status"] = record.status or "current"
        resource["mode"] = mode
        resource["title"] = record.title
        resource["code"] = build_codeable_concept(
            record.code_system or LIST_CODE_SYSTEM,
            record.code,
            record.code_display or record.code,
        )
        resource["date"] = format_fhir_date(record.date) if record.date else now_iso()
        if record.source:
            resource["source"] = {"reference": build_reference("Practitioner", record.source)}
        if record.entries:
            resource["entry"] = [_build_entry(entry, mode) for entry in record.entries]
        if record.note:
            resource["note"] = [{"text": record.note, "time": now_iso()}]

    def extra_validation(self, record: ListRecord) -> list[str]:
        return [
            f"Entry {index}: Reference is required"
            for index, entry in enumerate(record.entries, start=1)
            if is_blank(entry.reference)
        ]


def _extract_entry(entry: dict[str, Any]) -> ListEntry:
    item_type, reference = split_reference(get_str(entry, "item", "reference"))
    return ListEntry(
        reference=reference,
        type=item_type,
        display=get_str(entry, "item", "display", default=None),
        deleted=get_bool(entry, "deleted", default=False),
        date=get_str(entry, "date", default=None),
    )


def _build_entry(entry: ListEntry, mode: str) -> dict[str, Any]:
    reference = f"{entry.type}/{entry.reference}" if entry.type else entry.reference
    item: dict[str, Any] = {"reference": reference}
    if entry.display:
        item["display"] = entry.display
    wire: dict[str, Any] = {"item": item}
    # Only a "changes" list can mark an entry as removed
    if mode == "changes" and entry.deleted:
        wire["deleted"] = True
    if entry.date:
        wire["date"] = format_fhir_date(entry.date)
    return wire


# ---------------------------------------------------------------------------
# Entry management. Records are immutable from the caller's point of view:
# every helper returns a new record.
# ---------------------------------------------------------------------------


def _matches(entry: ListEntry, reference: str, entry_type: str | None) -> bool:
    return entry.reference == reference and (not entry_type or entry.type == entry_type)


def add_entry(record: ListRecord, entry: ListEntry) -> ListRecord:
    """Append ``entry``, or replace the entry with the same type and reference."""
    entries = list(record.entries)
    for index, existing in enumerate(entries):
        if existing.reference == entry.reference and existing.type == entry.type:
            entries[index] = entry.model_copy()
            break
    else:
        entries.append(entry.model_copy())
    return record.model_copy(update={"entries": entries})


def remove_entry(record: ListRecord, reference: str, entry_type: str | None = None) -> ListRecord:
    entries = [entry for entry in record.entries if not _matches(entry, reference, entry_type)]
    return record.model_copy(update={"entries": entries})


def mark_entry_deleted(
    record: ListRecord, reference: str, entry_type: str | None = None
) -> ListRecord:
    entries = [
        entry.model_copy(update={"deleted": True})
        if _matches(entry, reference, entry_type)
        else entry
        for entry in record.entries
    ]
    return record.model_copy(update={"entries": entries})


def active_entries(record: ListRecord) -> list[ListEntry]:
    return [entry for entry in record.entries if not entry.deleted]


def deleted_entries(record: ListRecord) -> list[ListEntry]:
    return [entry for entry in record.entries if entry.deleted]


def code_display_for(code: str) -> str:
    return display_for(LIST_CODE_OPTIONS, code)


def code_system_for(code: str) -> str:
    for option in LIST_CODE_OPTIONS:
        if option.value == code:
            return option.system
    return LIST_CODE_SYSTEM


def create_from_template(
    template_code: str,
    subject: str,
    title: str | None = None,
    entries: list[ListEntry] | None = None,
) -> ListRecord:
    """
    Start a new list from one of the known list codes.

    Raises:
        MappingError: If ``template_code`` is not a known list code
    """
    option = next((option for option in LIST_CODE_OPTIONS if option.value == template_code), None)
    if option is None:
        raise MappingError(f"Invalid template code: {template_code}")
    return ListRecord(
        status="current",
        mode="working",
        title=title or f"Current {option.label}",
        code=option.value,
        code_display=option.label,
        code_system=option.system,
        subject=subject,
        date=now_iso(),
        entries=list(entries or []),
    )


list_mapper = ListMapper()
