"""Tests for the List mapper and entry helpers."""

import pytest

from fhir_records.exceptions import MappingError
from fhir_records.transform.list_ import (
    LIST_CODE_SYSTEM,
    ListEntry,
    ListRecord,
    active_entries,
    add_entry,
    create_from_template,
    deleted_entries,
    list_mapper,
    mark_entry_deleted,
    remove_entry,
)

LIST_RESOURCE = {
    "resourceType": "List",
    "id": "list-1",
    "status": "current",
    "mode": "changes",
    "title": "Current Allergy List",
    "code": {"coding": [{"code": "allergies", "display": "Allergies"}]},
    "subject": {"reference": "Patient/123"},
    "date": "2024-02-01T08:00:00Z",
    "source": {"reference": "Practitioner/p-9"},
    "entry": [
        {"item": {"reference": "AllergyIntolerance/a1", "display": "Peanut"}},
        {"item": {"reference": "AllergyIntolerance/a2"}, "deleted": True},
    ],
    "note": [{"text": "Reviewed"}],
}


def _record(mode: str) -> ListRecord:
    return ListRecord(
        status="current",
        mode=mode,
        title="Allergies",
        code="allergies",
        subject="123",
        entries=[
            ListEntry(reference="a1", type="AllergyIntolerance"),
            ListEntry(reference="a2", type="AllergyIntolerance", deleted=True),
        ],
    )


class TestListFromFhir:
    """Tests for reading List resources."""

    def test_reads_entries(self) -> None:
        record = list_mapper.from_fhir(LIST_RESOURCE)

        assert record.code == "allergies"
        assert record.code_system == LIST_CODE_SYSTEM
        assert record.subject == "123"
        assert record.source == "p-9"
        assert record.note == "Reviewed"
        assert [(e.type, e.reference, e.deleted) for e in record.entries] == [
            ("AllergyIntolerance", "a1", False),
            ("AllergyIntolerance", "a2", True),
        ]
        assert record.entries[0].display == "Peanut"

    def test_missing_date_defaults_to_now(self) -> None:
        record = list_mapper.from_fhir({"resourceType": "List"})

        assert record.date
        assert record.entries == []


class TestListToFhir:
    """Tests for building List resources."""

    def test_deleted_only_written_in_changes_mode(self) -> None:
        changes = list_mapper.to_fhir(_record("changes"))
        working = list_mapper.to_fhir(_record("working"))

        assert changes["entry"][1]["deleted"] is True
        assert "deleted" not in changes["entry"][0]
        assert all("deleted" not in entry for entry in working["entry"])

    def test_defaults_and_references(self) -> None:
        resource = list_mapper.to_fhir(ListRecord(title="t", code="worklist", subject="123"))

        assert resource["status"] == "current"
        assert resource["mode"] == "working"
        assert resource["code"]["coding"][0]["display"] == "worklist"
        assert resource["subject"] == {"reference": "Patient/123"}
        assert "entry" not in resource
        assert "source" not in resource

    def test_list_paging_uses_count_only(self) -> None:
        params = list_mapper.map_filters({"patient": "123", "pageSize": 5})

        assert params == {"patient": "123", "_count": "5"}
        assert list_mapper.supports_offset is False


class TestListValidation:
    """Tests for List validation."""

    def test_entry_without_reference(self) -> None:
        record = _record("working")
        record.entries.append(ListEntry(type="Condition"))

        assert list_mapper.validate(record) == ["Entry 3: Reference is required"]

    def test_empty_list(self) -> None:
        assert len(list_mapper.validate(ListRecord())) == 5


class TestListEntries:
    """Tests for entry management helpers."""

    def test_add_entry_replaces_same_reference(self) -> None:
        record = _record("working")

        entry = ListEntry(reference="a1", type="AllergyIntolerance", display="x")
        updated = add_entry(record, entry)

        assert len(updated.entries) == 2
        assert updated.entries[0].display == "x"
        assert record.entries[0].display is None

    def test_remove_and_mark_deleted(self) -> None:
        record = _record("changes")

        assert [e.reference for e in remove_entry(record, "a1").entries] == ["a2"]
        marked = mark_entry_deleted(record, "a1", "AllergyIntolerance")
        assert active_entries(marked) == []
        assert len(deleted_entries(marked)) == 2

    def test_create_from_template(self) -> None:
        record = create_from_template("problems", "123")

        assert record.title == "Current Problem List"
        assert record.code_display == "Problem List"
        assert record.subject == "123"

    def test_create_from_unknown_template(self) -> None:
        with pytest.raises(MappingError):
            create_from_template("nope", "123")
