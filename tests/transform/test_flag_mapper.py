"""Tests for the Flag mapper."""

from typing import Any

from fhir_records.transform.coding import SNOMED_SYSTEM
from fhir_records.transform.flag import (
    FLAG_CATEGORY_SYSTEM,
    FlagListRequest,
    FlagRecord,
    category_display_for,
    flag_mapper,
)

COMPLETE_FLAG = FlagRecord(
    status="active",
    category_code="clinical",
    category_display="Clinical",
    code="390952000",
    display="Dust allergy",
    subject="123",
    period_start="2024-01-15T10:00:00Z",
    author="p-9",
)


class TestFlagFromFhir:
    """Tests for reading Flag resources."""

    def test_reads_full_resource(self, flag_resource: dict[str, Any]) -> None:
        record = flag_mapper.from_fhir(flag_resource)

        assert record.id == "flag-1"
        assert record.status == "active"
        assert record.category_code == "clinical"
        assert record.category_display == "Clinical"
        assert record.code == "390952000"
        assert record.display == "Dust allergy"
        assert record.subject == "123"
        assert record.author == "p-9"
        assert record.period_start == "2024-01-15T10:00:00Z"
        assert record.period_end is None

    def test_sparse_resource_uses_defaults(self) -> None:
        record = flag_mapper.from_fhir({"resourceType": "Flag"})

        assert record.id is None
        assert record.status == ""
        assert record.category_system == FLAG_CATEGORY_SYSTEM
        assert record.system == SNOMED_SYSTEM
        assert record.subject == ""

    def test_malformed_resource_does_not_raise(self) -> None:
        record = flag_mapper.from_fhir(
            {"category": "oops", "code": ["x"], "subject": 5, "period": None}
        )

        assert record.category_code == ""
        assert record.code == ""
        assert record.subject == ""

    def test_non_dict_input(self) -> None:
        record = flag_mapper.from_fhir(None)

        assert record.id is None


class TestFlagToFhir:
    """Tests for building Flag resources."""

    def test_builds_resource(self) -> None:
        resource = flag_mapper.to_fhir(COMPLETE_FLAG)

        assert resource["resourceType"] == "Flag"
        assert "id" not in resource
        assert resource["status"] == "active"
        assert resource["category"] == [
            {
                "coding": [
                    {"system": FLAG_CATEGORY_SYSTEM, "code": "clinical", "display": "Clinical"}
                ]
            }
        ]
        assert resource["code"]["coding"][0]["system"] == SNOMED_SYSTEM
        assert resource["subject"] == {"reference": "Patient/123"}
        assert resource["author"] == {"reference": "Practitioner/p-9"}
        assert resource["period"] == {"start": "2024-01-15T10:00:00Z"}

    def test_defaults_status_and_start(self) -> None:
        resource = flag_mapper.to_fhir({"code": "1", "subject": "123"})

        assert resource["status"] == "active"
        assert resource["period"]["start"]

    def test_id_is_dropped_on_create(self) -> None:
        record = COMPLETE_FLAG.model_copy(update={"id": "flag-1"})

        assert flag_mapper.to_fhir(record)["id"] == "flag-1"
        assert "id" not in flag_mapper.to_fhir(record, for_update=False)

    def test_round_trip(self, flag_resource: dict[str, Any]) -> None:
        record = flag_mapper.from_fhir(flag_resource)

        assert flag_mapper.from_fhir(flag_mapper.to_fhir(record)) == record


class TestFlagSearchParams:
    """Tests for Flag filters and sorting."""

    def test_map_filters(self) -> None:
        params = flag_mapper.map_filters(FlagListRequest(patient_id="123", status="active"))

        assert params == {"patient": "123", "status": "active"}

    def test_map_filters_accepts_camel_case_mapping(self) -> None:
        params = flag_mapper.map_filters({"patientId": "123", "search": "abc"})

        assert params == {"patient": "123", "identifier": "abc"}

    def test_unknown_filters_pass_through(self) -> None:
        params = flag_mapper.map_filters({"date": "ge2024-01-01", "status": ""})

        assert params == {"date": "ge2024-01-01"}

    def test_map_sort_fields(self) -> None:
        assert flag_mapper.map_sort_fields(["periodStart"], ["desc"]) == ["-date"]
        assert flag_mapper.map_sort_fields(["status"], ["asc"]) == ["status"]

    def test_missing_sort_direction_sorts_descending(self) -> None:
        assert flag_mapper.map_sort_fields(["periodStart"], []) == ["-date"]
        assert flag_mapper.map_sort_fields(["subject", "unknown"], ["asc"]) == [
            "patient",
            "-unknown",
        ]


class TestFlagValidation:
    """Tests for Flag validation."""

    def test_empty_flag_has_six_errors(self) -> None:
        errors = flag_mapper.validate(FlagRecord())

        assert len(errors) == 6
        assert "Status is required" in errors
        assert "Subject (Patient ID) is required" in errors

    def test_complete_flag_is_valid(self) -> None:
        assert flag_mapper.validate(COMPLETE_FLAG) == []

    def test_category_display(self) -> None:
        assert category_display_for("admin") == "Administrative"
        assert category_display_for("custom") == "custom"
