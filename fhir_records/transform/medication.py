"""Medication (catalogue entry) mapper."""

from typing import Any

from fhir_records.schemas.records import ListRequest, RecordModel
from fhir_records.transform.base import CodedField, ResourceMapper
from fhir_records.transform.coding import SNOMED_SYSTEM
from fhir_records.transform.paths import get_str


class MedicationRecord(RecordModel):
    code: str = ""
    display: str = ""
    system: str = SNOMED_SYSTEM
    status: str = "active"
    form_code: str | None = None
    form_display: str | None = None
    form_system: str | None = None


class MedicationListRequest(ListRequest):
    code: str | None = None
    # Accepted from the UI but not searchable on the server; code covers it
    display: str | None = None
    status: str | None = None
    form: str | None = None


class MedicationMapper(ResourceMapper[MedicationRecord]):
    resource_type = "Medication"
    record_type = MedicationRecord
    list_request_type = MedicationListRequest

    coded_fields = (
        CodedField(
            path=("code",),
            code="code",
            display="display",
            system="system",
            default_system=SNOMED_SYSTEM,
        ),
        # form is R4 only; R5 servers simply omit it
        CodedField(
            path=("form",),
            code="form_code",
            display="form_display",
            system="form_system",
            default_system=SNOMED_SYSTEM,
            optional=True,
        ),
    )

    sort_field_names = {
        "code": "code",
        "display": "code",
        "status": "status",
        "form": "form",
    }
    filter_params = {
        "code": "code",
        "status": "status",
        "form": "form",
    }
    search_param = "code"

    required_fields = (("code", "Code is required"),)

    def extract_fields(self, resource: dict[str, Any]) -> dict[str, Any]:
        return {"status": get_str(resource, "status", default="active")}

    def build_fields(self, record: MedicationRecord, resource: dict[str, Any]) -> None:
        resource["status"] = record.status or "active"


medication_mapper = MedicationMapper()
