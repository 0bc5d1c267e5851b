"""Procedure mapper."""

from typing import Any

from fhir_records.schemas.records import DateLike, ListRequest, RecordModel
from fhir_records.transform.base import CodedField, ReferenceField, ResourceMapper
from fhir_records.transform.coding import SNOMED_SYSTEM, build_codeable_concept, extract_coding
from fhir_records.transform.paths import format_fhir_date, get_list, get_path, get_str, now_iso
from fhir_records.transform.references import build_reference, parse_reference

PROCEDURE_CATEGORY_SYSTEM = "http://terminology.hl7.org/CodeSystem/procedure-category"
PROCEDURE_OUTCOME_SYSTEM = "http://terminology.hl7.org/CodeSystem/procedure-outcome"
BODY_SITE_SYSTEM = "http://terminology.hl7.org/CodeSystem/body-site"

DEFAULT_CATEGORY_CODE = "387713003"
DEFAULT_CATEGORY_DISPLAY = "Surgical procedure"


class ProcedureRecord(RecordModel):
    patient_id: str = ""
    status: str = ""
    category_code: str = ""
    category_display: str = ""
    code: str = ""
    display: str = ""
    system: str = SNOMED_SYSTEM
    performed_date_time: DateLike = ""
    performer_ids: list[str] = []
    location_id: str | None = None
    body_site_code: str | None = None
    body_site_display: str | None = None
    body_site_system: str | None = None
    outcome_code: str | None = None
    outcome_display: str | None = None
    note: str | None = None


class ProcedureListRequest(ListRequest):
    patient_id: str | None = None
    status: str | None = None
    category: str | None = None
    performer: str | None = None
    location: str | None = None


class ProcedureMapper(ResourceMapper[ProcedureRecord]):
    resource_type = "Procedure"
    record_type = ProcedureRecord
    list_request_type = ProcedureListRequest

    coded_fields = (
        CodedField(
            path=("code",),
            code="code",
            display="display",
            system="system",
            default_system=SNOMED_SYSTEM,
        ),
        CodedField(
            path=("bodySite", 0),
            code="body_site_code",
            display="body_site_display",
            system="body_site_system",
            default_system=BODY_SITE_SYSTEM,
            optional=True,
        ),
        CodedField(
            path=("outcome",),
            code="outcome_code",
            display="outcome_display",
            default_system=PROCEDURE_OUTCOME_SYSTEM,
            optional=True,
        ),
    )
    reference_fields = (
        ReferenceField(path=("subject",), attr="patient_id", target_type="Patient"),
        ReferenceField(
            path=("location",), attr="location_id", target_type="Location", optional=True
        ),
    )

    sort_field_names = {
        "performedDateTime": "date",
        "status": "status",
        "category": "category",
        "code": "code",
        "performer": "performer",
        "location": "location",
    }
    filter_params = {
        "patient_id": "patient",
        "status": "status",
        "category": "category",
        "performer": "performer",
        "location": "location",
    }
    search_param = "code"

    required_fields = (
        ("patient_id", "Patient ID is required"),
        ("code", "Code is required"),
        ("status", "Status is required"),
    )

    def extract_fields(self, resource: dict[str, Any]) -> dict[str, Any]:
        # Servers return category either as a single concept or as a 0..* list
        category = get_path(resource, "category")
        if isinstance(category, list):
            category = category[0] if category else None
        category_coding = extract_coding(category)

        return {
            "status": get_str(resource, "status"),
            "category_code": category_coding.code,
            "category_display": category_coding.display,
            "performed_date_time": get_str(resource, "performedDateTime")
            or get_str(resource, "performedPeriod", "start"),
            "performer_ids": [
                parse_reference(get_str(performer, "actor", "reference"), "Practitioner")
                for performer in get_list(resource, "performer")
            ],
            "note": get_str(resource, "note", 0, "text", default=None),
        }

    def build_fields(self, record: ProcedureRecord, resource: dict[str, Any]) -> None:
        resource["status"] = record.status or "completed"
        resource["category"] = build_codeable_concept(
            PROCEDURE_CATEGORY_SYSTEM,
            record.category_code or DEFAULT_CATEGORY_CODE,
            record.category_display or DEFAULT_CATEGORY_DISPLAY,
        )
        resource["performedDateTime"] = (
            format_fhir_date(record.performed_date_time)
            if record.performed_date_time
            else now_iso()
        )
        if record.performer_ids:
            resource["performer"] = [
                {"actor": {"reference": build_reference("Practitioner", performer_id)}}
                for performer_id in record.performer_ids
            ]
        if record.note:
            resource["note"] = [{"text": record.note}]


procedure_mapper = ProcedureMapper()
