"""Condition mapper."""

from typing import Any

from fhir_records.schemas.records import DateLike, ListRequest, RecordModel
from fhir_records.transform.base import CodedField, ReferenceField, ResourceMapper
from fhir_records.transform.coding import SNOMED_SYSTEM
from fhir_records.transform.paths import format_fhir_date, get_str, now_iso

CLINICAL_STATUS_SYSTEM = "http://terminology.hl7.org/CodeSystem/condition-clinical"
VERIFICATION_STATUS_SYSTEM = "http://terminology.hl7.org/CodeSystem/condition-ver-status"
CONDITION_CATEGORY_SYSTEM = "http://terminology.hl7.org/CodeSystem/condition-category"

CLINICAL_STATUS_DISPLAYS = {
    "active": "Active",
    "recurrence": "Recurrence",
    "relapse": "Relapse",
    "inactive": "Inactive",
    "remission": "Remission",
    "resolved": "Resolved",
}

VERIFICATION_STATUS_DISPLAYS = {
    "unconfirmed": "Unconfirmed",
    "provisional": "Provisional",
    "differential": "Differential",
    "confirmed": "Confirmed",
    "refuted": "Refuted",
    "entered-in-error": "Entered in Error",
}

CATEGORY_DISPLAYS = {
    "problem-list-item": "Problem List Item",
    "encounter-diagnosis": "Encounter Diagnosis",
}

# SNOMED CT severity codes
SEVERITY_DISPLAYS = {
    "255604002": "Mild",
    "6736007": "Moderate",
    "24484000": "Severe",
}


class ConditionRecord(RecordModel):
    patient_id: str = ""
    clinical_status: str = ""
    verification_status: str = ""
    category: str = ""
    severity: str | None = None
    code: str = ""
    display: str = ""
    system: str = SNOMED_SYSTEM
    body_site_code: str | None = None
    body_site_display: str | None = None
    body_site_system: str | None = None
    recorded_date: DateLike = ""


class ConditionListRequest(ListRequest):
    patient_id: str | None = None
    clinical_status: str | None = None
    verification_status: str | None = None
    category: str | None = None
    severity: str | None = None


class ConditionMapper(ResourceMapper[ConditionRecord]):
    resource_type = "Condition"
    record_type = ConditionRecord
    list_request_type = ConditionListRequest

    coded_fields = (
        CodedField(
            path=("clinicalStatus",),
            code="clinical_status",
            default_system=CLINICAL_STATUS_SYSTEM,
            default_code="active",
            default_display="Active",
            display_lookup=CLINICAL_STATUS_DISPLAYS,
        ),
        CodedField(
            path=("verificationStatus",),
            code="verification_status",
            default_system=VERIFICATION_STATUS_SYSTEM,
            default_code="confirmed",
            default_display="Confirmed",
            display_lookup=VERIFICATION_STATUS_DISPLAYS,
        ),
        CodedField(
            path=("category", 0),
            code="category",
            default_system=CONDITION_CATEGORY_SYSTEM,
            default_code="encounter-diagnosis",
            default_display="Encounter Diagnosis",
            display_lookup=CATEGORY_DISPLAYS,
        ),
        CodedField(
            path=("severity",),
            code="severity",
            default_system=SNOMED_SYSTEM,
            default_display="Mild",
            display_lookup=SEVERITY_DISPLAYS,
            optional=True,
        ),
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
            default_system=SNOMED_SYSTEM,
            optional=True,
        ),
    )
    reference_fields = (
        ReferenceField(path=("subject",), attr="patient_id", target_type="Patient"),
    )

    sort_field_names = {
        "recordedDate": "recorded-date",
        "clinicalStatus": "clinical-status",
        "verificationStatus": "verification-status",
        "category": "category",
        "severity": "severity",
        "code": "code",
    }
    filter_params = {
        "patient_id": "patient",
        "clinical_status": "clinical-status",
        "verification_status": "verification-status",
        "category": "category",
        "severity": "severity",
    }
    search_param = "code"

    required_fields = (
        ("patient_id", "Patient ID is required"),
        ("code", "Code is required"),
    )

    def extract_fields(self, resource: dict[str, Any]) -> dict[str, Any]:
        return {"recorded_date": get_str(resource, "recordedDate")}

    def build_fields(self, record: ConditionRecord, resource: dict[str, Any]) -> None:
        resource["recordedDate"] = (
            format_fhir_date(record.recorded_date) if record.recorded_date else now_iso()
        )


condition_mapper = ConditionMapper()
