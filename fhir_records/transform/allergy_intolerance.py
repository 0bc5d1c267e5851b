"""
AllergyIntolerance mapper.

Unlike most clinical resources the patient is referenced from ``patient``
rather than ``subject``.
"""

from typing import Any

from fhir_records.schemas.records import DateLike, ListRequest, RecordModel
from fhir_records.transform.base import CodedField, ReferenceField, ResourceMapper
from fhir_records.transform.coding import SNOMED_SYSTEM
from fhir_records.transform.paths import format_fhir_date, get_list, get_str, now_iso

ALLERGY_CLINICAL_SYSTEM = "http://terminology.hl7.org/CodeSystem/allergyintolerance-clinical"
ALLERGY_VERIFICATION_SYSTEM = (
    "http://terminology.hl7.org/CodeSystem/allergyintolerance-verification"
)

CLINICAL_STATUS_DISPLAYS = {
    "active": "Active",
    "inactive": "Inactive",
    "resolved": "Resolved",
}

VERIFICATION_STATUS_DISPLAYS = {
    "unconfirmed": "Unconfirmed",
    "confirmed": "Confirmed",
    "refuted": "Refuted",
    "entered-in-error": "Entered in Error",
}


class AllergyIntoleranceRecord(RecordModel):
    patient_id: str = ""
    clinical_status: str = ""
    verification_status: str = ""
    type: str = ""
    category: list[str] = []
    criticality: str = ""
    code: str = ""
    display: str = ""
    system: str = SNOMED_SYSTEM
    recorded_date: DateLike = ""
    note: str = ""


class AllergyIntoleranceListRequest(ListRequest):
    patient_id: str | None = None
    clinical_status: str | None = None
    verification_status: str | None = None
    type: str | None = None
    category: str | None = None
    criticality: str | None = None


class AllergyIntoleranceMapper(ResourceMapper[AllergyIntoleranceRecord]):
    resource_type = "AllergyIntolerance"
    record_type = AllergyIntoleranceRecord
    list_request_type = AllergyIntoleranceListRequest

    coded_fields = (
        CodedField(
            path=("clinicalStatus",),
            code="clinical_status",
            default_system=ALLERGY_CLINICAL_SYSTEM,
            default_code="active",
            default_display="Active",
            display_lookup=CLINICAL_STATUS_DISPLAYS,
        ),
        CodedField(
            path=("verificationStatus",),
            code="verification_status",
            default_system=ALLERGY_VERIFICATION_SYSTEM,
            default_code="unconfirmed",
            default_display="Unconfirmed",
            display_lookup=VERIFICATION_STATUS_DISPLAYS,
        ),
        CodedField(
            path=("code",),
            code="code",
            display="display",
            system="system",
            default_system=SNOMED_SYSTEM,
        ),
    )
    reference_fields = (
        ReferenceField(path=("patient",), attr="patient_id", target_type="Patient"),
    )

    sort_field_names = {
        "recordedDate": "date",
        "clinicalStatus": "clinical-status",
        "verificationStatus": "verification-status",
        "type": "type",
        "category": "category",
        "criticality": "criticality",
    }
    filter_params = {
        "patient_id": "patient",
        "clinical_status": "clinical-status",
        "verification_status": "verification-status",
        "type": "type",
        "category": "category",
        "criticality": "criticality",
    }
    search_param = "identifier"

    required_fields = (
        ("patient_id", "Patient ID is required"),
        ("code", "Code is required"),
    )

    def extract_fields(self, resource: dict[str, Any]) -> dict[str, Any]:
        return {
            # Free-text allergies often carry only code.text
            "display": get_str(resource, "code", "coding", 0, "display")
            or get_str(resource, "code", "text"),
            "type": get_str(resource, "type"),
            "category": [
                category for category in get_list(resource, "category") if isinstance(category, str)
            ],
            "criticality": get_str(resource, "criticality"),
            "recorded_date": get_str(resource, "recordedDate"),
            "note": get_str(resource, "note", 0, "text"),
        }

    def build_fields(self, record: AllergyIntoleranceRecord, resource: dict[str, Any]) -> None:
        resource["type"] = record.type or "allergy"
        resource["category"] = list(record.category) or ["food"]
        resource["criticality"] = record.criticality or "low"
        resource["recordedDate"] = (
            format_fhir_date(record.recorded_date) if record.recorded_date else now_iso()
        )
        if record.note:
            resource["note"] = [{"text": record.note}]


allergy_intolerance_mapper = AllergyIntoleranceMapper()
