"""
Flag mapper.

A Flag is a patient-level alert (drug allergy warning, fall risk, ...). The UI
keeps the first category and the first code, plus the patient and author ids.
"""

from typing import Any

from fhir_records.schemas.records import DateLike, ListRequest, RecordModel
from fhir_records.transform.base import CodedField, ReferenceField, ResourceMapper
from fhir_records.transform.coding import SNOMED_SYSTEM, CodeOption, Coding, display_for
from fhir_records.transform.paths import format_fhir_date, get_str, now_iso

FLAG_CATEGORY_SYSTEM = "http://terminology.hl7.org/CodeSystem/flag-category"

FLAG_STATUS_OPTIONS = (
    CodeOption("active", "Active"),
    CodeOption("inactive", "Inactive"),
    CodeOption("entered-in-error", "Entered in Error"),
)

FLAG_CATEGORY_OPTIONS = (
    CodeOption("diet", "Diet", FLAG_CATEGORY_SYSTEM),
    CodeOption("drug", "Drug", FLAG_CATEGORY_SYSTEM),
    CodeOption("lab", "Lab", FLAG_CATEGORY_SYSTEM),
    CodeOption("admin", "Administrative", FLAG_CATEGORY_SYSTEM),
    CodeOption("contact", "Subject", FLAG_CATEGORY_SYSTEM),
    CodeOption("clinical", "Clinical", FLAG_CATEGORY_SYSTEM),
    CodeOption("behavioral", "Behavioral", FLAG_CATEGORY_SYSTEM),
    CodeOption("research", "Research", FLAG_CATEGORY_SYSTEM),
    CodeOption("advance-directive", "Advance Directive", FLAG_CATEGORY_SYSTEM),
    CodeOption("safety", "Safety", FLAG_CATEGORY_SYSTEM),
)

COMMON_FLAG_CODES = (
    Coding(system=SNOMED_SYSTEM, code="134006", display="Decreased hair growth"),
    Coding(system=SNOMED_SYSTEM, code="271737000", display="Anemia"),
    Coding(system=SNOMED_SYSTEM, code="38341003", display="Hypertensive disorder"),
    Coding(system=SNOMED_SYSTEM, code="73211009", display="Diabetes mellitus"),
    Coding(system=SNOMED_SYSTEM, code="195967001", display="Asthma"),
    Coding(system=SNOMED_SYSTEM, code="56265001", display="Heart disease"),
    Coding(system=SNOMED_SYSTEM, code="363346000", display="Malignant neoplastic disease"),
    Coding(system=SNOMED_SYSTEM, code="271594007", display="Syncope"),
    Coding(system=SNOMED_SYSTEM, code="386661006", display="Fever"),
    Coding(system=SNOMED_SYSTEM, code="25064002", display="Headache"),
    Coding(system=SNOMED_SYSTEM, code="267036007", display="Dyspnea"),
    Coding(system=SNOMED_SYSTEM, code="422587007", display="Nausea"),
    Coding(system=SNOMED_SYSTEM, code="422400008", display="Vomiting"),
    Coding(system=SNOMED_SYSTEM, code="62315008", display="Diarrhea"),
    Coding(system=SNOMED_SYSTEM, code="22253000", display="Pain"),
)


class FlagRecord(RecordModel):
    status: str = ""
    category_code: str = ""
    category_display: str = ""
    category_system: str = FLAG_CATEGORY_SYSTEM
    code: str = ""
    display: str = ""
    system: str = SNOMED_SYSTEM
    subject: str = ""  # Patient id
    period_start: DateLike = ""
    period_end: DateLike | None = None
    author: str = ""  # Practitioner id


class FlagListRequest(ListRequest):
    patient_id: str | None = None
    status: str | None = None
    category: str | None = None
    code: str | None = None
    author: str | None = None


class FlagMapper(ResourceMapper[FlagRecord]):
    resource_type = "Flag"
    record_type = FlagRecord
    list_request_type = FlagListRequest

    coded_fields = (
        CodedField(
            path=("category", 0),
            code="category_code",
            display="category_display",
            system="category_system",
            default_system=FLAG_CATEGORY_SYSTEM,
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
        ReferenceField(path=("subject",), attr="subject", target_type="Patient"),
        ReferenceField(path=("author",), attr="author", target_type="Practitioner"),
    )

    sort_field_names = {
        "periodStart": "date",
        "status": "status",
        "category": "category",
        "code": "code",
        "subject": "patient",
        "author": "author",
    }
    filter_params = {
        "patient_id": "patient",
        "status": "status",
        "category": "category",
        "code": "code",
        "author": "author",
    }
    search_param = "identifier"

    required_fields = (
        ("status", "Status is required"),
        ("category_code", "Category is required"),
        ("code", "Code is required"),
        ("subject", "Subject (Patient ID) is required"),
        ("author", "Author (Practitioner ID) is required"),
        ("period_start", "Period start date is required"),
    )

    def extract_fields(self, resource: dict[str, Any]) -> dict[str, Any]:
        return {
            "status": get_str(resource, "status"),
            "period_start": get_str(resource, "period", "start"),
            "period_end": get_str(resource, "period", "end", default=None),
        }

    def build_fields(self, record: FlagRecord, resource: dict[str, Any]) -> None:
        resource["status"] = record.status or "active"
        # A flag without a start date starts now
        period: dict[str, Any] = {
            "start": format_fhir_date(record.period_start) if record.period_start else now_iso()
        }
        if record.period_end:
            period["end"] = format_fhir_date(record.period_end)
        resource["period"] = period


def category_display_for(code: str) -> str:
    return display_for(FLAG_CATEGORY_OPTIONS, code)


def status_display_for(code: str) -> str:
    return display_for(FLAG_STATUS_OPTIONS, code)


flag_mapper = FlagMapper()
