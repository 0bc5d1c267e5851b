"""MedicationRequest mapper."""

from typing import Any

from fhir_records.schemas.records import DateLike, ListRequest, RecordModel
from fhir_records.transform.base import ReferenceField, ResourceMapper
from fhir_records.transform.paths import format_fhir_date, get_dict, get_number, get_str, now_iso
from fhir_records.transform.references import build_reference, parse_reference

DEFAULT_DOSAGE_TEXT = "Take as directed"


class MedicationRequestRecord(RecordModel):
    status: str = "draft"
    intent: str = "order"
    medication_id: str = ""
    medication_display: str = ""
    patient_id: str = ""
    practitioner_id: str = ""
    authored_on: DateLike = ""
    dosage_instruction_text: str = ""
    dosage_instruction_sequence: int = 1


class MedicationRequestListRequest(ListRequest):
    patient_id: str | None = None
    status: str | None = None
    intent: str | None = None
    medication_id: str | None = None
    practitioner_id: str | None = None
    authored_on: DateLike | None = None


class MedicationRequestMapper(ResourceMapper[MedicationRequestRecord]):
    resource_type = "MedicationRequest"
    record_type = MedicationRequestRecord
    list_request_type = MedicationRequestListRequest

    reference_fields = (
        ReferenceField(path=("subject",), attr="patient_id", target_type="Patient"),
        ReferenceField(path=("requester",), attr="practitioner_id", target_type="Practitioner"),
    )

    sort_field_names = {
        "authoredOn": "authored-on",
        "status": "status",
        "intent": "intent",
        "medicationId": "medication",
        "patientId": "patient",
        "practitionerId": "requester",
    }
    # Free text searches the medication; an explicit medication id overrides it
    filter_params = {
        "patient_id": "patient",
        "search": "medication",
        "status": "status",
        "intent": "intent",
        "medication_id": "medication",
        "practitioner_id": "requester",
        "authored_on": "authored-on",
    }

    required_fields = (
        ("patient_id", "Patient ID is required"),
        ("medication_id", "Medication is required"),
        ("practitioner_id", "Practitioner ID is required"),
    )

    def extract_fields(self, resource: dict[str, Any]) -> dict[str, Any]:
        # R4 medicationReference, R5 medication.reference
        medication = get_dict(resource, "medicationReference")
        if not medication:
            medication = get_dict(resource, "medication", "reference") or get_dict(
                resource, "medication"
            )
        sequence = get_number(resource, "dosageInstruction", 0, "sequence")
        return {
            "status": get_str(resource, "status", default="draft"),
            "intent": get_str(resource, "intent", default="order"),
            "medication_id": parse_reference(get_str(medication, "reference"), "Medication"),
            "medication_display": get_str(medication, "display"),
            "authored_on": get_str(resource, "authoredOn"),
            "dosage_instruction_text": get_str(resource, "dosageInstruction", 0, "text"),
            "dosage_instruction_sequence": int(sequence) if sequence else 1,
        }

    def build_fields(self, record: MedicationRequestRecord, resource: dict[str, Any]) -> None:
        resource["status"] = record.status or "draft"
        resource["intent"] = record.intent or "order"
        resource["medicationReference"] = {
            "reference": build_reference("Medication", record.medication_id),
            "display": record.medication_display,
        }
        resource["dosageInstruction"] = [
            {
                "sequence": record.dosage_instruction_sequence or 1,
                "text": record.dosage_instruction_text or DEFAULT_DOSAGE_TEXT,
            }
        ]
        resource["authoredOn"] = (
            format_fhir_date(record.authored_on) if record.authored_on else now_iso()
        )


medication_request_mapper = MedicationRequestMapper()
