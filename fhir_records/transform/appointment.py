"""
Appointment mapper.

Appointments keep their CodeableConcepts whole (service category, type,
specialty) because scheduling screens show every coding, not just the first.
"""

from typing import Any

from pydantic import Field

from fhir_records.schemas.records import CamelModel, DateLike, ListRequest, RecordModel
from fhir_records.transform.base import ResourceMapper, SearchParams, render_param
from fhir_records.transform.coding import (
    CodeableConcept,
    dump_codeable_concept,
    parse_codeable_concept,
    parse_codeable_concepts,
)
from fhir_records.transform.paths import format_fhir_date, get_list, get_number, get_str
from fhir_records.transform.references import build_reference


class ParticipantActor(CamelModel):
    reference: str = ""  # full "Type/id" reference
    display: str | None = None


class AppointmentParticipant(CamelModel):
    actor: ParticipantActor = Field(default_factory=ParticipantActor)
    required: str = "required"
    status: str = "accepted"
    type: list[CodeableConcept] | None = None


class ReasonReference(CamelModel):
    reference: str = ""


class AppointmentRecord(RecordModel):
    status: str = "proposed"
    service_category: list[CodeableConcept] | None = None
    service_type: list[CodeableConcept] | None = None
    specialty: list[CodeableConcept] | None = None
    appointment_type: CodeableConcept | None = None
    reason_reference: list[ReasonReference] | None = None
    priority: int | None = None
    description: str | None = None
    start: DateLike = ""
    end: DateLike | None = None
    created: DateLike | None = None
    comment: str | None = None
    participant: list[AppointmentParticipant] = []


class AppointmentListRequest(ListRequest):
    patient_id: str | None = None
    practitioner_id: str | None = None
    location_id: str | None = None
    status: str | None = None
    start_date: DateLike | None = None
    end_date: DateLike | None = None


def _extract_participant(participant: dict[str, Any]) -> AppointmentParticipant:
    return AppointmentParticipant(
        actor=ParticipantActor(
            reference=get_str(participant, "actor", "reference"),
            display=get_str(participant, "actor", "display", default=None),
        ),
        required=get_str(participant, "required", default="required"),
        status=get_str(participant, "status", default="accepted"),
        type=parse_codeable_concepts(participant.get("type")),
    )


def _build_participant(participant: AppointmentParticipant) -> dict[str, Any]:
    actor: dict[str, Any] = {"reference": participant.actor.reference}
    if participant.actor.display:
        actor["display"] = participant.actor.display
    wire: dict[str, Any] = {
        "actor": actor,
        "required": participant.required,
        "status": participant.status,
    }
    if participant.type:
        wire["type"] = [dump_codeable_concept(concept) for concept in participant.type]
    return wire


class AppointmentMapper(ResourceMapper[AppointmentRecord]):
    resource_type = "Appointment"
    record_type = AppointmentRecord
    list_request_type = AppointmentListRequest

    sort_field_names = {"start": "date"}
    filter_params = {
        "location_id": "location",
        "status": "status",
    }
    search_param = "_text"

    required_fields = (
        ("status", "Status is required"),
        ("start", "Start time is required"),
    )

    def extract_fields(self, resource: dict[str, Any]) -> dict[str, Any]:
        priority = get_number(resource, "priority")
        return {
            "status": get_str(resource, "status", default="proposed"),
            "service_category": parse_codeable_concepts(resource.get("serviceCategory")),
            "service_type": parse_codeable_concepts(resource.get("serviceType")),
            "specialty": parse_codeable_concepts(resource.get("specialty")),
            "appointment_type": parse_codeable_concept(resource.get("appointmentType")),
            "reason_reference": (
                [
                    ReasonReference(reference=get_str(reason, "reference"))
                    for reason in get_list(resource, "reasonReference")
                ]
                if isinstance(resource.get("reasonReference"), list)
                else None
            ),
            "priority": int(priority) if priority is not None else None,
            "description": get_str(resource, "description", default=None),
            "start": get_str(resource, "start"),
            "end": get_str(resource, "end", default=None),
            "created": get_str(resource, "created", default=None),
            "comment": get_str(resource, "comment", default=None),
            "participant": [
                _extract_participant(participant)
                for participant in get_list(resource, "participant")
                if isinstance(participant, dict)
            ],
        }

    def build_fields(self, record: AppointmentRecord, resource: dict[str, Any]) -> None:
        if record.status:
            resource["status"] = record.status
        resource["start"] = format_fhir_date(record.start)
        resource["participant"] = [_build_participant(p) for p in record.participant]
        if record.end:
            resource["end"] = format_fhir_date(record.end)
        if record.created:
            resource["created"] = format_fhir_date(record.created)
        if record.service_category is not None:
            resource["serviceCategory"] = [
                dump_codeable_concept(concept) for concept in record.service_category
            ]
        if record.service_type is not None:
            resource["serviceType"] = [
                dump_codeable_concept(concept) for concept in record.service_type
            ]
        if record.specialty is not None:
            resource["specialty"] = [dump_codeable_concept(concept) for concept in record.specialty]
        if record.appointment_type is not None:
            resource["appointmentType"] = dump_codeable_concept(record.appointment_type)
        if record.reason_reference is not None:
            resource["reasonReference"] = [
                {"reference": reason.reference} for reason in record.reason_reference
            ]
        if record.priority is not None:
            resource["priority"] = record.priority
        if record.description:
            resource["description"] = record.description
        if record.comment:
            resource["comment"] = record.comment

    def extra_filters(self, request: AppointmentListRequest, params: SearchParams) -> None:
        # A practitioner filter replaces a patient filter; actor holds one reference
        if request.patient_id:
            params["actor"] = build_reference("Patient", request.patient_id)
        if request.practitioner_id:
            params["actor"] = build_reference("Practitioner", request.practitioner_id)

        bounds = []
        start = render_param(request.start_date)
        if start:
            bounds.append(f"ge{start}")
        end = render_param(request.end_date)
        if end:
            bounds.append(f"le{end}")
        if len(bounds) == 1:
            params["date"] = bounds[0]
        elif bounds:
            params["date"] = bounds

    def extra_validation(self, record: AppointmentRecord) -> list[str]:
        if not record.participant:
            return ["At least one participant is required"]
        return []


appointment_mapper = AppointmentMapper()
