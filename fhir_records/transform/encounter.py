"""
Encounter mapper.

Servers in the wild return either R4 or R5 encounters, so extraction accepts
both shapes:

- 'class' is a Coding (R4), a CodeableConcept, or a list of them (R5)
- 'period' is 'actualPeriod' in R5
- participant 'individual' is 'actor' in R5
- 'reasonCode' is 'reason[].use' in R5
- 'diagnosis.condition' is a Reference (R4) or a list of CodeableReference (R5)

Encounters are always written in the R4 shape.
"""

from typing import Any

from pydantic import Field

from fhir_records.schemas.records import DateLike, ListRequest, RecordModel
from fhir_records.transform.base import ReferenceField, ResourceMapper
from fhir_records.transform.coding import (
    CodeableConcept,
    Coding,
    dump_codeable_concept,
    extract_coding,
    extract_plain_coding,
    parse_codeable_concept,
)
from fhir_records.transform.paths import format_fhir_date, get_dict, get_list, get_path, get_str
from fhir_records.transform.references import build_reference, parse_reference

ENCOUNTER_CLASS_SYSTEM = "http://terminology.hl7.org/CodeSystem/v3-ActCode"


class EncounterRecord(RecordModel):
    status: str = "planned"
    class_: Coding = Field(default_factory=Coding, alias="class")
    service_type: CodeableConcept | None = None
    priority: CodeableConcept | None = None
    patient_id: str = ""
    practitioner_ids: list[str] = []
    period_start: DateLike = ""
    period_end: DateLike | None = None
    location_ids: list[str] | None = None
    reason_code: list[CodeableConcept] | None = None
    condition_ids: list[str] | None = None


class EncounterListRequest(ListRequest):
    patient_id: str | None = None
    status: str | None = None
    practitioner_id: str | None = None
    location_id: str | None = None


def _extract_class(value: Any) -> Coding:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict) and "coding" in value:
        return extract_coding(value, ENCOUNTER_CLASS_SYSTEM)
    return extract_plain_coding(value, ENCOUNTER_CLASS_SYSTEM)


def _extract_service_type(value: Any) -> CodeableConcept | None:
    # R5 wraps the concept in a list of CodeableReference
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict) and isinstance(value.get("concept"), dict):
        value = value["concept"]
    return parse_codeable_concept(value)


def _extract_reasons(resource: dict[str, Any]) -> list[CodeableConcept] | None:
    if isinstance(resource.get("reasonCode"), list):
        concepts = [parse_codeable_concept(reason) for reason in resource["reasonCode"]]
    elif isinstance(resource.get("reason"), list):
        concepts = [
            parse_codeable_concept(use)
            for reason in resource["reason"]
            for use in get_list(reason, "use")
        ]
    else:
        return None
    return [concept for concept in concepts if concept is not None]


def _extract_condition_id(diagnosis: Any) -> str:
    condition = get_path(diagnosis, "condition")
    if isinstance(condition, list):
        reference = get_str(condition, 0, "reference", "reference")
    else:
        reference = get_str(condition, "reference")
    return parse_reference(reference, "Condition")


class EncounterMapper(ResourceMapper[EncounterRecord]):
    resource_type = "Encounter"
    record_type = EncounterRecord
    list_request_type = EncounterListRequest

    reference_fields = (
        ReferenceField(path=("subject",), attr="patient_id", target_type="Patient"),
    )

    sort_field_names = {
        "period.start": "date",
        "periodStart": "date",
    }
    filter_params = {
        "patient_id": "patient",
        "status": "status",
        "practitioner_id": "participant",
        "location_id": "location",
    }
    search_param = "_text"

    required_fields = (
        ("status", "Status is required"),
        ("patient_id", "Subject (Patient ID) is required"),
        ("period_start", "Period start date is required"),
    )

    def extract_fields(self, resource: dict[str, Any]) -> dict[str, Any]:
        period = get_dict(resource, "period") or get_dict(resource, "actualPeriod")
        locations = resource.get("location")
        diagnoses = resource.get("diagnosis")
        return {
            "status": get_str(resource, "status", default="planned"),
            "class_": _extract_class(resource.get("class")),
            "service_type": _extract_service_type(resource.get("serviceType")),
            "priority": parse_codeable_concept(resource.get("priority")),
            "practitioner_ids": [
                parse_reference(
                    get_str(participant, "individual", "reference")
                    or get_str(participant, "actor", "reference"),
                    "Practitioner",
                )
                for participant in get_list(resource, "participant")
            ],
            "period_start": get_str(period, "start"),
            "period_end": get_str(period, "end", default=None),
            "location_ids": (
                [
                    parse_reference(get_str(location, "location", "reference"), "Location")
                    for location in locations
                ]
                if isinstance(locations, list)
                else None
            ),
            "reason_code": _extract_reasons(resource),
            "condition_ids": (
                [_extract_condition_id(diagnosis) for diagnosis in diagnoses]
                if isinstance(diagnoses, list)
                else None
            ),
        }

    def build_fields(self, record: EncounterRecord, resource: dict[str, Any]) -> None:
        resource["status"] = record.status or "planned"
        resource["class"] = {
            "system": record.class_.system or ENCOUNTER_CLASS_SYSTEM,
            "code": record.class_.code,
            "display": record.class_.display,
        }
        resource["participant"] = [
            {"individual": {"reference": build_reference("Practitioner", practitioner_id)}}
            for practitioner_id in record.practitioner_ids
        ]
        period = {"start": format_fhir_date(record.period_start)}
        if record.period_end:
            period["end"] = format_fhir_date(record.period_end)
        resource["period"] = period

        if record.service_type is not None:
            resource["serviceType"] = dump_codeable_concept(record.service_type)
        if record.priority is not None:
            resource["priority"] = dump_codeable_concept(record.priority)
        if record.location_ids is not None:
            resource["location"] = [
                {"location": {"reference": build_reference("Location", location_id)}}
                for location_id in record.location_ids
            ]
        if record.reason_code is not None:
            resource["reasonCode"] = [
                dump_codeable_concept(reason) for reason in record.reason_code
            ]
        if record.condition_ids is not None:
            resource["diagnosis"] = [
                {"condition": {"reference": build_reference("Condition", condition_id)}}
                for condition_id in record.condition_ids
            ]


encounter_mapper = EncounterMapper()
