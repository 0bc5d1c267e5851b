"""
Observation mapper.

Covers simple quantity observations (heart rate, weight, ...) and panels whose
values live in components (blood pressure).
"""

from typing import Any

from pydantic import Field

from fhir_records.schemas.records import CamelModel, DateLike, ListRequest, RecordModel
from fhir_records.transform.base import ReferenceField, ResourceMapper
from fhir_records.transform.coding import (
    LOINC_SYSTEM,
    UCUM_SYSTEM,
    build_codeable_concept,
    extract_coding,
)
from fhir_records.transform.paths import format_fhir_date, get_dict, get_list, get_number, get_str

OBSERVATION_CATEGORY_SYSTEM = "http://terminology.hl7.org/CodeSystem/observation-category"
INTERPRETATION_SYSTEM = "http://terminology.hl7.org/CodeSystem/v3-ObservationInterpretation"

UCUM_CODES = {
    "beats/minute": "/min",
    "breaths/minute": "/min",
    "mmHg": "mm[Hg]",
    "%": "%",
    "C": "Cel",
    "kg": "kg",
    "m": "m",
    "kg/m2": "kg/m2",
    "meter": "m",
}

INTERPRETATION_CODES = {
    "Normal": "N",
    "High": "H",
    "Low": "L",
    "Critical": "C",
    "Below low normal": "L",
    "Above high normal": "H",
    "normal": "N",
    "high": "H",
    "low": "L",
    "critical": "C",
}


def ucum_code(unit: str | None) -> str:
    """UCUM code for a display unit; unknown units are used verbatim."""
    if not unit:
        return ""
    return UCUM_CODES.get(unit, unit)


def interpretation_code(interpretation: str | None) -> str:
    """v3 ObservationInterpretation code for a display text; unknown text means normal."""
    if not interpretation:
        return ""
    return INTERPRETATION_CODES.get(interpretation, "N")


class ObservationComponent(CamelModel):
    code: str = ""
    display: str = ""
    value: float = 0
    unit: str = ""
    interpretation: str | None = None


class ObservationRecord(RecordModel):
    patient_id: str = ""
    status: str = "final"
    category: str = ""
    code: str = ""
    display: str = ""
    text: str = ""
    effective_date_time: DateLike = ""
    value: float | None = None
    unit: str | None = None
    interpretation: str | None = None
    reference_range_low: float | None = None
    reference_range_high: float | None = None
    components: list[ObservationComponent] | None = None


class ObservationListRequest(ListRequest):
    patient: str | None = None
    patient_id: str | None = None
    status: str | None = None
    category: str | None = None
    code: str | None = None
    effective_date_time: DateLike | None = None
    count: int | None = Field(default=None, alias="_count")


def _quantity(value: float | None, unit: str | None) -> dict[str, Any]:
    return {
        "value": value,
        "unit": unit,
        "system": UCUM_SYSTEM,
        "code": ucum_code(unit),
    }


def _interpretation(text: str) -> list[dict[str, Any]]:
    return [
        build_codeable_concept(
            INTERPRETATION_SYSTEM, interpretation_code(text), text, text=text
        )
    ]


def _read_interpretation(element: Any) -> str | None:
    concept = get_dict(element, "interpretation", 0)
    return get_str(concept, "coding", 0, "display", default=None) or get_str(
        concept, "text", default=None
    )


class ObservationMapper(ResourceMapper[ObservationRecord]):
    resource_type = "Observation"
    record_type = ObservationRecord
    list_request_type = ObservationListRequest

    reference_fields = (
        ReferenceField(path=("subject",), attr="patient_id", target_type="Patient"),
    )

    sort_field_names = {
        "effectiveDateTime": "date",
        "code": "code",
        "status": "status",
    }
    # patient is listed after patient_id so it wins when both are given
    filter_params = {
        "patient_id": "patient",
        "patient": "patient",
        "status": "status",
        "category": "category",
        "code": "code",
        "effective_date_time": "date",
        "count": "_count",
    }
    # Free text is searched as a code for now
    search_param = "code"

    required_fields = (
        ("patient_id", "Patient ID is required"),
        ("code", "Code is required"),
        ("status", "Status is required"),
    )

    def extract_fields(self, resource: dict[str, Any]) -> dict[str, Any]:
        coding = extract_coding(resource.get("code"))
        quantity = get_dict(resource, "valueQuantity")
        reference_range = get_dict(resource, "referenceRange", 0)

        components = []
        for component in get_list(resource, "component"):
            # Only components carrying both a code and a quantity are kept
            if not get_dict(component, "code") or not get_dict(component, "valueQuantity"):
                continue
            component_coding = extract_coding(component["code"])
            components.append(
                ObservationComponent(
                    code=component_coding.code,
                    display=component_coding.display,
                    value=get_number(component, "valueQuantity", "value") or 0,
                    unit=get_str(component, "valueQuantity", "unit"),
                    interpretation=_read_interpretation(component),
                )
            )

        return {
            "status": get_str(resource, "status", default="final"),
            "category": get_str(resource, "category", 0, "coding", 0, "code"),
            "code": coding.code,
            "display": coding.display,
            "text": get_str(resource, "code", "text", default=coding.display),
            "effective_date_time": get_str(resource, "effectiveDateTime"),
            "value": get_number(quantity, "value"),
            "unit": get_str(quantity, "unit", default=None),
            "interpretation": _read_interpretation(resource),
            "reference_range_low": get_number(reference_range, "low", "value"),
            "reference_range_high": get_number(reference_range, "high", "value"),
            "components": components or None,
        }

    def build_fields(self, record: ObservationRecord, resource: dict[str, Any]) -> None:
        resource["status"] = record.status or "final"

        category = record.category or "vital-signs"
        category_display = "Vital Signs" if category == "vital-signs" else category
        resource["category"] = [
            build_codeable_concept(OBSERVATION_CATEGORY_SYSTEM, category, category_display)
        ]
        resource["code"] = build_codeable_concept(
            LOINC_SYSTEM, record.code, record.display, text=record.text or record.display
        )
        if record.effective_date_time:
            resource["effectiveDateTime"] = format_fhir_date(record.effective_date_time)

        if record.value is not None and record.unit:
            resource["valueQuantity"] = _quantity(record.value, record.unit)

        if record.interpretation:
            resource["interpretation"] = _interpretation(record.interpretation)

        if record.reference_range_low is not None or record.reference_range_high is not None:
            reference_range: dict[str, Any] = {}
            if record.reference_range_low is not None:
                reference_range["low"] = _quantity(record.reference_range_low, record.unit)
            if record.reference_range_high is not None:
                reference_range["high"] = _quantity(record.reference_range_high, record.unit)
            resource["referenceRange"] = [reference_range]

        if record.components:
            resource["component"] = [
                _build_component(component) for component in record.components
            ]


def _build_component(component: ObservationComponent) -> dict[str, Any]:
    wire: dict[str, Any] = {
        "code": build_codeable_concept(LOINC_SYSTEM, component.code, component.display),
        "valueQuantity": _quantity(component.value, component.unit),
    }
    if component.interpretation:
        wire["interpretation"] = _interpretation(component.interpretation)
    return wire


observation_mapper = ObservationMapper()
