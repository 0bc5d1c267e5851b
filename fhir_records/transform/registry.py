"""Lookup of resource mappers by FHIR resource type."""

from typing import Any

from fhir_records.exceptions import UnsupportedResourceError
from fhir_records.transform.allergy_intolerance import allergy_intolerance_mapper
from fhir_records.transform.appointment import appointment_mapper
from fhir_records.transform.base import ResourceMapper
from fhir_records.transform.condition import condition_mapper
from fhir_records.transform.encounter import encounter_mapper
from fhir_records.transform.flag import flag_mapper
from fhir_records.transform.list_ import list_mapper
from fhir_records.transform.location import location_mapper
from fhir_records.transform.medication import medication_mapper
from fhir_records.transform.medication_request import medication_request_mapper
from fhir_records.transform.observation import observation_mapper
from fhir_records.transform.patient import patient_mapper
from fhir_records.transform.practitioner import practitioner_mapper
from fhir_records.transform.procedure import procedure_mapper

MAPPERS: dict[str, ResourceMapper[Any]] = {
    mapper.resource_type: mapper
    for mapper in (
        flag_mapper,
        list_mapper,
        observation_mapper,
        procedure_mapper,
        condition_mapper,
        allergy_intolerance_mapper,
        appointment_mapper,
        encounter_mapper,
        medication_request_mapper,
        medication_mapper,
        practitioner_mapper,
        location_mapper,
        patient_mapper,
    )
}


def get_mapper(resource_type: str) -> ResourceMapper[Any]:
    """
    Return the mapper registered for ``resource_type``.

    Raises:
        UnsupportedResourceError: If no mapper handles that resource type
    """
    try:
        return MAPPERS[resource_type]
    except KeyError:
        raise UnsupportedResourceError(
            f"No mapper registered for resource type {resource_type!r}"
        ) from None
