"""Vital signs response schemas."""

from fhir_records.schemas.records import CamelModel
from fhir_records.transform.observation import ObservationRecord
from fhir_records.transform.vital_signs import BloodPressure, VitalSignGroups


class VitalSignsResponse(CamelModel):
    """All vital-sign observations of a patient plus the latest of each."""

    patient_id: str
    groups: VitalSignGroups
    latest: dict[str, ObservationRecord]
    # Systolic/diastolic of the latest blood-pressure panel, when there is one
    blood_pressure: BloodPressure | None = None
