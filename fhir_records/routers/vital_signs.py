"""Vital signs endpoint."""

from fastapi import APIRouter

from fhir_records.routers.deps import FHIRResourceServiceDep
from fhir_records.schemas.vital_signs import VitalSignsResponse
from fhir_records.transform.vital_signs import extract_blood_pressure, latest, latest_vital_signs

router = APIRouter(tags=["Vital Signs"])


@router.get("/patients/{patient_id}/vital-signs", response_model=VitalSignsResponse)
async def get_vital_signs(
    patient_id: str,
    fhir_service: FHIRResourceServiceDep,
) -> VitalSignsResponse:
    """Group a patient's vital-sign observations by code."""
    groups = await fhir_service.search_vital_signs(patient_id)
    latest_panel = latest(groups.blood_pressure)

    return VitalSignsResponse(
        patient_id=patient_id,
        groups=groups,
        latest=latest_vital_signs(groups),
        blood_pressure=extract_blood_pressure(latest_panel) if latest_panel else None,
    )
