"""Health check endpoint."""

from fastapi import APIRouter

from fhir_records.routers.deps import FHIRResourceServiceDep
from fhir_records.schemas.health import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    fhir_service: FHIRResourceServiceDep,
) -> HealthResponse:
    """Check service health including FHIR server connectivity."""
    fhir_server_healthy = await fhir_service.health_check()

    return HealthResponse(
        status="healthy" if fhir_server_healthy else "degraded",
        fhir_server=fhir_server_healthy,
    )
