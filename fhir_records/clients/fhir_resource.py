"""Dependency injection provider for the FHIR resource service."""

from fhir_records.services.fhir_resource_service import FHIRResourceService

_fhir_resource_service: FHIRResourceService | None = None


def get_fhir_resource_service() -> FHIRResourceService:
    """Get or create the FHIRResourceService singleton."""
    global _fhir_resource_service
    if _fhir_resource_service is None:
        _fhir_resource_service = FHIRResourceService()
    return _fhir_resource_service


async def close_fhir_resource_service() -> None:
    """Close the singleton's HTTP client, if one was created."""
    global _fhir_resource_service
    if _fhir_resource_service is not None:
        await _fhir_resource_service.close()
        _fhir_resource_service = None
