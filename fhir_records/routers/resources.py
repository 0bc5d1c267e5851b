"""
CRUD endpoints for every mapped resource kind.

Routers are generated from the mapper registry: the list endpoint takes the
mapper's list-request model as query parameters and answers with a
``SearchResult`` of its record model.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Query, Response, status

from fhir_records.routers.deps import FHIRResourceServiceDep
from fhir_records.schemas.records import SearchResult
from fhir_records.transform.base import ResourceMapper
from fhir_records.transform.registry import MAPPERS

# Resource type -> URL path segment
RESOURCE_PATHS = {
    "Flag": "flags",
    "List": "lists",
    "Observation": "observations",
    "Procedure": "procedures",
    "Condition": "conditions",
    "AllergyIntolerance": "allergy-intolerances",
    "Appointment": "appointments",
    "Encounter": "encounters",
    "MedicationRequest": "medication-requests",
    "Medication": "medications",
    "Practitioner": "practitioners",
    "Location": "locations",
    "Patient": "patients",
}


def build_resource_router(path: str, mapper: ResourceMapper[Any]) -> APIRouter:
    """Create list/read/create/update/delete endpoints for one mapper."""
    record_type = mapper.record_type
    request_type = mapper.list_request_type
    router = APIRouter(prefix=f"/{path}", tags=[mapper.resource_type])

    @router.get("", response_model=SearchResult[record_type])  # type: ignore[valid-type]
    async def search_resources(
        request: Annotated[request_type, Query()],  # type: ignore[valid-type]
        fhir_service: FHIRResourceServiceDep,
    ) -> Any:
        return await fhir_service.search(mapper, request)

    @router.get("/{resource_id}", response_model=record_type)
    async def read_resource(resource_id: str, fhir_service: FHIRResourceServiceDep) -> Any:
        return await fhir_service.get(mapper, resource_id)

    @router.post("", response_model=record_type, status_code=status.HTTP_201_CREATED)
    async def create_resource(
        record: record_type,  # type: ignore[valid-type]
        fhir_service: FHIRResourceServiceDep,
    ) -> Any:
        return await fhir_service.create(mapper, record)

    @router.put("/{resource_id}", response_model=record_type)
    async def update_resource(
        resource_id: str,
        record: record_type,  # type: ignore[valid-type]
        fhir_service: FHIRResourceServiceDep,
    ) -> Any:
        # The path id wins over any id in the body
        return await fhir_service.update(mapper, record.model_copy(update={"id": resource_id}))

    @router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_resource(resource_id: str, fhir_service: FHIRResourceServiceDep) -> Response:
        await fhir_service.delete(mapper, resource_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


routers = [
    build_resource_router(path, MAPPERS[resource_type])
    for resource_type, path in RESOURCE_PATHS.items()
]
