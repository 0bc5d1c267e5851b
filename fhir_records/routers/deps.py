"""Shared dependencies for routers."""

from typing import Annotated

from fastapi import Depends

from fhir_records.clients.fhir_resource import get_fhir_resource_service
from fhir_records.services.fhir_resource_service import FHIRResourceService

# Typed dependency alias for use in endpoint signatures
FHIRResourceServiceDep = Annotated[FHIRResourceService, Depends(get_fhir_resource_service)]
