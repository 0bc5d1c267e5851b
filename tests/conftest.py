"""Test configuration and fixtures."""

from typing import Any, AsyncGenerator, Generator, Protocol
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from fhir_records.clients.fhir_resource import get_fhir_resource_service
from fhir_records.main import app
from fhir_records.schemas.records import SearchResult
from fhir_records.services.fhir_resource_service import FHIRResourceService
from fhir_records.transform.flag import FlagRecord
from fhir_records.transform.vital_signs import VitalSignGroups


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Configure pytest-anyio to use asyncio."""
    return "asyncio"


FLAG_RESOURCE: dict[str, Any] = {
    "resourceType": "Flag",
    "id": "flag-1",
    "status": "active",
    "category": [
        {
            "coding": [
                {
                    "system": "http://terminology.hl7.org/CodeSystem/flag-category",
                    "code": "clinical",
                    "display": "Clinical",
                }
            ]
        }
    ],
    "code": {
        "coding": [
            {
                "system": "http://snomed.info/sct",
                "code": "390952000",
                "display": "Dust allergy",
            }
        ]
    },
    "subject": {"reference": "Patient/123"},
    "period": {"start": "2024-01-15T10:00:00Z"},
    "author": {"reference": "Practitioner/p-9"},
}


def make_bundle(
    *resources: dict[str, Any],
    total: int | None = None,
    next_url: str | None = None,
) -> dict[str, Any]:
    """Build a searchset Bundle around the given resources."""
    bundle: dict[str, Any] = {
        "resourceType": "Bundle",
        "type": "searchset",
        "entry": [{"resource": resource} for resource in resources],
    }
    if total is not None:
        bundle["total"] = total
    if next_url is not None:
        bundle["link"] = [{"relation": "next", "url": next_url}]
    return bundle


def make_observation(
    code: str,
    effective: str,
    value: float | None = None,
    unit: str = "",
    components: list[tuple[str, float]] | None = None,
) -> dict[str, Any]:
    """Build a vital-signs Observation resource."""
    observation: dict[str, Any] = {
        "resourceType": "Observation",
        "id": f"obs-{code}-{effective}",
        "status": "final",
        "category": [
            {
                "coding": [
                    {
                        "system": "http://terminology.hl7.org/CodeSystem/observation-category",
                        "code": "vital-signs",
                    }
                ]
            }
        ],
        "code": {"coding": [{"system": "http://loinc.org", "code": code}]},
        "subject": {"reference": "Patient/123"},
        "effectiveDateTime": effective,
    }
    if value is not None:
        observation["valueQuantity"] = {"value": value, "unit": unit}
    if components:
        observation["component"] = [
            {
                "code": {"coding": [{"system": "http://loinc.org", "code": component_code}]},
                "valueQuantity": {"value": component_value, "unit": "mmHg"},
            }
            for component_code, component_value in components
        ]
    return observation


@pytest.fixture
def flag_resource() -> dict[str, Any]:
    """A fully populated Flag resource."""
    return dict(FLAG_RESOURCE)


@pytest.fixture
def mock_fhir_resource_service() -> AsyncMock:
    """Mock FHIR resource service for testing."""
    mock = AsyncMock(spec=FHIRResourceService)

    flag = FlagRecord(
        id="flag-1",
        status="active",
        category_code="clinical",
        category_display="Clinical",
        code="390952000",
        display="Dust allergy",
        subject="123",
        period_start="2024-01-15T10:00:00Z",
        author="p-9",
    )
    mock.search.return_value = SearchResult[FlagRecord](entry=[flag], total=1)
    mock.get.return_value = flag
    mock.create.return_value = flag
    mock.update.return_value = flag
    mock.delete.return_value = None
    mock.search_vital_signs.return_value = VitalSignGroups()
    mock.health_check.return_value = True
    return mock


class ClientFactory(Protocol):
    """Protocol for client factory fixture."""

    def __call__(self) -> AsyncClient: ...


@pytest.fixture
def client_factory(
    mock_fhir_resource_service: AsyncMock,
) -> Generator[ClientFactory, None, None]:
    """Factory for creating test clients with mocked dependencies."""

    def _create_client() -> AsyncClient:
        app.dependency_overrides[get_fhir_resource_service] = (
            lambda: mock_fhir_resource_service
        )

        transport = ASGITransport(app=app, raise_app_exceptions=False)
        return AsyncClient(transport=transport, base_url="http://testserver")

    yield _create_client

    app.dependency_overrides.clear()


@pytest.fixture
async def client(
    client_factory: ClientFactory,
) -> AsyncGenerator[AsyncClient, None]:
    """Async client for testing endpoints."""
    async with client_factory() as c:
        yield c
