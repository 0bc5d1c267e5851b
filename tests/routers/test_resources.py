"""Tests for the resource CRUD endpoints."""

from unittest.mock import AsyncMock

import httpx
import pytest

from fhir_records.exceptions import RecordValidationError, UnsupportedResourceError
from fhir_records.transform.flag import FlagListRequest, flag_mapper
from fhir_records.transform.observation import ObservationRecord
from fhir_records.transform.vital_signs import HEART_RATE, VitalSignGroups
from tests.conftest import ClientFactory


class TestResourceEndpoints:
    """Tests for list/read/create/update/delete."""

    @pytest.mark.anyio
    async def test_list_flags(
        self,
        client_factory: ClientFactory,
        mock_fhir_resource_service: AsyncMock,
    ) -> None:
        """Query parameters are parsed into the Flag list request."""
        async with client_factory() as client:
            response = await client.get(
                "/flags",
                params={"patientId": "123", "status": "active", "page": 1, "pageSize": 5},
            )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["hasNextPage"] is False
        assert data["entry"][0]["categoryCode"] == "clinical"

        mapper, request = mock_fhir_resource_service.search.call_args.args
        assert mapper is flag_mapper
        assert isinstance(request, FlagListRequest)
        assert request.patient_id == "123"
        assert request.page_size == 5

    @pytest.mark.anyio
    async def test_read_flag(
        self,
        client_factory: ClientFactory,
        mock_fhir_resource_service: AsyncMock,
    ) -> None:
        async with client_factory() as client:
            response = await client.get("/flags/flag-1")

        assert response.status_code == 200
        assert response.json()["id"] == "flag-1"
        mock_fhir_resource_service.get.assert_called_once_with(flag_mapper, "flag-1")

    @pytest.mark.anyio
    async def test_create_flag(
        self,
        client_factory: ClientFactory,
        mock_fhir_resource_service: AsyncMock,
    ) -> None:
        async with client_factory() as client:
            response = await client.post(
                "/flags", json={"status": "active", "subject": "123", "periodStart": "2024-01-15"}
            )

        assert response.status_code == 201
        record = mock_fhir_resource_service.create.call_args.args[1]
        assert record.subject == "123"
        assert record.period_start == "2024-01-15"

    @pytest.mark.anyio
    async def test_update_uses_path_id(
        self,
        client_factory: ClientFactory,
        mock_fhir_resource_service: AsyncMock,
    ) -> None:
        async with client_factory() as client:
            response = await client.put("/flags/flag-1", json={"id": "other", "status": "inactive"})

        assert response.status_code == 200
        record = mock_fhir_resource_service.update.call_args.args[1]
        assert record.id == "flag-1"
        assert record.status == "inactive"

    @pytest.mark.anyio
    async def test_delete_flag(
        self,
        client_factory: ClientFactory,
        mock_fhir_resource_service: AsyncMock,
    ) -> None:
        async with client_factory() as client:
            response = await client.delete("/flags/flag-1")

        assert response.status_code == 204
        mock_fhir_resource_service.delete.assert_called_once_with(flag_mapper, "flag-1")

    @pytest.mark.anyio
    async def test_every_resource_kind_is_routed(self, client_factory: ClientFactory) -> None:
        async with client_factory() as client:
            for path in (
                "/lists",
                "/observations",
                "/procedures",
                "/conditions",
                "/allergy-intolerances",
                "/appointments",
                "/encounters",
                "/medication-requests",
                "/medications",
                "/practitioners",
                "/locations",
                "/patients",
            ):
                response = await client.delete(f"{path}/x")
                assert response.status_code == 204, path


class TestErrorHandling:
    """Tests for exception handlers."""

    @pytest.mark.anyio
    async def test_validation_error_returns_422(
        self,
        client_factory: ClientFactory,
        mock_fhir_resource_service: AsyncMock,
    ) -> None:
        mock_fhir_resource_service.create.side_effect = RecordValidationError(
            ["Status is required", "Code is required"], resource_type="Flag"
        )

        async with client_factory() as client:
            response = await client.post("/flags", json={})

        assert response.status_code == 422
        assert response.json() == {
            "detail": "Validation failed",
            "errors": ["Status is required", "Code is required"],
        }

    @pytest.mark.anyio
    async def test_upstream_status_is_passed_through(
        self,
        client_factory: ClientFactory,
        mock_fhir_resource_service: AsyncMock,
    ) -> None:
        request = httpx.Request("GET", "http://fhir.test/fhir/Flag/missing")
        upstream = httpx.Response(
            404, json={"resourceType": "OperationOutcome"}, request=request
        )
        mock_fhir_resource_service.get.side_effect = httpx.HTTPStatusError(
            "not found", request=request, response=upstream
        )

        async with client_factory() as client:
            response = await client.get("/flags/missing")

        assert response.status_code == 404
        assert response.json() == {"detail": {"resourceType": "OperationOutcome"}}

    @pytest.mark.anyio
    async def test_unreachable_server_returns_503(
        self,
        client_factory: ClientFactory,
        mock_fhir_resource_service: AsyncMock,
    ) -> None:
        mock_fhir_resource_service.search.side_effect = httpx.ConnectError("refused")

        async with client_factory() as client:
            response = await client.get("/flags")

        assert response.status_code == 503

    @pytest.mark.anyio
    async def test_unsupported_resource_returns_404(
        self,
        client_factory: ClientFactory,
        mock_fhir_resource_service: AsyncMock,
    ) -> None:
        mock_fhir_resource_service.get.side_effect = UnsupportedResourceError("Basic")

        async with client_factory() as client:
            response = await client.get("/flags/x")

        assert response.status_code == 404

    @pytest.mark.anyio
    async def test_unexpected_error_returns_500(
        self,
        client_factory: ClientFactory,
        mock_fhir_resource_service: AsyncMock,
    ) -> None:
        mock_fhir_resource_service.get.side_effect = RuntimeError("boom")

        async with client_factory() as client:
            response = await client.get("/flags/x")

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}


class TestVitalSignsEndpoint:
    """Tests for GET /patients/{id}/vital-signs."""

    @pytest.mark.anyio
    async def test_vital_signs(
        self,
        client_factory: ClientFactory,
        mock_fhir_resource_service: AsyncMock,
    ) -> None:
        groups = VitalSignGroups(
            heart_rate=[
                ObservationRecord(code=HEART_RATE, value=70, effective_date_time="2024-01-01"),
                ObservationRecord(code=HEART_RATE, value=75, effective_date_time="2024-01-02"),
            ]
        )
        mock_fhir_resource_service.search_vital_signs.return_value = groups

        async with client_factory() as client:
            response = await client.get("/patients/123/vital-signs")

        assert response.status_code == 200
        data = response.json()
        assert data["patientId"] == "123"
        assert len(data["groups"]["heartRate"]) == 2
        assert data["latest"]["heart_rate"]["value"] == 75
        assert data["bloodPressure"] is None
        mock_fhir_resource_service.search_vital_signs.assert_called_once_with("123")
