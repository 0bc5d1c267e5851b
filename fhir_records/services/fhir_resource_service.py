"""
FHIR resource service.

Talks to the FHIR server's REST API over httpx. Every resource kind goes
through the same calls; the resource's ``ResourceMapper`` supplies the wire
shape and the search parameters.
"""

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from fhir_records.exceptions import FhirServerError, RecordValidationError
from fhir_records.schemas.records import ListRequest, RecordT, SearchResult
from fhir_records.settings import settings
from fhir_records.transform.base import ResourceMapper, SearchParams
from fhir_records.transform.observation import ObservationListRequest, observation_mapper
from fhir_records.transform.vital_signs import VitalSignGroups, group_bundle_by_vital_code

logger = logging.getLogger(__name__)

FHIR_JSON = "application/fhir+json"

# Vital signs are fetched in one page; a patient rarely has more
VITAL_SIGNS_PAGE_SIZE = 200


class FHIRResourceService:
    """CRUD and search for mapped FHIR resources."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.fhir_server_url
        self.timeout = timeout or settings.fhir_timeout
        self.api_key = api_key if api_key is not None else settings.fhir_api_key
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the httpx async client."""
        if self._client is None:
            headers = {"Accept": FHIR_JSON}
            if self.api_key:
                headers["x-api-key"] = self.api_key
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the httpx client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def search(
        self,
        mapper: ResourceMapper[RecordT],
        request: ListRequest | Mapping[str, Any] | None = None,
    ) -> SearchResult[RecordT]:
        """
        Search resources of the mapper's kind.

        The query is sent as a form-encoded ``POST {type}/_search`` so long
        filter values never hit URL length limits.

        Args:
            mapper: Mapper of the resource kind to search
            request: Paging, sorting and filter values from the UI

        Returns:
            SearchResult of mapped records
        """
        list_request = mapper.coerce_request(request or {})
        params = self.build_search_params(mapper, list_request)

        client = await self._get_client()
        response = await client.post(f"{mapper.resource_type}/_search", data=params)
        response.raise_for_status()

        result = mapper.from_bundle(self._json(response))
        logger.info(
            "Searched %s: %d of %d records",
            mapper.resource_type,
            len(result.entry),
            result.total,
        )
        return result

    def build_search_params(
        self, mapper: ResourceMapper[Any], request: ListRequest
    ) -> SearchParams:
        """Search filters plus paging and sort parameters for one request."""
        params = mapper.map_filters(request)
        page_size = request.page_size or settings.default_page_size
        params.setdefault("_count", str(page_size))
        if mapper.supports_offset and request.page:
            params["_offset"] = str(request.page * page_size)
        if request.sort_fields:
            sort = mapper.map_sort_fields(request.sort_fields, list(request.sort_directions))
            params["_sort"] = ",".join(sort)
        return params

    async def get(self, mapper: ResourceMapper[RecordT], resource_id: str) -> RecordT:
        """Read a single resource by id."""
        client = await self._get_client()
        response = await client.get(f"{mapper.resource_type}/{resource_id}")
        response.raise_for_status()
        return mapper.from_fhir(self._json(response))

    async def create(
        self,
        mapper: ResourceMapper[RecordT],
        record: RecordT | Mapping[str, Any],
    ) -> RecordT:
        """
        Create a resource from a UI record.

        Returns:
            The record as stored by the server (server-assigned id included)

        Raises:
            RecordValidationError: If required fields are missing
        """
        record = self._validated(mapper, record)
        resource = mapper.to_fhir(record, for_update=False)

        client = await self._get_client()
        response = await client.post(
            mapper.resource_type,
            json=resource,
            headers={"Content-Type": FHIR_JSON},
        )
        response.raise_for_status()

        created = mapper.from_fhir(self._json(response))
        logger.info("Created %s/%s", mapper.resource_type, created.id)
        return created

    async def update(
        self,
        mapper: ResourceMapper[RecordT],
        record: RecordT | Mapping[str, Any],
    ) -> RecordT:
        """
        Replace a resource with the given record.

        Raises:
            RecordValidationError: If the record has no id or misses
                required fields
        """
        record = mapper.coerce_record(record)
        if not record.id:
            raise RecordValidationError(
                ["Id is required for update"], resource_type=mapper.resource_type
            )
        record = self._validated(mapper, record)
        resource = mapper.to_fhir(record, for_update=True)

        client = await self._get_client()
        response = await client.put(
            f"{mapper.resource_type}/{record.id}",
            json=resource,
            headers={"Content-Type": FHIR_JSON},
        )
        response.raise_for_status()

        logger.info("Updated %s/%s", mapper.resource_type, record.id)
        return mapper.from_fhir(self._json(response))

    async def delete(self, mapper: ResourceMapper[Any], resource_id: str) -> None:
        """Delete a resource by id."""
        client = await self._get_client()
        response = await client.delete(f"{mapper.resource_type}/{resource_id}")
        response.raise_for_status()
        logger.info("Deleted %s/%s", mapper.resource_type, resource_id)

    async def search_vital_signs(self, patient_id: str) -> VitalSignGroups:
        """Fetch a patient's vital-sign observations, newest first, grouped by code."""
        request = ObservationListRequest(
            patient_id=patient_id,
            category="vital-signs",
            page_size=VITAL_SIGNS_PAGE_SIZE,
            sort_fields=["effectiveDateTime"],
            sort_directions=["desc"],
        )
        params = self.build_search_params(observation_mapper, request)

        client = await self._get_client()
        response = await client.post("Observation/_search", data=params)
        response.raise_for_status()

        groups = group_bundle_by_vital_code(self._json(response))
        logger.info(
            "Fetched vital signs for patient %s: %d codes outside the vital-signs table",
            patient_id,
            len(groups.other),
        )
        return groups

    async def health_check(self) -> bool:
        """Check that the FHIR server answers its capability statement."""
        try:
            client = await self._get_client()
            response = await client.get("metadata")
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    @staticmethod
    def _validated(
        mapper: ResourceMapper[RecordT], record: RecordT | Mapping[str, Any]
    ) -> RecordT:
        record = mapper.coerce_record(record)
        errors = mapper.validate(record)
        if errors:
            logger.info("Rejected %s: %s", mapper.resource_type, "; ".join(errors))
            raise RecordValidationError(errors, resource_type=mapper.resource_type)
        return record

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError as e:
            raise FhirServerError(
                f"FHIR server returned a non-JSON body ({response.status_code})"
            ) from e
        if not isinstance(body, dict):
            raise FhirServerError("FHIR server returned a non-object JSON body")
        return body
