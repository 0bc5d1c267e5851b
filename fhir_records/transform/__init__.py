"""
FHIR resource mapping layer.

Each supported resource kind has a ``ResourceMapper`` that converts between
the wire resource and a flat UI record, and translates list requests into
server search parameters. Mappers are stateless module-level singletons.
"""

from fhir_records.transform.base import CodedField, ReferenceField, ResourceMapper
from fhir_records.transform.bundle import from_bundle, next_page_url
from fhir_records.transform.registry import MAPPERS, get_mapper
from fhir_records.transform.vital_signs import (
    extract_blood_pressure,
    group_bundle_by_vital_code,
    group_by_vital_code,
    latest,
    latest_vital_signs,
)

__all__ = [
    "CodedField",
    "MAPPERS",
    "ReferenceField",
    "ResourceMapper",
    "extract_blood_pressure",
    "from_bundle",
    "get_mapper",
    "group_bundle_by_vital_code",
    "group_by_vital_code",
    "latest",
    "latest_vital_signs",
    "next_page_url",
]
