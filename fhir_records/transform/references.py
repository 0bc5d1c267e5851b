"""
FHIR relative reference helpers.

References are ``"ResourceType/id"`` strings. The UI carries bare ids, so
readers strip a fixed per-field prefix and writers add it back.
"""

import logging

logger = logging.getLogger(__name__)


def parse_reference(ref: str | None, expected_prefix: str | None = None) -> str:
    """
    Strip ``"<expected_prefix>/"`` from a reference.

    Any other reference (unprefixed, a different resource type, a urn:uuid)
    is returned unchanged so the caller can still display it.

    Args:
        ref: FHIR reference string, may be None
        expected_prefix: Resource type the field is expected to point at

    Returns:
        The bare id, or the original string when the prefix does not match
    """
    if not isinstance(ref, str):
        return ""
    if expected_prefix:
        prefix = f"{expected_prefix}/"
        if ref.startswith(prefix):
            return ref[len(prefix) :]
    return ref


def split_reference(ref: str | None) -> tuple[str, str]:
    """Split ``"Type/id"`` into ``("Type", "id")``; without a slash the type is empty."""
    if not isinstance(ref, str) or not ref:
        return "", ""
    if "/" in ref:
        # Versioned references ("Type/id/_history/n") keep only type and id
        parts = ref.split("/")
        return parts[0], parts[1]
    return "", ref


def build_reference(resource_type: str, resource_id: str | None) -> str:
    """
    Build ``"<resource_type>/<resource_id>"``.

    The id is not validated: an empty id yields ``"<resource_type>/"``.
    Callers run record validation before submission to catch it.
    """
    if not resource_id:
        logger.warning("Building %s reference without an id", resource_type)
        return f"{resource_type}/"
    return f"{resource_type}/{resource_id}"
