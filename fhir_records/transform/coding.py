"""
Coded value helpers for FHIR Coding and CodeableConcept.

Flat records keep a single ``{system, code, display}`` triple taken from the
first coding. Additional codings are not preserved when a record is written
back.
"""

from dataclasses import dataclass
from typing import Any

from fhir_records.schemas.records import CamelModel
from fhir_records.transform.paths import get_dict, get_list, get_str

SNOMED_SYSTEM = "http://snomed.info/sct"
LOINC_SYSTEM = "http://loinc.org"
UCUM_SYSTEM = "http://unitsofmeasure.org"


class Coding(CamelModel):
    """A single coded value."""

    system: str = ""
    code: str = ""
    display: str = ""


class CodeableConcept(CamelModel):
    """A concept with all of its codings, for records that keep the full shape."""

    coding: list[Coding] = []
    text: str | None = None


def extract_coding(concept: Any, default_system: str = "") -> Coding:
    """
    Read the first coding of a CodeableConcept.

    Missing code and display become empty strings, a missing system becomes
    ``default_system``. Never raises, whatever ``concept`` holds.
    """
    first = get_dict(concept, "coding", 0)
    return Coding(
        system=get_str(first, "system", default=default_system),
        code=get_str(first, "code"),
        display=get_str(first, "display"),
    )


def extract_plain_coding(coding: Any, default_system: str = "") -> Coding:
    """Read a bare Coding (no ``coding`` array around it)."""
    return Coding(
        system=get_str(coding, "system", default=default_system),
        code=get_str(coding, "code"),
        display=get_str(coding, "display"),
    )


def build_codeable_concept(
    system: str,
    code: str,
    display: str,
    text: str | None = None,
) -> dict[str, Any]:
    """Build a CodeableConcept holding exactly one coding."""
    concept: dict[str, Any] = {
        "coding": [
            {
                "system": system,
                "code": code,
                "display": display,
            }
        ]
    }
    if text:
        concept["text"] = text
    return concept


def parse_codeable_concept(concept: Any) -> CodeableConcept | None:
    """Read a whole CodeableConcept, keeping every coding; None when absent."""
    if not isinstance(concept, dict):
        return None
    return CodeableConcept(
        coding=[
            extract_plain_coding(coding)
            for coding in get_list(concept, "coding")
            if isinstance(coding, dict)
        ],
        text=get_str(concept, "text", default=None),
    )


def parse_codeable_concepts(concepts: Any) -> list[CodeableConcept] | None:
    """Read a 0..* CodeableConcept element; None when the element is absent."""
    if not isinstance(concepts, list):
        return None
    parsed = [parse_codeable_concept(concept) for concept in concepts]
    return [concept for concept in parsed if concept is not None]


def dump_codeable_concept(concept: CodeableConcept) -> dict[str, Any]:
    """Write a CodeableConcept back to its wire form."""
    wire: dict[str, Any] = {
        "coding": [
            {
                "system": coding.system,
                "code": coding.code,
                "display": coding.display,
            }
            for coding in concept.coding
        ]
    }
    if concept.text:
        wire["text"] = concept.text
    return wire


@dataclass(frozen=True)
class CodeOption:
    """A selectable value offered to the UI (status, category, ...)."""

    value: str
    label: str
    system: str = ""


def display_for(options: tuple[CodeOption, ...], value: str) -> str:
    """Label of the option with ``value``; unknown values are returned as is."""
    for option in options:
        if option.value == value:
            return option.label
    return value
