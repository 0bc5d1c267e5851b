"""
Practitioner mapper.

The UI shows a practitioner as a single display name with one specialty; the
wire form keeps HumanName parts and coded qualifications.
"""

import re
from datetime import date
from typing import Any

from fhir_records.schemas.records import ListRequest, RecordModel
from fhir_records.transform.base import ResourceMapper
from fhir_records.transform.contact import build_telecom, find_by, is_valid_email, telecom_value
from fhir_records.transform.paths import get_bool, get_dict, get_list, get_str

QUALIFICATION_SYSTEM = "http://terminology.hl7.org/CodeSystem/v2-0360"

SPECIALTY_CODES = {
    "Internal Medicine": "IM",
    "Cardiology": "CARD",
    "Emergency Medicine": "EMER",
    "Family Medicine": "FP",
    "Pediatrics": "PD",
    "Surgery": "SUR",
    "Orthopedics": "ORT",
    "Neurology": "NEUR",
    "Psychiatry": "PSY",
    "Radiology": "RAD",
    "Anesthesiology": "ANES",
    "Pathology": "PATH",
    "Medical Doctor": "MD",
    "Certified Nurse Practitioner": "CNP",
    "Registered Nurse": "RN",
    "Physical Therapist": "PT",
}

BIRTHDATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def specialty_code(specialty: str) -> str:
    """v2-0360 code for a specialty name; unknown specialties are coded as general."""
    return SPECIALTY_CODES.get(specialty, "GEN")


def join_name(name: dict[str, Any]) -> str:
    """Render a HumanName as "prefix given family"."""
    parts = [
        " ".join(str(part) for part in get_list(name, "prefix")),
        " ".join(str(part) for part in get_list(name, "given")),
        get_str(name, "family"),
    ]
    return " ".join(part for part in parts if part).strip()


class PractitionerRecord(RecordModel):
    name: str = ""
    gender: str = "unknown"
    birthdate: str = ""
    contact_number: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""
    active: bool = True
    specialty: str = ""
    qualifications: list[dict[str, Any]] | None = None
    last_updated: str | None = None


class PractitionerListRequest(ListRequest):
    active: bool | None = None
    # Not yet searchable: the server does not index qualifications
    specialty: str | None = None


class PractitionerMapper(ResourceMapper[PractitionerRecord]):
    resource_type = "Practitioner"
    record_type = PractitionerRecord
    list_request_type = PractitionerListRequest

    filter_params = {
        "page_size": "_count",
        "active": "active",
    }
    search_param = "name"

    required_fields = (
        ("name", "Name is required"),
        ("gender", "Gender is required"),
        ("birthdate", "Birth date is required"),
    )

    def extract_fields(self, resource: dict[str, Any]) -> dict[str, Any]:
        names = get_list(resource, "name")
        official = find_by(names, "use", "official") or get_dict(resource, "name", 0)
        addresses = get_list(resource, "address")
        address = (
            find_by(addresses, "use", "home")
            or find_by(addresses, "use", "work")
            or get_dict(resource, "address", 0)
        )
        qualification = get_dict(resource, "qualification", 0)
        qualifications = resource.get("qualification")

        return {
            "name": join_name(official) if official else "Unknown Practitioner",
            "gender": get_str(resource, "gender", default="unknown"),
            "birthdate": get_str(resource, "birthDate"),
            "contact_number": telecom_value(resource, "phone"),
            "email": telecom_value(resource, "email"),
            "address": ", ".join(str(line) for line in get_list(address, "line")),
            "city": get_str(address, "city"),
            "state": get_str(address, "state"),
            "postal_code": get_str(address, "postalCode"),
            "country": get_str(address, "country"),
            "active": get_bool(resource, "active", default=True),
            "specialty": get_str(qualification, "code", "coding", 0, "display")
            or get_str(qualification, "code", "text")
            or "General",
            "qualifications": (
                [item for item in qualifications if isinstance(item, dict)]
                if isinstance(qualifications, list)
                else None
            ),
            "last_updated": get_str(resource, "meta", "lastUpdated", default=None),
        }

    def build_fields(self, record: PractitionerRecord, resource: dict[str, Any]) -> None:
        # The last word is the family name, everything before it given names
        name_parts = record.name.split()
        human_name: dict[str, Any] = {
            "use": "official",
            "family": name_parts[-1] if name_parts else "",
        }
        if len(name_parts) > 1:
            human_name["given"] = name_parts[:-1]

        resource["active"] = record.active
        resource["name"] = [human_name]
        resource["gender"] = record.gender
        if record.birthdate:
            resource["birthDate"] = record.birthdate

        telecom = build_telecom(record.contact_number, record.email)
        if telecom:
            resource["telecom"] = telecom

        if any((record.address, record.city, record.state, record.postal_code, record.country)):
            address: dict[str, Any] = {"use": "home"}
            if record.address:
                address["line"] = [record.address]
            for key, value in (
                ("city", record.city),
                ("state", record.state),
                ("postalCode", record.postal_code),
                ("country", record.country),
            ):
                if value:
                    address[key] = value
            resource["address"] = [address]

        if record.specialty:
            resource["qualification"] = [
                {
                    "code": {
                        "coding": [
                            {
                                "system": QUALIFICATION_SYSTEM,
                                "code": specialty_code(record.specialty),
                                "display": record.specialty,
                            }
                        ]
                    },
                    "period": {"start": date.today().isoformat()},
                    "issuer": {"display": "Healthcare System"},
                }
            ]

    def extra_validation(self, record: PractitionerRecord) -> list[str]:
        errors = []
        if record.birthdate and not BIRTHDATE_PATTERN.match(record.birthdate):
            errors.append("Birth date must be in YYYY-MM-DD format")
        if record.email and not is_valid_email(record.email):
            errors.append("Email format is invalid")
        return errors


practitioner_mapper = PractitionerMapper()
