"""
Patient mapper.

Patients carry two identifiers: the national id (``use=official``) and the
hospital MRN (``use=usual``).
"""

from typing import Any

from fhir_records.schemas.records import DateLike, ListRequest, RecordModel
from fhir_records.transform.base import ResourceMapper, SearchParams, render_param
from fhir_records.transform.contact import build_telecom, find_by, telecom_value
from fhir_records.transform.paths import format_fhir_date, get_bool, get_dict, get_list, get_str

IDENTIFIER_TYPE_SYSTEM = "http://terminology.hl7.org/CodeSystem/v2-0203"
NRIC_SYSTEM = "https://ica.gov.sg/nric"
MRN_SYSTEM = "https://yourhospital.com.sg/mrn"


class PatientRecord(RecordModel):
    mrn: str = ""
    name: str = ""
    active: bool = True
    gender: str = ""
    birthdate: DateLike | None = None
    id_type: str = ""
    id_number: str = ""
    contact_number: str = ""
    email: str = ""
    address: str = ""
    postal_code: str = ""
    country: str = ""


class PatientListRequest(ListRequest):
    mrn: str | None = None
    contact_number: str | None = None
    birthdate: DateLike | None = None


class PatientMapper(ResourceMapper[PatientRecord]):
    resource_type = "Patient"
    record_type = PatientRecord
    list_request_type = PatientListRequest

    sort_field_names = {
        "mrn": "identifier",
        "contactNumber": "telecom",
    }
    filter_params = {
        "contact_number": "phone",
        "birthdate": "birthdate",
    }

    required_fields = (("name", "Name is required"),)

    def extract_fields(self, resource: dict[str, Any]) -> dict[str, Any]:
        identifiers = get_list(resource, "identifier")
        usual = find_by(identifiers, "use", "usual")
        official = find_by(identifiers, "use", "official")
        first_identifier = get_str(resource, "identifier", 0, "value")
        address = get_dict(resource, "address", 0)
        lines = [str(line) for line in get_list(address, "line")[:2]]

        return {
            "mrn": get_str(usual, "value") or first_identifier,
            "name": get_str(resource, "name", 0, "text"),
            "active": get_bool(resource, "active", default=True),
            "gender": get_str(resource, "gender"),
            "birthdate": get_str(resource, "birthDate", default=None),
            "id_type": get_str(official, "type", "text"),
            "id_number": get_str(official, "value") or first_identifier,
            "contact_number": telecom_value(resource, "phone"),
            "email": telecom_value(resource, "email"),
            "address": ", ".join(lines),
            "postal_code": get_str(address, "postalCode"),
            "country": get_str(address, "country"),
        }

    def build_fields(self, record: PatientRecord, resource: dict[str, Any]) -> None:
        official: dict[str, Any] = {
            "use": "official",
            "type": {"coding": [{"system": IDENTIFIER_TYPE_SYSTEM, "code": "NI"}]},
            "system": NRIC_SYSTEM,
            "value": record.id_number,
        }
        if record.id_type:
            official["type"]["text"] = record.id_type
        resource["identifier"] = [
            official,
            {
                "use": "usual",
                "type": {"coding": [{"system": IDENTIFIER_TYPE_SYSTEM, "code": "MR"}]},
                "system": MRN_SYSTEM,
                "value": record.mrn,
            },
        ]
        resource["name"] = [{"text": record.name}]
        resource["active"] = record.active
        if record.gender:
            resource["gender"] = record.gender
        if record.birthdate:
            resource["birthDate"] = format_fhir_date(record.birthdate)

        telecom = build_telecom(record.contact_number, record.email, use=None)
        if telecom:
            resource["telecom"] = telecom

        if record.address or record.postal_code or record.country:
            address: dict[str, Any] = {"use": "home"}
            if record.postal_code:
                address["postalCode"] = record.postal_code
            if record.country:
                address["country"] = record.country
            if record.address:
                address["line"] = [
                    part.strip() for part in record.address.split(",") if part.strip()
                ]
            resource["address"] = [address]

    def extra_filters(self, request: PatientListRequest, params: SearchParams) -> None:
        # The server has no OR search, so free text and MRN share the identifier
        identifier = render_param(request.search) or render_param(request.mrn)
        if identifier:
            params["identifier"] = identifier


patient_mapper = PatientMapper()
