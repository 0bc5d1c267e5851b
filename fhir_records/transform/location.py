"""Location mapper."""

from typing import Any

from fhir_records.schemas.records import CamelModel, ListRequest, RecordModel
from fhir_records.transform.base import ResourceMapper
from fhir_records.transform.contact import build_telecom, is_valid_email, telecom_value
from fhir_records.transform.paths import get_bool, get_dict, get_list, get_number, get_str


class HoursOfOperation(CamelModel):
    days_of_week: list[str] = []
    all_day: bool = False
    opening_time: str | None = None
    closing_time: str | None = None


class LocationRecord(RecordModel):
    name: str = ""
    status: str = ""
    alias: list[str] = []
    description: str = ""
    contact_number: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    postal_code: str = ""
    country: str = ""
    longitude: float | None = None
    latitude: float | None = None
    altitude: float | None = None
    hours_of_operation: list[HoursOfOperation] = []
    last_updated: str | None = None


class LocationListRequest(ListRequest):
    status: str | None = None


def _extract_hours(hours: dict[str, Any]) -> HoursOfOperation:
    return HoursOfOperation(
        days_of_week=[day for day in get_list(hours, "daysOfWeek") if isinstance(day, str)],
        all_day=get_bool(hours, "allDay", default=False),
        opening_time=get_str(hours, "openingTime", default=None),
        closing_time=get_str(hours, "closingTime", default=None),
    )


def _build_hours(hours: HoursOfOperation) -> dict[str, Any]:
    wire: dict[str, Any] = {"daysOfWeek": list(hours.days_of_week), "allDay": hours.all_day}
    if hours.opening_time:
        wire["openingTime"] = hours.opening_time
    if hours.closing_time:
        wire["closingTime"] = hours.closing_time
    return wire


class LocationMapper(ResourceMapper[LocationRecord]):
    resource_type = "Location"
    record_type = LocationRecord
    list_request_type = LocationListRequest

    filter_params = {
        "page_size": "_count",
        "status": "status",
    }
    search_param = "name"

    required_fields = (
        ("name", "Name is required"),
        ("status", "Status is required"),
    )

    def extract_fields(self, resource: dict[str, Any]) -> dict[str, Any]:
        address = get_dict(resource, "address")
        position = get_dict(resource, "position")
        return {
            "name": get_str(resource, "name"),
            "status": get_str(resource, "status"),
            "alias": [alias for alias in get_list(resource, "alias") if isinstance(alias, str)],
            "description": get_str(resource, "description"),
            "contact_number": telecom_value(resource, "phone"),
            "email": telecom_value(resource, "email"),
            "address": ", ".join(str(line) for line in get_list(address, "line")),
            "city": get_str(address, "city"),
            "postal_code": get_str(address, "postalCode"),
            "country": get_str(address, "country"),
            "longitude": get_number(position, "longitude"),
            "latitude": get_number(position, "latitude"),
            "altitude": get_number(position, "altitude"),
            "hours_of_operation": [
                _extract_hours(hours)
                for hours in get_list(resource, "hoursOfOperation")
                if isinstance(hours, dict)
            ],
            "last_updated": get_str(resource, "meta", "lastUpdated", default=None),
        }

    def build_fields(self, record: LocationRecord, resource: dict[str, Any]) -> None:
        resource["name"] = record.name
        if record.status:
            resource["status"] = record.status
        if record.alias:
            resource["alias"] = list(record.alias)
        if record.description:
            resource["description"] = record.description
        resource["mode"] = "instance"

        telecom = build_telecom(record.contact_number, record.email)
        if telecom:
            resource["telecom"] = telecom

        if any((record.address, record.city, record.postal_code, record.country)):
            address: dict[str, Any] = {}
            if record.address:
                address["line"] = [record.address]
            for key, value in (
                ("city", record.city),
                ("postalCode", record.postal_code),
                ("country", record.country),
            ):
                if value:
                    address[key] = value
            resource["address"] = address

        # A position needs both coordinates; altitude is optional
        if record.longitude is not None and record.latitude is not None:
            position: dict[str, Any] = {
                "longitude": record.longitude,
                "latitude": record.latitude,
            }
            if record.altitude is not None:
                position["altitude"] = record.altitude
            resource["position"] = position

        if record.hours_of_operation:
            resource["hoursOfOperation"] = [
                _build_hours(hours) for hours in record.hours_of_operation
            ]

    def extra_validation(self, record: LocationRecord) -> list[str]:
        errors = []
        if record.longitude is not None and not -180 <= record.longitude <= 180:
            errors.append("Longitude must be between -180 and 180")
        if record.latitude is not None and not -90 <= record.latitude <= 90:
            errors.append("Latitude must be between -90 and 90")
        if record.email and not is_valid_email(record.email):
            errors.append("Email format is invalid")
        return errors


location_mapper = LocationMapper()
