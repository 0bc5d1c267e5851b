"""Custom exceptions for the fhir-records service."""


class FhirRecordsError(Exception):
    """Base exception for fhir-records errors."""

    pass


class MappingError(FhirRecordsError):
    """Error while building a record or resource from caller input."""

    pass


class RecordValidationError(FhirRecordsError):
    """A record failed its required-field checks before submission."""

    def __init__(self, errors: list[str], resource_type: str | None = None):
        self.errors = errors
        self.resource_type = resource_type
        subject = resource_type or "record"
        super().__init__(f"{subject} validation failed: {'; '.join(errors)}")


class UnsupportedResourceError(FhirRecordsError):
    """No mapper is registered for the requested resource type."""

    pass


class FhirServerError(FhirRecordsError):
    """The FHIR server returned a response that could not be used."""

    pass
