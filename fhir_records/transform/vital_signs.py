"""
Vital-signs aggregation.

Groups Observation records by LOINC code into named buckets (heart rate,
blood pressure, ...). Every observation is kept, in input order; picking the
most recent one is left to the caller (see ``latest``).
"""

from collections.abc import Iterable
from datetime import date, datetime, timezone
from typing import Any

from pydantic import Field

from fhir_records.schemas.records import CamelModel
from fhir_records.transform.observation import ObservationRecord, observation_mapper
from fhir_records.transform.paths import get_list

HEART_RATE = "8867-4"
BLOOD_PRESSURE = "85354-9"
SYSTOLIC_BP = "8480-6"
DIASTOLIC_BP = "8462-4"
SAT_O2 = "2708-6"
TEMPERATURE = "8310-5"
RESPIRATORY_RATE = "9279-1"
WEIGHT = "29463-7"
HEIGHT = "8302-2"
BMI = "39156-5"

# LOINC code -> bucket attribute
VITAL_SIGN_BUCKETS = {
    HEART_RATE: "heart_rate",
    BLOOD_PRESSURE: "blood_pressure",
    SAT_O2: "sat_o2",
    TEMPERATURE: "temperature",
    RESPIRATORY_RATE: "respiratory_rate",
    WEIGHT: "weight",
    HEIGHT: "height",
    BMI: "bmi",
}

VITAL_SIGN_DISPLAYS = {
    HEART_RATE: "Heart rate",
    BLOOD_PRESSURE: "Blood pressure panel with all children optional",
    SYSTOLIC_BP: "Systolic blood pressure",
    DIASTOLIC_BP: "Diastolic blood pressure",
    SAT_O2: "Oxygen saturation in Arterial blood",
    TEMPERATURE: "Body temperature",
    RESPIRATORY_RATE: "Respiratory rate",
    WEIGHT: "Body Weight",
    HEIGHT: "Body height",
    BMI: "Body mass index (BMI) [Ratio]",
}

VITAL_SIGN_UNITS = {
    HEART_RATE: "beats/minute",
    SYSTOLIC_BP: "mmHg",
    DIASTOLIC_BP: "mmHg",
    SAT_O2: "%",
    TEMPERATURE: "C",
    RESPIRATORY_RATE: "breaths/minute",
    WEIGHT: "kg",
    HEIGHT: "m",
    BMI: "kg/m2",
}


class VitalSignGroups(CamelModel):
    """Observations grouped by vital sign; codes outside the table land in ``other``."""

    heart_rate: list[ObservationRecord] = []
    blood_pressure: list[ObservationRecord] = []
    sat_o2: list[ObservationRecord] = []
    temperature: list[ObservationRecord] = []
    respiratory_rate: list[ObservationRecord] = []
    weight: list[ObservationRecord] = []
    height: list[ObservationRecord] = []
    bmi: list[ObservationRecord] = []
    other: dict[str, list[ObservationRecord]] = Field(default_factory=dict)

    def bucket(self, key: str) -> list[ObservationRecord]:
        """
        Look up a bucket by attribute name, camelCase name or LOINC code.

        Unknown keys are looked up in ``other`` and yield an empty list when
        no observation carried that code.
        """
        name = VITAL_SIGN_BUCKETS.get(key, key)
        field = _bucket_field(name)
        if field is not None:
            return getattr(self, field)
        return self.other.get(key, [])

    def named_buckets(self) -> dict[str, list[ObservationRecord]]:
        return {name: getattr(self, name) for name in VITAL_SIGN_BUCKETS.values()}


class BloodPressure(CamelModel):
    systolic: float | None = None
    diastolic: float | None = None


def _bucket_field(name: str) -> str | None:
    for field, info in VitalSignGroups.model_fields.items():
        if field == "other":
            continue
        if name in (field, info.alias):
            return field
    return None


def group_by_vital_code(observations: Iterable[ObservationRecord]) -> VitalSignGroups:
    """Group observations by code, keeping every observation in input order."""
    groups = VitalSignGroups()
    for observation in observations:
        name = VITAL_SIGN_BUCKETS.get(observation.code)
        if name is not None:
            getattr(groups, name).append(observation)
        else:
            groups.other.setdefault(observation.code, []).append(observation)
    return groups


def group_bundle_by_vital_code(bundle: dict[str, Any] | None) -> VitalSignGroups:
    """Map the Observation entries of a Bundle, then group them."""
    observations = [
        observation_mapper.from_fhir(entry["resource"])
        for entry in get_list(bundle, "entry")
        if isinstance(entry, dict)
        and isinstance(entry.get("resource"), dict)
        and entry["resource"].get("resourceType") == "Observation"
    ]
    return group_by_vital_code(observations)


def extract_blood_pressure(observation: ObservationRecord) -> BloodPressure:
    """Read systolic and diastolic values from a blood-pressure panel's components."""
    values = {component.code: component.value for component in observation.components or []}
    return BloodPressure(
        systolic=values.get(SYSTOLIC_BP),
        diastolic=values.get(DIASTOLIC_BP),
    )


def _effective_time(observation: ObservationRecord) -> datetime | None:
    value = observation.effective_date_time
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value:
        try:
            moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    # Naive times are taken as UTC so they compare with zoned ones
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def latest(observations: Iterable[ObservationRecord]) -> ObservationRecord | None:
    """
    The observation with the greatest effective time.

    Observations without a (parseable) time only win when no other has one;
    ties keep the earliest in input order.
    """
    best: ObservationRecord | None = None
    best_time: datetime | None = None
    for observation in observations:
        moment = _effective_time(observation)
        if best is None or (moment is not None and (best_time is None or moment > best_time)):
            best, best_time = observation, moment
    return best


def latest_vital_signs(groups: VitalSignGroups) -> dict[str, ObservationRecord]:
    """Most recent observation of every non-empty bucket, keyed by bucket name or code."""
    result: dict[str, ObservationRecord] = {}
    for name, observations in groups.named_buckets().items():
        observation = latest(observations)
        if observation is not None:
            result[name] = observation
    for code, observations in groups.other.items():
        observation = latest(observations)
        if observation is not None:
            result[code] = observation
    return result
