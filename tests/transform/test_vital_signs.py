"""Tests for the vital-signs aggregator."""

import pytest

from fhir_records.exceptions import UnsupportedResourceError
from fhir_records.transform.observation import ObservationRecord, observation_mapper
from fhir_records.transform.registry import MAPPERS, get_mapper
from fhir_records.transform.vital_signs import (
    BLOOD_PRESSURE,
    HEART_RATE,
    extract_blood_pressure,
    group_bundle_by_vital_code,
    group_by_vital_code,
    latest,
    latest_vital_signs,
)
from tests.conftest import FLAG_RESOURCE, make_bundle, make_observation


@pytest.fixture
def vitals_bundle() -> dict:
    """Three heart rates, one blood pressure panel and one unknown code."""
    return make_bundle(
        make_observation(HEART_RATE, "2024-01-01T08:00:00Z", value=70, unit="beats/minute"),
        make_observation(HEART_RATE, "2024-01-03T08:00:00Z", value=75, unit="beats/minute"),
        make_observation(HEART_RATE, "2024-01-02T08:00:00Z", value=72, unit="beats/minute"),
        make_observation(
            BLOOD_PRESSURE,
            "2024-01-02T08:00:00Z",
            components=[("8480-6", 120), ("8462-4", 80)],
        ),
        make_observation("2339-0", "2024-01-02T08:00:00Z", value=5.4, unit="mmol/L"),
        FLAG_RESOURCE,
    )


class TestGrouping:
    """Tests for grouping observations by code."""

    def test_groups_every_observation_in_order(self, vitals_bundle: dict) -> None:
        groups = group_bundle_by_vital_code(vitals_bundle)

        assert [o.value for o in groups.heart_rate] == [70, 75, 72]
        assert len(groups.blood_pressure) == 1
        assert groups.temperature == []
        assert [o.value for o in groups.other["2339-0"]] == [5.4]

    def test_bucket_lookup(self, vitals_bundle: dict) -> None:
        groups = group_bundle_by_vital_code(vitals_bundle)

        assert groups.bucket("heartRate") == groups.heart_rate
        assert groups.bucket("heart_rate") == groups.heart_rate
        assert groups.bucket(HEART_RATE) == groups.heart_rate
        assert groups.bucket("2339-0") == groups.other["2339-0"]
        assert groups.bucket("0000-0") == []

    def test_empty_input(self) -> None:
        groups = group_by_vital_code([])

        assert groups.heart_rate == []
        assert groups.other == {}
        assert group_bundle_by_vital_code(None).heart_rate == []

    def test_camel_case_json(self, vitals_bundle: dict) -> None:
        data = group_bundle_by_vital_code(vitals_bundle).model_dump(by_alias=True)

        assert len(data["heartRate"]) == 3
        assert "satO2" in data


class TestBloodPressure:
    """Tests for blood pressure extraction."""

    def test_extracts_components(self, vitals_bundle: dict) -> None:
        panel = group_bundle_by_vital_code(vitals_bundle).blood_pressure[0]

        pressure = extract_blood_pressure(panel)

        assert pressure.systolic == 120
        assert pressure.diastolic == 80

    def test_missing_components(self) -> None:
        pressure = extract_blood_pressure(ObservationRecord(code=BLOOD_PRESSURE))

        assert pressure.systolic is None
        assert pressure.diastolic is None


class TestLatest:
    """Tests for picking the most recent observation."""

    def test_latest_by_effective_time(self, vitals_bundle: dict) -> None:
        groups = group_bundle_by_vital_code(vitals_bundle)

        assert latest(groups.heart_rate).value == 75  # type: ignore[union-attr]

    def test_observations_without_time_lose(self) -> None:
        undated = ObservationRecord(code=HEART_RATE, value=1)
        dated = ObservationRecord(code=HEART_RATE, value=2, effective_date_time="2024-01-01")

        assert latest([undated, dated]) is dated
        assert latest([undated]) is undated
        assert latest([]) is None

    def test_mixed_offsets_compare(self) -> None:
        utc = ObservationRecord(value=1, effective_date_time="2024-01-01T10:00:00Z")
        local = ObservationRecord(value=2, effective_date_time="2024-01-01T17:30:00+08:00")

        assert latest([utc, local]) is utc

    def test_latest_vital_signs(self, vitals_bundle: dict) -> None:
        result = latest_vital_signs(group_bundle_by_vital_code(vitals_bundle))

        assert set(result) == {"heart_rate", "blood_pressure", "2339-0"}
        assert result["heart_rate"].value == 75


class TestRegistry:
    """Tests for the mapper registry."""

    def test_get_mapper(self) -> None:
        assert get_mapper("Observation") is observation_mapper
        assert len(MAPPERS) == 13

    def test_unknown_resource_type(self) -> None:
        with pytest.raises(UnsupportedResourceError):
            get_mapper("Basic")
