"""
Tests for HL7 v2.x to FHIR converter.
"""

from datetime import datetime

import pytest

from hl7bridge.hl7 import Encounter, Observation, Patient
from hl7bridge.hl7.fhir_converter import (
    format_hl7_date,
    map_encounter_class,
    map_encounter_status,
    map_gender,
    map_interpretation,
)
from hl7bridge.hl7.fhir_resources import LOINC_SYSTEM

from fixtures.hl7_messages import ACK, ADT_A01, ADT_MISSING_SEGMENTS, ORU_R01, build_message, msh


@pytest.fixture
def convert(parser, classifier, converter):
    def _convert(raw):
        message = parser.parse(raw)
        return converter.convert(message, classifier.classify(message))
    return _convert


def test_convert_adt_to_patient_and_encounter(convert):
    """Test converting ADT message to FHIR resources."""
    resources = convert(ADT_A01)

    assert [r.resource_type for r in resources] == ["Patient", "Encounter"]

    patient = resources[0]
    assert isinstance(patient, Patient)
    assert patient.id == "12345"
    assert patient.gender == "male"
    assert patient.birth_date == "1980-01-01"
    assert patient.family == "Doe"
    assert patient.given == ("John",)

    encounter = resources[1]
    assert isinstance(encounter, Encounter)
    assert encounter.status == "in-progress"
    assert encounter.class_code == "IMP"
    assert encounter.subject == "12345"
    assert encounter.location == "ICU"


def test_patient_fhir_json(convert):
    patient = convert(ADT_A01)[0].to_fhir()

    assert patient["resourceType"] == "Patient"
    assert patient["gender"] == "male"
    assert patient["birthDate"] == "1980-01-01"
    assert patient["identifier"] == [{"use": "usual", "value": "12345"}]
    assert patient["name"] == [{"use": "official", "family": "Doe", "given": ["John"]}]
    assert patient["address"] == [{
        "line": ["123 Main St"],
        "city": "Springfield",
        "state": "IL",
        "postalCode": "62701",
        "country": "USA",
    }]
    assert patient["meta"]["source"] == "App@Fac"
    assert patient["meta"]["lastUpdated"] == "2024-01-15T10:30:00"


def test_patient_from_message_missing_segments(convert):
    resources = convert(ADT_MISSING_SEGMENTS)

    patients = [r for r in resources if r.resource_type == "Patient"]
    assert len(patients) == 1
    assert patients[0].gender == "male"


def test_convert_oru_to_observations(convert):
    """Two OBX segments give exactly two Observations."""
    resources = convert(ORU_R01)
    observations = [r for r in resources if isinstance(r, Observation)]

    assert len(observations) == 2

    wbc, hgb = observations
    assert wbc.code == "6690-2"
    assert wbc.display == "WBC"
    assert wbc.system == LOINC_SYSTEM
    assert wbc.value == "7.5"
    assert wbc.units == "10*3/uL"
    assert wbc.reference_range == "4.0-11.0"
    assert wbc.interpretation == "Normal"
    assert not wbc.abnormal

    assert hgb.interpretation == "Critical Low"
    assert hgb.interpretation_code == "LL"
    assert hgb.abnormal
    assert hgb.critical
    assert hgb.subject == "12345"


def test_observation_fhir_json(convert):
    observation = [r for r in convert(ORU_R01) if r.resource_type == "Observation"][0].to_fhir()

    assert observation["status"] == "final"
    assert observation["code"]["coding"][0] == {"code": "6690-2", "display": "WBC", "system": LOINC_SYSTEM}
    assert observation["valueString"] == "7.5"
    assert observation["note"] == [{"text": "Units: 10*3/uL"}]
    assert observation["referenceRange"] == [{"text": "4.0-11.0"}]
    assert observation["subject"] == {"reference": "Patient/12345"}


def test_phi_resources_are_tagged_restricted(convert):
    for resource in convert(ORU_R01):
        security = resource.to_fhir()["meta"]["security"]
        assert security == [{
            "system": "http://terminology.hl7.org/CodeSystem/v3-Confidentiality",
            "code": "R",
            "display": "Restricted",
        }]


def test_non_phi_resources_are_untagged(convert):
    message = build_message(msh("SIU^S12"), "SCH|1", "PV1|1|O")
    resources = convert(message)

    assert [r.resource_type for r in resources] == ["Encounter"]
    assert resources[0].meta.security is None
    assert "security" not in resources[0].to_fhir()["meta"]


def test_message_without_convertible_segments(convert):
    assert convert(ACK) == []


def test_malformed_message_converts_to_nothing(convert):
    assert convert("not hl7") == []


def test_conversion_is_deterministic(convert):
    first = convert(ORU_R01)
    second = convert(ORU_R01)

    assert first == second
    assert [r.to_fhir() for r in first] == [r.to_fhir() for r in second]


def test_patient_without_identifier_gets_stable_id(convert):
    message = build_message(msh("ADT^A01"), "PID|||||Roe^Jane||19900202|F")
    first = convert(message)[0]
    second = convert(message)[0]

    assert first.id == second.id
    assert first.identifier is None
    assert first.gender == "female"


def test_last_updated_comes_from_message(convert):
    resource = convert(ADT_A01)[0]

    assert resource.meta.last_updated == datetime(2024, 1, 15, 10, 30, 0)


class TestMappings:
    """Lookup tables with explicit defaults."""

    @pytest.mark.parametrize(
        "code, expected",
        [("M", "male"), ("F", "female"), ("O", "other"), ("U", "unknown"), ("X", "unknown"),
         ("m", "unknown"), ("f", "unknown"), ("o", "unknown"), (" M ", "male"), ("", "unknown"), (None, "unknown")],
    )
    def test_gender(self, code, expected):
        assert map_gender(code) == expected

    @pytest.mark.parametrize(
        "code, expected",
        [("I", "IMP"), ("O", "AMB"), ("E", "EMER"), ("P", "PRENC"), ("B", "OBSENC"), ("Z", "AMB"), ("i", "AMB")],
    )
    def test_encounter_class(self, code, expected):
        assert map_encounter_class(code) == expected

    @pytest.mark.parametrize(
        "trigger, expected",
        [("A01", "in-progress"), ("A04", "in-progress"), ("A03", "finished"), ("A08", "planned")],
    )
    def test_encounter_status(self, trigger, expected):
        assert map_encounter_status(trigger) == expected

    @pytest.mark.parametrize(
        "flag, expected",
        [("H", "High"), ("L", "Low"), ("HH", "Critical High"), ("A", "Abnormal"), ("N", "Normal"), ("", "Normal"), ("hh", "Normal")],
    )
    def test_interpretation(self, flag, expected):
        assert map_interpretation(flag) == expected

    def test_format_hl7_date(self):
        assert format_hl7_date("19800101") == "1980-01-01"
        assert format_hl7_date("198001011200") == "1980-01-01"
        assert format_hl7_date("1980") is None
        assert format_hl7_date("") is None
