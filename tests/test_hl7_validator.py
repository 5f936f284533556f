"""
Tests for HL7 v2.x message validation against the message grammar.
"""

import pytest

from hl7bridge.hl7 import ComplianceLevel, ValidationVerdict
from hl7bridge.hl7.grammar import MESSAGE_RULES, is_required, rule_for, supported_message_types

from fixtures.hl7_messages import (
    ACK,
    ADT_A01,
    ADT_MISSING_SEGMENTS,
    DFT_P03,
    MDM_T02,
    ORM_O01,
    ORU_R01,
    SIU_S12,
    UNKNOWN_TYPE,
    build_message,
    msh,
)


def test_adt_missing_evn_and_pv1(parser, validator):
    verdict = validator.validate(parser.parse(ADT_MISSING_SEGMENTS))

    assert verdict.valid is False
    assert "Missing required segment: EVN" in verdict.errors
    assert "Missing required segment: PV1" in verdict.errors
    assert verdict.compliance_level is ComplianceLevel.BASIC


def test_complete_adt_is_valid_enhanced(parser, validator):
    verdict = validator.validate(parser.parse(ADT_A01))

    assert verdict.valid is True
    assert verdict.errors == ()
    assert verdict.compliance_level is ComplianceLevel.ENHANCED


@pytest.mark.parametrize(
    "message, level",
    [
        (ORU_R01, ComplianceLevel.ENHANCED),
        (ORM_O01, ComplianceLevel.ENTERPRISE),
        (DFT_P03, ComplianceLevel.ENTERPRISE),
        (MDM_T02, ComplianceLevel.ENTERPRISE),
        (SIU_S12, ComplianceLevel.BASIC),
        (ACK, ComplianceLevel.BASIC),
    ],
)
def test_valid_messages_get_grammar_level(parser, validator, message, level):
    verdict = validator.validate(parser.parse(message))

    assert verdict.valid, verdict.errors
    assert verdict.compliance_level is level


def test_valid_iff_no_errors(parser, validator):
    for raw in (ADT_A01, ADT_MISSING_SEGMENTS, ORU_R01, "garbage", ""):
        verdict = validator.validate(parser.parse(raw))
        assert verdict.valid == (len(verdict.errors) == 0)


def test_unknown_message_type_warns_but_stays_valid(parser, validator):
    verdict = validator.validate(parser.parse(UNKNOWN_TYPE))

    assert verdict.valid is True
    assert verdict.warnings == ("Unrecognized message type: ZZZ",)
    assert verdict.compliance_level is ComplianceLevel.BASIC


def test_unexpected_segment_warns(parser, validator):
    message = build_message(msh("SIU^S12"), "SCH|APT1", "FT1|1")
    verdict = validator.validate(parser.parse(message))

    assert verdict.valid is True
    assert "Unexpected segment for SIU: FT1" in verdict.warnings


def test_unsupported_version_warns(parser, validator):
    message = build_message(msh("ACK", version="3.0"), "MSA|AA|1")
    verdict = validator.validate(parser.parse(message))

    assert verdict.valid is True
    assert "Unsupported HL7 version: 3.0" in verdict.warnings


def test_malformed_message_carries_parse_errors(parser, validator):
    verdict = validator.validate(parser.parse("PID|||1"))

    assert verdict.valid is False
    assert verdict.errors == ("Missing MSH segment: first segment is 'PID'",)
    assert verdict.compliance_level is ComplianceLevel.BASIC


def test_with_errors_supersedes_without_mutating(parser, validator):
    original = validator.validate(parser.parse(ADT_A01))
    superseded = original.with_errors(["Synthetic error"])

    assert original.valid is True
    assert original.errors == ()
    assert superseded.valid is False
    assert superseded.errors == ("Synthetic error",)
    assert superseded.compliance_level is ComplianceLevel.BASIC


def test_verdict_to_dict():
    verdict = ValidationVerdict(valid=True, compliance_level=ComplianceLevel.ENHANCED)

    assert verdict.to_dict() == {
        "valid": True,
        "errors": [],
        "warnings": [],
        "complianceLevel": "enhanced",
    }


class TestGrammar:
    """Message grammar lookups."""

    def test_all_rules_require_msh(self):
        for rule in MESSAGE_RULES.values():
            assert "MSH" in rule.required

    def test_supported_types(self):
        assert set(supported_message_types()) == {"ADT", "ORU", "ORM", "DFT", "MDM", "SIU", "VXU", "ACK"}

    def test_rule_for_unknown(self):
        assert rule_for("ZZZ") is None

    def test_is_required(self):
        assert is_required("PV1", "ADT")
        assert not is_required("NK1", "ADT")
        assert is_required("MSH", "ZZZ")
        assert not is_required("PID", "ZZZ")

    def test_rules_are_read_only(self):
        with pytest.raises(TypeError):
            MESSAGE_RULES["NEW"] = MESSAGE_RULES["ACK"]
