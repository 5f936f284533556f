"""
Tests for the post-conversion agent pipeline.
"""

from unittest.mock import patch

import pytest

from hl7bridge.agents import (
    AgentMetrics,
    AgentName,
    AgentPipeline,
    AgentStatus,
    ComplianceAgent,
    PipelineCancelled,
    PriorAuthAgent,
    SummarizerAgent,
)
from hl7bridge.config import get_compliance_policy

from fixtures.hl7_messages import (
    ACK,
    ADT_A01,
    DFT_P03,
    MDM_T02,
    ORM_O01,
    ORU_R01,
    build_message,
    msh,
)


@pytest.fixture
def run(parser, classifier, converter):
    def _run(raw, pipeline=None, **kwargs):
        message = parser.parse(raw)
        resources = converter.convert(message, classifier.classify(message))
        pipeline = pipeline or AgentPipeline([PriorAuthAgent(), SummarizerAgent(), ComplianceAgent(get_compliance_policy("US"))])
        return pipeline.run(message, resources, **kwargs)
    return _run


def agents_of(results):
    return [r.agent for r in results]


def test_oru_runs_summarizer_and_compliance(run):
    results = run(ORU_R01)

    assert agents_of(results) == [AgentName.SUMMARIZER, AgentName.COMPLIANCE]


def test_orm_runs_prior_auth_and_compliance(run):
    results = run(ORM_O01)

    assert agents_of(results) == [AgentName.PRIOR_AUTH, AgentName.COMPLIANCE]


def test_adt_runs_only_compliance(run):
    assert agents_of(run(ADT_A01)) == [AgentName.COMPLIANCE]


def test_result_order_is_fixed_regardless_of_agent_list_order(run):
    results = run(ORM_O01)

    assert results[0].agent is AgentName.PRIOR_AUTH
    assert results[-1].agent is AgentName.COMPLIANCE


def test_faulting_agent_is_isolated(run):
    """A raising stage yields a failed result and later stages still run."""
    with patch.object(SummarizerAgent, "evaluate", side_effect=RuntimeError("model offline")):
        results = run(ORU_R01)

    assert agents_of(results) == [AgentName.SUMMARIZER, AgentName.COMPLIANCE]

    failed = results[0]
    assert failed.status is AgentStatus.FAILED
    assert failed.message == "Summarizer agent failed: model offline"
    assert failed.compliance_validated is False
    assert failed.metrics == AgentMetrics()
    assert not failed.succeeded

    assert results[1].status is AgentStatus.PROCESSED


def test_failed_agent_message_is_redacted(run):
    with patch.object(SummarizerAgent, "evaluate", side_effect=ValueError("bad PID|||12345||Doe^John")):
        failed = run(ORU_R01)[0]

    assert failed.status is AgentStatus.FAILED
    assert failed.message.startswith("Summarizer agent failed: bad ")
    assert "Doe^John" not in failed.message
    assert "REDACTED" in failed.message


def test_processing_time_is_measured(run):
    for result in run(ORU_R01):
        assert result.processing_time_ms >= 0


def test_cancellation_before_first_stage(run):
    with pytest.raises(PipelineCancelled):
        run(ORU_R01, should_cancel=lambda: True)


def test_cancellation_between_stages(run):
    calls = []

    def should_cancel():
        calls.append(1)
        return len(calls) > 1

    with pytest.raises(PipelineCancelled, match="Compliance"):
        run(ORU_R01, should_cancel=should_cancel)


def test_catalogue_lists_agents_in_order():
    catalogue = AgentPipeline().catalogue()

    assert [a["name"] for a in catalogue] == ["PriorAuth", "Summarizer", "Compliance"]
    assert catalogue[0]["messageTypes"] == ["DFT", "ORM"]
    assert catalogue[1]["messageTypes"] == ["MDM", "ORU"]
    assert catalogue[2]["messageTypes"] == ["*"]
    assert all(a["version"] and a["capabilities"] for a in catalogue)


def test_metrics_are_clamped():
    metrics = AgentMetrics(data_quality=1.7, accuracy=-0.2, confidence=0.5)

    assert metrics.data_quality == 1.0
    assert metrics.accuracy == 0.0
    assert metrics.confidence == 0.5


class TestPriorAuthAgent:

    def test_complete_order_is_processed(self, run):
        result = run(ORM_O01)[0]

        assert result.status is AgentStatus.PROCESSED
        assert result.compliance_validated is True
        assert "Prepared prior authorization request for ORD1001" in result.actions
        assert any("E11.9" in a for a in result.actions)
        assert result.compliance_frameworks == ("HIPAA", "CMS-0057-F")

    def test_charge_without_diagnosis_is_partial(self, run):
        result = run(DFT_P03)[0]

        assert result.agent is AgentName.PRIOR_AUTH
        assert result.status is AgentStatus.PARTIAL
        assert "Prepared prior authorization request for charge 99213" in result.actions
        assert any("DG1" in r for r in result.recommendations)

    def test_order_without_patient(self, run):
        result = run(build_message(msh("ORM^O01"), "ORC|NW|ORD9"))[0]

        assert result.status is AgentStatus.PARTIAL
        assert result.compliance_validated is False
        assert "No identified patient for authorization request" in result.compliance_issues


class TestSummarizerAgent:

    def test_summarizes_observations(self, run):
        result = run(ORU_R01)[0]

        assert result.status is AgentStatus.PROCESSED
        assert result.message.startswith("Summarized 2 observation(s), 1 abnormal")
        assert "Review critical result: Hemoglobin = 6.1" in result.recommendations

    def test_summarizes_mdm_document(self, run):
        result = run(MDM_T02)[0]

        assert result.agent is AgentName.SUMMARIZER
        assert result.status is AgentStatus.PROCESSED
        assert result.message == "Document of type DS with completion status AU"

    def test_result_without_observations_is_partial(self, run):
        result = run(build_message(msh("ORU^R01"), "PID|||1", "OBR|1"))[0]

        assert result.status is AgentStatus.PARTIAL
        assert result.message == "No observations to summarize"


class TestComplianceAgent:

    def test_compliant_message(self, run):
        result = run(ADT_A01)[0]

        assert result.status is AgentStatus.PROCESSED
        assert result.compliance_validated is True
        assert result.compliance_issues == ()
        assert result.compliance_frameworks == ("HIPAA", "SOC2")

    def test_missing_control_id(self, run):
        result = run(build_message(msh("ACK", control_id=""), "MSA|AA|1"))[0]

        assert result.compliance_validated is False
        assert "Missing message control id (MSH-10)" in result.compliance_issues

    def test_apac_does_not_require_control_id(self, parser, classifier, converter):
        message = parser.parse(build_message(msh("ACK", control_id=""), "MSA|AA|1"))
        agent = ComplianceAgent(get_compliance_policy("APAC"))

        result = agent.evaluate(message, converter.convert(message, classifier.classify(message)))

        assert result.compliance_validated is True

    def test_eu_rejects_debug_processing_id(self, parser):
        message = parser.parse(ACK.replace("|P|2.5", "|D|2.5"))
        result = ComplianceAgent(get_compliance_policy("EU")).evaluate(message, [])

        assert result.compliance_validated is False
        assert "Processing id 'D' not accepted in region EU" in result.compliance_issues

    def test_untagged_phi_resources_flagged(self, parser):
        from dataclasses import replace

        from hl7bridge.hl7 import HL7ToFHIRConverter, SecurityClassifier

        message = parser.parse(ADT_A01)
        label = replace(SecurityClassifier().classify(message), contains_phi=False)
        untagged = HL7ToFHIRConverter().convert(message, label)

        result = ComplianceAgent(get_compliance_policy("US")).evaluate(message, untagged)

        assert result.compliance_validated is False
        assert result.compliance_issues[0].startswith("PHI resources missing security tag")

    def test_unsupported_version(self, run):
        result = run(build_message(msh("ACK", version="9.9"), "MSA|AA|1"))[0]

        assert "Unsupported HL7 version: 9.9" in result.compliance_issues
