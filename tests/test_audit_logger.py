"""
Tests for audit events and the JSON-lines audit logger.
"""

import json
import logging

import pytest

from hl7bridge.audit import (
    AuditEventCategory,
    AuditEventType,
    AuditLogger,
    AuditSeverity,
    agent_failed,
    message_processed,
    message_rejected,
    simulation_fault,
)


@pytest.fixture
def audit(tmp_path):
    return AuditLogger(log_dir=str(tmp_path), console_output=False)


def read_events(log_dir):
    return [json.loads(line) for path in sorted(log_dir.glob("audit_*.jsonl")) for line in path.read_text().splitlines()]


def test_event_builders():
    processed = message_processed("ADT", "MSG001", "success", content_hash="abc")
    assert processed.event_type is AuditEventType.MESSAGE_PROCESSED
    assert processed.category is AuditEventCategory.DATA_ACCESS
    assert processed.severity is AuditSeverity.INFO
    assert processed.simulated is False

    failed = message_processed("ADT", "MSG001", "failure")
    assert failed.severity is AuditSeverity.WARNING

    rejected = message_rejected(["Empty message: no segments found"])
    assert rejected.details == {"reasons": ["Empty message: no segments found"]}

    agent = agent_failed("Summarizer", "ORU", "LAB001", "boom")
    assert agent.severity is AuditSeverity.ERROR
    assert agent.actor == "agent:Summarizer"

    fault = simulation_fault("network_failure", 503)
    assert fault.simulated is True
    assert fault.category is AuditEventCategory.SIMULATION
    assert fault.details == {"scenario": "network_failure", "status_code": 503}


def test_event_serializes_to_json():
    event = message_processed("ORU", "LAB001", "success", request_id="req-1")
    data = json.loads(event.to_json())

    assert data["event_type"] == "hl7.message.processed"
    assert data["control_id"] == "LAB001"
    assert data["request_id"] == "req-1"
    assert data["event_id"] == event.event_id


def test_log_writes_json_lines(audit, tmp_path):
    audit.log(message_processed("ADT", "MSG001", "success"))
    audit.log(agent_failed("Summarizer", "ORU", "LAB001", "boom"))

    files = list(tmp_path.glob("audit_*.jsonl"))
    assert len(files) == 1
    lines = files[0].read_text().splitlines()
    assert len(lines) == 2
    assert json.loads(lines[1])["event_type"] == "hl7.agent.failed"


def test_simulated_flag_is_persisted(audit, tmp_path):
    audit.log(message_processed("ADT", "MSG001", "success"))
    audit.log(simulation_fault("timeout", 200))

    events = read_events(tmp_path)
    assert [e["simulated"] for e in events] == [False, True]
    assert events[1]["details"] == {"scenario": "timeout", "status_code": 200}


def test_min_severity_filters_events(tmp_path):
    audit = AuditLogger(log_dir=str(tmp_path), console_output=False, min_severity=AuditSeverity.ERROR)

    audit.log(message_processed("ADT", "MSG001", "success"))
    audit.log(agent_failed("Compliance", "ADT", "MSG001", "boom"))

    events = read_events(tmp_path)
    assert [e["event_type"] for e in events] == ["hl7.agent.failed"]


def test_without_log_dir_nothing_is_written(tmp_path):
    audit = AuditLogger(log_dir=None, console_output=False)

    audit.log(message_processed("ADT", "MSG001", "success"))

    assert list(tmp_path.iterdir()) == []


def test_console_output_marks_simulated_events(caplog):
    audit = AuditLogger(log_dir=None, console_output=True)

    with caplog.at_level(logging.INFO, logger="audit"):
        audit.log(simulation_fault("malformed_data", 400))

    assert "hl7.simulation.fault" in caplog.text
    assert "(simulated)" in caplog.text


def test_unwritable_log_dir_does_not_raise(tmp_path, caplog):
    audit = AuditLogger(log_dir=str(tmp_path), console_output=False)
    audit.log_dir = tmp_path / "missing" / "nested"

    audit.log(message_processed("ADT", "MSG001", "success"))

    assert "Failed to write audit event" in caplog.text
