"""
Audit Event Definitions
Standardized event types for HL7 pipeline audit logging.
"""

import json
import uuid
from enum import Enum
from typing import Optional, Dict, Any
from dataclasses import dataclass, field
from datetime import datetime, timezone


class AuditEventCategory(str, Enum):
    """Categories of audit events."""
    DATA_ACCESS = "data_access"
    SYSTEM = "system"
    SIMULATION = "simulation"


class AuditEventType(str, Enum):
    """Specific audit event types."""
    MESSAGE_PROCESSED = "hl7.message.processed"
    MESSAGE_REJECTED = "hl7.message.rejected"
    AGENT_FAILED = "hl7.agent.failed"
    SIMULATION_FAULT = "hl7.simulation.fault"


class AuditSeverity(str, Enum):
    """Severity levels for audit events."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass
class AuditEvent:
    """
    Structured audit event.

    Attributes:
        event_type: Type of event (from AuditEventType)
        category: Category of event (from AuditEventCategory)
        severity: Severity level
        actor: Who performed the action (service name)
        action: What was done
        outcome: success, failure or partial
        message_type: HL7 message type involved
        control_id: HL7 message control id
        content_hash: Hash of the raw message, for correlation
        simulated: True for injected simulation faults, which are kept
            out of production error statistics
        details: Additional context
    """
    event_type: AuditEventType
    category: AuditEventCategory
    severity: AuditSeverity
    actor: str
    action: str
    outcome: str

    # Optional fields
    message_type: Optional[str] = None
    control_id: Optional[str] = None
    content_hash: Optional[str] = None
    request_id: Optional[str] = None
    simulated: bool = False
    details: Dict[str, Any] = field(default_factory=dict)

    # Auto-generated fields
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/storage."""
        return {
            "event_id": self.event_id,
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "category": self.category.value,
            "severity": self.severity.value,
            "actor": self.actor,
            "action": self.action,
            "outcome": self.outcome,
            "message_type": self.message_type,
            "control_id": self.control_id,
            "content_hash": self.content_hash,
            "request_id": self.request_id,
            "simulated": self.simulated,
            "details": self.details,
        }

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), default=str)


# Pre-defined event builders
def message_processed(
    message_type: str,
    control_id: str,
    outcome: str,
    content_hash: Optional[str] = None,
    **kwargs
) -> AuditEvent:
    return AuditEvent(
        event_type=AuditEventType.MESSAGE_PROCESSED,
        category=AuditEventCategory.DATA_ACCESS,
        severity=AuditSeverity.INFO if outcome == "success" else AuditSeverity.WARNING,
        actor="hl7-pipeline",
        action=f"Processed {message_type or 'unknown'} message",
        outcome=outcome,
        message_type=message_type,
        control_id=control_id,
        content_hash=content_hash,
        **kwargs
    )


def message_rejected(reasons: list, content_hash: Optional[str] = None, **kwargs) -> AuditEvent:
    return AuditEvent(
        event_type=AuditEventType.MESSAGE_REJECTED,
        category=AuditEventCategory.DATA_ACCESS,
        severity=AuditSeverity.WARNING,
        actor="hl7-pipeline",
        action="Rejected malformed message",
        outcome="failure",
        content_hash=content_hash,
        details={"reasons": list(reasons)},
        **kwargs
    )


def agent_failed(agent: str, message_type: str, control_id: str, error: str, **kwargs) -> AuditEvent:
    return AuditEvent(
        event_type=AuditEventType.AGENT_FAILED,
        category=AuditEventCategory.SYSTEM,
        severity=AuditSeverity.ERROR,
        actor=f"agent:{agent}",
        action=f"{agent} stage failed",
        outcome="failure",
        message_type=message_type,
        control_id=control_id,
        details={"error": error},
        **kwargs
    )


def simulation_fault(scenario: str, status_code: int, **kwargs) -> AuditEvent:
    return AuditEvent(
        event_type=AuditEventType.SIMULATION_FAULT,
        category=AuditEventCategory.SIMULATION,
        severity=AuditSeverity.INFO,
        actor="simulation-harness",
        action=f"Injected {scenario} fault",
        outcome="failure",
        simulated=True,
        details={"scenario": scenario, "status_code": status_code},
        **kwargs
    )
