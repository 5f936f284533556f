"""
Audit Module
Audit logging for HL7 pipeline outcomes.
"""

from .audit_events import (
    AuditEvent,
    AuditEventType,
    AuditEventCategory,
    AuditSeverity,
    message_processed,
    message_rejected,
    agent_failed,
    simulation_fault,
)

from .audit_logger import (
    AuditLogger,
    get_audit_logger,
)

__all__ = [
    # Event types
    "AuditEvent",
    "AuditEventType",
    "AuditEventCategory",
    "AuditSeverity",
    # Event builders
    "message_processed",
    "message_rejected",
    "agent_failed",
    "simulation_fault",
    # Logger
    "AuditLogger",
    "get_audit_logger",
]
