"""
Audit Logger
Fire-and-forget audit logging for processed HL7 messages.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .audit_events import (
    AuditEvent,
    AuditSeverity,
)


class AuditLogger:
    """
    Audit logger for pipeline outcomes.

    Supports two outputs:
    - File (JSON lines format, rotated daily) when log_dir is set
    - Console (structured logging)

    Logging never raises into the caller: write failures are reported on
    the application logger and dropped.

    Usage:
        audit = AuditLogger(log_dir="audit-logs")
        audit.log(message_processed("ADT", "MSG001", "success"))
    """

    def __init__(
        self,
        log_dir: Optional[str] = "audit-logs",
        console_output: bool = True,
        min_severity: AuditSeverity = AuditSeverity.INFO,
    ):
        self.log_dir = Path(log_dir) if log_dir else None
        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
        self.console_output = console_output
        self.min_severity = min_severity
        self._severity_order = {
            AuditSeverity.INFO: 0,
            AuditSeverity.WARNING: 1,
            AuditSeverity.ERROR: 2,
            AuditSeverity.CRITICAL: 3,
        }

        self._logger = logging.getLogger("audit")

    def _should_log(self, severity: AuditSeverity) -> bool:
        """Check if event meets minimum severity threshold."""
        return self._severity_order[severity] >= self._severity_order[self.min_severity]

    def _get_log_file(self) -> Path:
        """Get current log file path (rotates daily)."""
        date_str = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        return self.log_dir / f"audit_{date_str}.jsonl"

    def log(self, event: AuditEvent) -> None:
        """
        Log an audit event.

        Args:
            event: The AuditEvent to log
        """
        if not self._should_log(event.severity):
            return

        if self.log_dir is not None:
            try:
                with open(self._get_log_file(), "a") as f:
                    f.write(event.to_json() + "\n")
            except OSError as e:
                logging.getLogger(__name__).warning("Failed to write audit event %s: %s", event.event_id, e)

        if self.console_output:
            log_level = {
                AuditSeverity.INFO: logging.INFO,
                AuditSeverity.WARNING: logging.WARNING,
                AuditSeverity.ERROR: logging.ERROR,
                AuditSeverity.CRITICAL: logging.CRITICAL,
            }.get(event.severity, logging.INFO)

            self._logger.log(
                log_level,
                "[%s] %s: %s -> %s%s",
                event.event_type.value,
                event.actor,
                event.action,
                event.outcome,
                " (simulated)" if event.simulated else "",
            )


# Global singleton instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get the global audit logger instance."""
    global _audit_logger
    if _audit_logger is None:
        from hl7bridge.config.settings import get_settings

        settings = get_settings()
        _audit_logger = AuditLogger(
            log_dir=settings.audit_log_dir,
            console_output=settings.audit_console_output,
        )
    return _audit_logger
