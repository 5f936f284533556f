"""
HL7 v2.x message validation against the message grammar.

Validation never raises: failures are accumulated as data in the verdict.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Tuple

from . import grammar
from .grammar import ComplianceLevel
from .types import ParseResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationVerdict:
    """Outcome of validating one message."""
    valid: bool
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    compliance_level: ComplianceLevel = ComplianceLevel.BASIC

    def with_errors(self, extra: Iterable[str]) -> "ValidationVerdict":
        """Return a new verdict superseding this one with additional errors."""
        errors = self.errors + tuple(extra)
        return replace(
            self,
            valid=not errors,
            errors=errors,
            compliance_level=self.compliance_level if not errors else ComplianceLevel.BASIC,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "complianceLevel": self.compliance_level.value,
        }


class HL7MessageValidator:
    """Checks parsed messages against per-message-type segment rules."""

    def validate(self, message: ParseResult) -> ValidationVerdict:
        """
        Validate a parsed message.

        Every required segment for the message type must appear at least
        once. Unknown message types produce a warning and basic compliance.

        Args:
            message: Result of HL7MessageParser.parse

        Returns:
            ValidationVerdict
        """
        if not message.ok:
            return ValidationVerdict(valid=False, errors=tuple(message.errors))

        errors: List[str] = []
        warnings: List[str] = []
        present = set(message.segment_types)

        rule = grammar.rule_for(message.message_type)
        if rule is None:
            warnings.append(f"Unrecognized message type: {message.message_type or '(empty)'}")
        else:
            for segment_type in rule.required:
                if segment_type not in present:
                    errors.append(f"Missing required segment: {segment_type}")

            unexpected = sorted(s for s in present if s != "MSH" and not rule.allows(s))
            for segment_type in unexpected:
                warnings.append(f"Unexpected segment for {message.message_type}: {segment_type}")

        if message.version and message.version not in grammar.SUPPORTED_VERSIONS:
            warnings.append(f"Unsupported HL7 version: {message.version}")

        if rule is not None and not errors:
            level = rule.compliance_level
        else:
            level = ComplianceLevel.BASIC

        if errors:
            logger.debug("Message %s failed validation: %s", message.control_id, "; ".join(errors))

        return ValidationVerdict(
            valid=not errors,
            errors=tuple(errors),
            warnings=tuple(warnings),
            compliance_level=level,
        )
