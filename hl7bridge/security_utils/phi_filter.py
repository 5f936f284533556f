"""
PHI Filter
Detects and redacts Protected Health Information from log text, including
HL7 v2 patient segments and caret-delimited names.
"""

import re
from typing import List, Optional, Dict
from dataclasses import dataclass
from enum import Enum


class PHIType(str, Enum):
    """Types of PHI that can be detected."""
    HL7_SEGMENT = "hl7_segment"
    SSN = "ssn"
    MRN = "mrn"
    PHONE = "phone"
    DOB = "date_of_birth"
    NAME = "name"


@dataclass
class PHIMatch:
    """Represents a detected PHI match."""
    phi_type: PHIType
    start: int
    end: int
    original: str
    redacted: str


class PHIFilter:
    """
    Detects and redacts PHI from text content.

    Usage:
        phi_filter = PHIFilter()
        phi_filter.redact("PID|||12345^^^MRN||Doe^John||19800101|M")
        # Returns: "[HL7_SEGMENT REDACTED]"
    """

    REDACTION_FORMAT = "[{type} REDACTED]"

    # Ordered: whole PHI segments first so they win overlaps
    PATTERNS = {
        PHIType.HL7_SEGMENT: [
            r'\b(?:PID|NK1|GT1|IN1)\|[^\r\n]*',
        ],
        PHIType.SSN: [
            r'\b\d{3}-\d{2}-\d{4}\b',
        ],
        PHIType.MRN: [
            r'\bMRN[:\s#]*\d{4,12}\b',
            r'\b\d{3,12}\^\^\^[A-Z]{2,5}\b',  # HL7 CX identifier: 12345^^^MRN
        ],
        PHIType.PHONE: [
            r'\b\d{3}[-.\s]?\d{3}[-.\s]?\d{4}\b',
            r'\(\d{3}\)\s*\d{3}[-.\s]?\d{4}',
        ],
        PHIType.DOB: [
            r'\b(?:DOB|Date of Birth|Birth Date)[:\s]*\d{1,4}[/-]?\d{1,2}[/-]?\d{1,4}\b',
            r'\b(?:19|20)\d{2}-\d{2}-\d{2}\b',
        ],
        PHIType.NAME: [
            r'\b[A-Z][A-Za-z\'-]+\^[A-Z][A-Za-z\'-]+\b',  # HL7 XPN: Doe^John
        ],
    }

    def __init__(
        self,
        enabled_types: Optional[List[PHIType]] = None,
        redaction_format: Optional[str] = None,
    ):
        """
        Initialize PHI filter.

        Args:
            enabled_types: PHI types to detect (None = all)
            redaction_format: Custom redaction format string
        """
        self.enabled_types = enabled_types or list(PHIType)
        self.redaction_format = redaction_format or self.REDACTION_FORMAT
        self._instance_patterns: Dict[PHIType, List[re.Pattern]] = {
            phi_type: [re.compile(p) for p in self.PATTERNS[phi_type]]
            for phi_type in self.enabled_types
            if phi_type in self.PATTERNS
        }

    def detect(self, text: str) -> List[PHIMatch]:
        """
        Detect PHI in text without redacting.

        Args:
            text: Text to scan for PHI

        Returns:
            Non-overlapping PHIMatch objects ordered by position
        """
        matches = []

        for phi_type, patterns in self._instance_patterns.items():
            for pattern in patterns:
                for match in pattern.finditer(text):
                    matches.append(PHIMatch(
                        phi_type=phi_type,
                        start=match.start(),
                        end=match.end(),
                        original=match.group(),
                        redacted=self.redaction_format.format(type=phi_type.value.upper()),
                    ))

        matches.sort(key=lambda m: (m.start, -(m.end - m.start)))
        return self._remove_overlaps(matches)

    def _remove_overlaps(self, matches: List[PHIMatch]) -> List[PHIMatch]:
        """Remove overlapping matches, keeping the earliest, longest one."""
        result: List[PHIMatch] = []
        for match in matches:
            if not result or match.start >= result[-1].end:
                result.append(match)
        return result

    def redact(self, text: str) -> str:
        """
        Detect and redact PHI from text.

        Args:
            text: Text to redact PHI from

        Returns:
            Text with PHI redacted
        """
        matches = self.detect(text)
        if not matches:
            return text

        result = []
        last_end = 0
        for match in matches:
            result.append(text[last_end:match.start])
            result.append(match.redacted)
            last_end = match.end
        result.append(text[last_end:])
        return "".join(result)

    def contains_phi(self, text: str) -> bool:
        """Check if text contains any PHI."""
        return bool(self.detect(text))


# Global instance for convenience
_default_filter: Optional[PHIFilter] = None


def get_phi_filter() -> PHIFilter:
    """Get the default PHI filter instance."""
    global _default_filter
    if _default_filter is None:
        _default_filter = PHIFilter()
    return _default_filter


def redact_phi(text: str) -> str:
    """Convenience function to redact PHI from text."""
    return get_phi_filter().redact(text)
