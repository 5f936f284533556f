"""
Health-data sensitivity classification for HL7 messages.
"""

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from .grammar import PHI_SEGMENTS
from .types import ParseResult


class Classification(str, Enum):
    INTERNAL = "INTERNAL"
    PHI = "PHI"


@dataclass(frozen=True)
class SecurityLabel:
    """
    Sensitivity label attached to a message.

    encryption_required always mirrors contains_phi; no other encryption
    policy is expressed here.
    """
    classification: Classification
    contains_phi: bool
    encryption_required: bool
    content_hash: str

    def to_dict(self) -> Dict[str, Any]:
        # content_hash is for correlation only and is never serialized outward
        return {
            "classification": self.classification.value,
            "containsPHI": self.contains_phi,
            "encryptionRequired": self.encryption_required,
        }


def content_hash(raw: str) -> str:
    """SHA-256 hex digest of the raw message bytes."""
    return hashlib.sha256(raw.encode("utf-8", errors="replace")).hexdigest()


class SecurityClassifier:
    """Assigns a SecurityLabel based on the segment types present."""

    def classify(self, message: ParseResult) -> SecurityLabel:
        contains_phi = any(t in PHI_SEGMENTS for t in message.segment_types)
        return SecurityLabel(
            classification=Classification.PHI if contains_phi else Classification.INTERNAL,
            contains_phi=contains_phi,
            encryption_required=contains_phi,
            content_hash=content_hash(message.raw),
        )
