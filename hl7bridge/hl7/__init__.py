"""
HL7 v2.x message processing module.

Provides parsing, validation, sensitivity classification and conversion of
HL7 v2.x messages to FHIR resources.
"""

from .grammar import ComplianceLevel, MessageRule, rule_for
from .types import MalformedMessage, ParsedMessage, ParseResult, Segment
from .message_parser import HL7MessageParser, HL7ParseError, parse_hl7_timestamp
from .validator import HL7MessageValidator, ValidationVerdict
from .security import Classification, SecurityClassifier, SecurityLabel
from .fhir_resources import Encounter, FHIRResource, Observation, Patient
from .fhir_converter import HL7ToFHIRConverter

__all__ = [
    "ComplianceLevel",
    "MessageRule",
    "rule_for",
    "MalformedMessage",
    "ParsedMessage",
    "ParseResult",
    "Segment",
    "HL7MessageParser",
    "HL7ParseError",
    "parse_hl7_timestamp",
    "HL7MessageValidator",
    "ValidationVerdict",
    "Classification",
    "SecurityClassifier",
    "SecurityLabel",
    "Encounter",
    "FHIRResource",
    "Observation",
    "Patient",
    "HL7ToFHIRConverter",
]
