"""
HL7 v2.x message grammar.

Per-message-type segment rules and field layout used by the parser,
validator and FHIR converter. Pure data, no behavior beyond lookups.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


class ComplianceLevel(str, Enum):
    """Compliance tier attained by a validated message."""
    BASIC = "basic"
    ENHANCED = "enhanced"
    ENTERPRISE = "enterprise"


@dataclass(frozen=True)
class MessageRule:
    """Segment rules for one message type."""
    required: Tuple[str, ...]
    optional: Tuple[str, ...]
    compliance_level: ComplianceLevel
    description: str

    def allows(self, segment_type: str) -> bool:
        return segment_type in self.required or segment_type in self.optional


# Field separators on the wire
SEGMENT_TERMINATOR = "\r"
FIELD_SEPARATOR = "|"
COMPONENT_SEPARATOR = "^"

# Indices into a segment line split on "|" (index 0 is the segment type).
# For MSH the field separator itself is MSH-1, so index N is MSH-(N+1).
MSH_MIN_FIELDS = 12
MSH_SENDING_APPLICATION = 2
MSH_SENDING_FACILITY = 3
MSH_RECEIVING_APPLICATION = 4
MSH_RECEIVING_FACILITY = 5
MSH_TIMESTAMP = 6
MSH_MESSAGE_TYPE = 8
MSH_CONTROL_ID = 9
MSH_PROCESSING_ID = 10
MSH_VERSION = 11

PID_IDENTIFIER = 3
PID_NAME = 5
PID_BIRTH_DATE = 7
PID_SEX = 8
PID_ADDRESS = 11

PV1_PATIENT_CLASS = 2
PV1_ASSIGNED_LOCATION = 3

OBX_VALUE_TYPE = 2
OBX_IDENTIFIER = 3
OBX_VALUE = 5
OBX_UNITS = 6
OBX_REFERENCE_RANGE = 7
OBX_ABNORMAL_FLAGS = 8
OBX_STATUS = 11

ORC_ORDER_CONTROL = 1
ORC_PLACER_ORDER = 2
OBR_PLACER_ORDER = 2
OBR_SERVICE_ID = 4
DG1_CODE = 3
DG1_DESCRIPTION = 4
FT1_TRANSACTION_CODE = 7
TXA_DOCUMENT_TYPE = 2
TXA_COMPLETION_STATUS = 17

# Segment types that carry health-sensitive data
PHI_SEGMENTS = frozenset({"PID", "OBX", "DG1", "PR1", "AL1", "TXA"})

SUPPORTED_VERSIONS = frozenset({"2.1", "2.2", "2.3", "2.3.1", "2.4", "2.5", "2.5.1", "2.6", "2.7", "2.7.1", "2.8"})


MESSAGE_RULES: Mapping[str, MessageRule] = MappingProxyType({
    "ADT": MessageRule(
        required=("MSH", "EVN", "PID", "PV1"),
        optional=("PD1", "NK1", "PV2", "OBX", "AL1", "DG1", "PR1", "GT1", "IN1"),
        compliance_level=ComplianceLevel.ENHANCED,
        description="Admit/Discharge/Transfer",
    ),
    "ORU": MessageRule(
        required=("MSH", "PID", "OBR", "OBX"),
        optional=("PV1", "ORC", "NTE"),
        compliance_level=ComplianceLevel.ENHANCED,
        description="Observation Result",
    ),
    "ORM": MessageRule(
        required=("MSH", "PID", "ORC"),
        optional=("PV1", "OBR", "NTE", "DG1", "OBX"),
        compliance_level=ComplianceLevel.ENTERPRISE,
        description="Order Message",
    ),
    "DFT": MessageRule(
        required=("MSH", "EVN", "PID", "FT1"),
        optional=("PV1", "DG1", "PR1", "IN1", "GT1"),
        compliance_level=ComplianceLevel.ENTERPRISE,
        description="Detailed Financial Transaction",
    ),
    "MDM": MessageRule(
        required=("MSH", "EVN", "PID", "PV1", "TXA"),
        optional=("OBX", "NTE"),
        compliance_level=ComplianceLevel.ENTERPRISE,
        description="Medical Document Management",
    ),
    "SIU": MessageRule(
        required=("MSH", "SCH"),
        optional=("PID", "PV1", "AIS", "AIL", "AIP", "NTE"),
        compliance_level=ComplianceLevel.BASIC,
        description="Scheduling Information Unsolicited",
    ),
    "VXU": MessageRule(
        required=("MSH", "PID", "RXA"),
        optional=("ORC", "RXR", "OBX"),
        compliance_level=ComplianceLevel.ENHANCED,
        description="Vaccination Record Update",
    ),
    "ACK": MessageRule(
        required=("MSH", "MSA"),
        optional=("ERR",),
        compliance_level=ComplianceLevel.BASIC,
        description="General Acknowledgment",
    ),
})


def rule_for(message_type: str) -> Optional[MessageRule]:
    """Return the rule for a message type, or None when it is not recognized."""
    return MESSAGE_RULES.get(message_type)


def is_required(segment_type: str, message_type: str) -> bool:
    """Whether a segment type is required for the given message type."""
    rule = MESSAGE_RULES.get(message_type)
    if rule is None:
        return segment_type == "MSH"
    return segment_type in rule.required


def supported_message_types() -> Tuple[str, ...]:
    return tuple(MESSAGE_RULES.keys())
