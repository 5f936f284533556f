# Test Fixtures Package
# Sample HL7 v2.x messages for pipeline tests

from .hl7_messages import (
    ACK,
    ADT_A01,
    ADT_MISSING_SEGMENTS,
    DFT_P03,
    MDM_T02,
    ORM_O01,
    ORU_R01,
    SIU_S12,
    UNKNOWN_TYPE,
    build_message,
    msh,
)

__all__ = [
    "ACK",
    "ADT_A01",
    "ADT_MISSING_SEGMENTS",
    "DFT_P03",
    "MDM_T02",
    "ORM_O01",
    "ORU_R01",
    "SIU_S12",
    "UNKNOWN_TYPE",
    "build_message",
    "msh",
]
