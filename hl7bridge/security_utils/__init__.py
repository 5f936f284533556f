"""
Security Module
PHI protection for application logs.
"""

from .phi_filter import (
    PHIFilter,
    PHIType,
    PHIMatch,
    redact_phi,
    get_phi_filter,
)

__all__ = [
    "PHIFilter",
    "PHIType",
    "PHIMatch",
    "redact_phi",
    "get_phi_filter",
]
