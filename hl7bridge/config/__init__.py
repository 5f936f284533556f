"""
Configuration module for pipeline settings.
"""

from hl7bridge.config.compliance_policies import (
    get_region,
    get_compliance_policy,
    is_phi_allowed_in_logs,
    CompliancePolicy,
    RegionCode,
)
from hl7bridge.config.settings import Settings, get_settings

__all__ = [
    "get_region",
    "get_compliance_policy",
    "is_phi_allowed_in_logs",
    "CompliancePolicy",
    "RegionCode",
    "Settings",
    "get_settings",
]
