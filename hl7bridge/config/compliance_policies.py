"""
Compliance policies configuration for multi-regional deployments.

Defines the region-specific rules the Compliance agent checks messages
against: HIPAA (US), GDPR (EU) and regional equivalents.
"""

import os
import logging
from typing import Dict, Optional, Literal, Tuple
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Region codes
RegionCode = Literal["US", "EU", "APAC", "DEFAULT"]

# Supported regions
SUPPORTED_REGIONS = ["US", "EU", "APAC"]


@dataclass(frozen=True)
class CompliancePolicy:
    """
    Compliance policy configuration for a region.

    Attributes:
        region: Region code (US, EU, APAC)
        frameworks: Regulatory frameworks messages are checked against
        phi_in_logs: Whether PHI can appear in application logs
        require_phi_tagging: Whether PHI-bearing FHIR resources must carry a security tag
        require_encryption: Whether PHI-bearing messages must be flagged for encryption
        require_control_id: Whether MSH-10 must be populated for traceability
        accepted_processing_ids: MSH-11 processing ids accepted (P=production, T=training, D=debug)
    """

    region: str
    frameworks: Tuple[str, ...] = ("HIPAA",)
    phi_in_logs: bool = False
    require_phi_tagging: bool = True
    require_encryption: bool = True
    require_control_id: bool = True
    accepted_processing_ids: Tuple[str, ...] = ("P", "T", "D")


# Region-specific policy definitions
REGION_POLICIES: Dict[str, CompliancePolicy] = {
    "US": CompliancePolicy(
        region="US",
        frameworks=("HIPAA", "SOC2"),
        phi_in_logs=False,  # HIPAA: PHI should not be in application logs
        require_phi_tagging=True,
        require_encryption=True,
        require_control_id=True,
    ),
    "EU": CompliancePolicy(
        region="EU",
        frameworks=("GDPR",),
        phi_in_logs=False,
        require_phi_tagging=True,
        require_encryption=True,
        require_control_id=True,
        accepted_processing_ids=("P", "T"),  # GDPR: no debug traffic with personal data
    ),
    "APAC": CompliancePolicy(
        region="APAC",
        frameworks=("HIPAA", "PDPA"),
        phi_in_logs=False,
        require_phi_tagging=True,
        require_encryption=True,
        require_control_id=False,
    ),
    "DEFAULT": CompliancePolicy(
        region="DEFAULT",
        frameworks=("HIPAA",),
        phi_in_logs=False,  # Safe default
        require_phi_tagging=True,
        require_encryption=True,
        require_control_id=True,
    ),
}


def get_region() -> str:
    """
    Get the current deployment region from environment variable.

    Returns:
        Region code (US, EU, APAC, or DEFAULT)
    """
    region = os.getenv("REGION", "DEFAULT").upper()

    if region not in SUPPORTED_REGIONS and region != "DEFAULT":
        logger.warning(
            "Unsupported region '%s' specified. Using DEFAULT policy.", region
        )
        return "DEFAULT"

    return region


def get_compliance_policy(region: Optional[str] = None) -> CompliancePolicy:
    """
    Get compliance policy for a specific region.

    Args:
        region: Region code (US, EU, APAC). If None, uses REGION env var.

    Returns:
        CompliancePolicy for the specified region
    """
    if region is None:
        region = get_region()
    else:
        region = region.upper()

    policy = REGION_POLICIES.get(region, REGION_POLICIES["DEFAULT"])

    logger.debug("Using compliance policy for region: %s", policy.region)

    return policy


def is_phi_allowed_in_logs() -> bool:
    """
    Check if PHI is allowed in application logs based on current region.

    Returns:
        True if PHI can appear in logs, False otherwise
    """
    return get_compliance_policy().phi_in_logs
