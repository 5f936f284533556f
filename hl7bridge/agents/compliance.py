"""
Compliance agent.

Runs for every message and checks it against the active regional
compliance policy.
"""

import logging
from typing import List, Optional, Sequence

from hl7bridge.config.compliance_policies import CompliancePolicy, get_compliance_policy
from hl7bridge.hl7 import grammar
from hl7bridge.hl7.fhir_resources import FHIRResource
from hl7bridge.hl7.security import SecurityClassifier
from hl7bridge.hl7.types import ParsedMessage

from .base import AgentMetrics, AgentName, AgentResult, AgentStatus, BaseAgent

logger = logging.getLogger(__name__)


class ComplianceAgent(BaseAgent):
    name = AgentName.COMPLIANCE
    role = "Compliance"
    version = "2.0.0"
    capabilities = ("compliance", "audit", "validation")
    message_types = None

    def __init__(self, policy: Optional[CompliancePolicy] = None):
        self.policy = policy or get_compliance_policy()
        self.classifier = SecurityClassifier()

    def evaluate(self, message: ParsedMessage, resources: Sequence[FHIRResource]) -> AgentResult:
        policy = self.policy
        issues: List[str] = []
        actions: List[str] = []
        recommendations: List[str] = []
        checks = 0

        label = self.classifier.classify(message)
        if label.contains_phi:
            actions.append("Classified message as PHI")

            if policy.require_phi_tagging:
                checks += 1
                untagged = [r.resource_type for r in resources if r.meta.security is None]
                if untagged:
                    issues.append(f"PHI resources missing security tag: {', '.join(untagged)}")
                    recommendations.append("Tag PHI-bearing resources as Restricted")

            if policy.require_encryption:
                checks += 1
                if not label.encryption_required:
                    issues.append("PHI message not flagged for encryption")
                else:
                    actions.append("Flagged message for encryption in transit and at rest")

        if policy.require_control_id:
            checks += 1
            if not message.control_id:
                issues.append("Missing message control id (MSH-10)")
                recommendations.append("Populate MSH-10 for audit traceability")

        checks += 1
        processing_id = message.processing_id.split(grammar.COMPONENT_SEPARATOR)[0]
        if processing_id not in policy.accepted_processing_ids:
            issues.append(f"Processing id '{processing_id}' not accepted in region {policy.region}")

        checks += 1
        if message.version not in grammar.SUPPORTED_VERSIONS:
            issues.append(f"Unsupported HL7 version: {message.version or '(empty)'}")
            recommendations.append("Send messages as HL7 v2.1 through v2.8")

        if grammar.rule_for(message.message_type) is None:
            recommendations.append(f"Register rules for message type {message.message_type or '(empty)'}")

        passed = (checks - len(issues)) / checks
        validated = not issues
        if validated:
            summary = f"Message complies with {', '.join(policy.frameworks)} requirements"
        else:
            summary = f"{len(issues)} compliance issue(s) found for region {policy.region}"

        return AgentResult(
            agent=self.name,
            status=AgentStatus.PROCESSED,
            message=summary,
            actions=tuple(actions),
            recommendations=tuple(recommendations),
            compliance_frameworks=policy.frameworks,
            compliance_validated=validated,
            compliance_issues=tuple(issues),
            metrics=AgentMetrics(
                data_quality=1.0 if message.control_id and message.version else 0.5,
                accuracy=passed,
                confidence=passed,
            ),
        )
