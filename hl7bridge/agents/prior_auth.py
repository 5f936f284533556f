"""
Prior authorization agent.

Checks whether an order or charge message carries what a payer needs to
authorize it: an identified patient, the order/charge itself and a
supporting diagnosis.
"""

import logging
from typing import List, Sequence

from hl7bridge.hl7 import grammar
from hl7bridge.hl7.fhir_resources import FHIRResource
from hl7bridge.hl7.types import ParsedMessage

from .base import (
    AgentMetrics,
    AgentName,
    AgentResult,
    AgentStatus,
    BaseAgent,
    field_completeness,
    resources_of,
)

logger = logging.getLogger(__name__)


class PriorAuthAgent(BaseAgent):
    name = AgentName.PRIOR_AUTH
    role = "Prior Authorization"
    version = "1.0.0"
    capabilities = ("authorization", "validation", "compliance")
    message_types = frozenset({"ORM", "DFT"})
    frameworks = ("HIPAA", "CMS-0057-F")

    def evaluate(self, message: ParsedMessage, resources: Sequence[FHIRResource]) -> AgentResult:
        actions: List[str] = []
        recommendations: List[str] = []
        issues: List[str] = []

        has_patient = bool(resources_of(resources, "Patient"))
        if not has_patient:
            issues.append("No identified patient for authorization request")
            recommendations.append("Include a PID segment with a patient identifier")

        orders = self._order_numbers(message)
        if orders:
            for order in orders:
                actions.append(f"Prepared prior authorization request for {order}")
        else:
            issues.append("No order or charge to authorize")
            recommendations.append("Include ORC/OBR (orders) or FT1 (charges) details")

        diagnoses = [
            seg.component(grammar.DG1_CODE, 0)
            for seg in message.all("DG1")
            if seg.component(grammar.DG1_CODE, 0)
        ]
        if diagnoses:
            actions.append(f"Attached diagnosis codes: {', '.join(diagnoses)}")
        else:
            recommendations.append("Attach a DG1 diagnosis to support medical necessity")

        checks = [has_patient, bool(orders), bool(diagnoses)]
        passed = sum(checks) / len(checks)
        completeness = field_completeness([
            message.patient_id or "",
            message.control_id,
            ",".join(orders),
            ",".join(diagnoses),
        ])

        status = AgentStatus.PROCESSED if all(checks) else AgentStatus.PARTIAL
        if status is AgentStatus.PROCESSED:
            summary = f"Prior authorization ready for {len(orders)} item(s) on {message.message_type} message"
        else:
            summary = f"Prior authorization incomplete for {message.message_type} message"

        return AgentResult(
            agent=self.name,
            status=status,
            message=summary,
            actions=tuple(actions),
            recommendations=tuple(recommendations),
            compliance_frameworks=self.frameworks,
            compliance_validated=not issues,
            compliance_issues=tuple(issues),
            metrics=AgentMetrics(
                data_quality=completeness,
                accuracy=passed,
                confidence=0.5 * passed + 0.5 * completeness,
            ),
        )

    def _order_numbers(self, message: ParsedMessage) -> List[str]:
        """Placer order numbers (ORM) or transaction codes (DFT)."""
        orders = [
            seg.component(grammar.ORC_PLACER_ORDER, 0)
            for seg in message.all("ORC")
            if seg.component(grammar.ORC_PLACER_ORDER, 0)
        ]
        if not orders:
            orders = [
                seg.component(grammar.OBR_PLACER_ORDER, 0)
                for seg in message.all("OBR")
                if seg.component(grammar.OBR_PLACER_ORDER, 0)
            ]
        charges = [
            seg.component(grammar.FT1_TRANSACTION_CODE, 0)
            for seg in message.all("FT1")
            if seg.component(grammar.FT1_TRANSACTION_CODE, 0)
        ]
        return orders + [f"charge {code}" for code in charges]
