"""
Summarizer agent.

Produces a short narrative of results (ORU) or clinical documents (MDM)
and flags abnormal and critical values for review.
"""

import logging
from typing import List, Sequence

from hl7bridge.hl7 import grammar
from hl7bridge.hl7.fhir_resources import FHIRResource, Observation
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


class SummarizerAgent(BaseAgent):
    name = AgentName.SUMMARIZER
    role = "Summarization"
    version = "1.2.0"
    capabilities = ("summarization", "nlp", "text_analysis")
    message_types = frozenset({"ORU", "MDM"})
    frameworks = ("HIPAA",)

    def evaluate(self, message: ParsedMessage, resources: Sequence[FHIRResource]) -> AgentResult:
        observations: List[Observation] = resources_of(resources, "Observation")
        if message.message_type == "MDM" and not observations:
            return self._summarize_document(message)
        return self._summarize_results(message, observations)

    def _summarize_results(self, message: ParsedMessage, observations: List[Observation]) -> AgentResult:
        if not observations:
            return AgentResult(
                agent=self.name,
                status=AgentStatus.PARTIAL,
                message="No observations to summarize",
                recommendations=("Verify that the result message contains OBX segments",),
                compliance_frameworks=self.frameworks,
                compliance_validated=True,
                metrics=AgentMetrics(data_quality=0.0, accuracy=0.5, confidence=0.25),
            )

        abnormal = [o for o in observations if o.abnormal]
        critical = [o for o in observations if o.critical]

        highlights = [
            f"{o.display} {o.value}{' ' + o.units if o.units else ''} ({o.interpretation})"
            for o in abnormal
        ]
        summary = f"Summarized {len(observations)} observation(s), {len(abnormal)} abnormal"
        if highlights:
            summary = f"{summary}: {'; '.join(highlights)}"

        recommendations = [f"Review critical result: {o.display} = {o.value}" for o in critical]
        if abnormal and not critical:
            recommendations.append("Review abnormal results with the ordering provider")

        completeness = sum(
            field_completeness([o.code, o.value, o.units or "", o.reference_range or ""])
            for o in observations
        ) / len(observations)
        coded = sum(1 for o in observations if o.system) / len(observations)

        return AgentResult(
            agent=self.name,
            status=AgentStatus.PROCESSED,
            message=summary,
            actions=(f"Generated result summary for patient {message.patient_id or 'unknown'}",),
            recommendations=tuple(recommendations),
            compliance_frameworks=self.frameworks,
            compliance_validated=True,
            metrics=AgentMetrics(
                data_quality=completeness,
                accuracy=0.5 + 0.5 * coded,
                confidence=0.6 * completeness + 0.4 * coded,
            ),
        )

    def _summarize_document(self, message: ParsedMessage) -> AgentResult:
        txa = message.first("TXA")
        if txa is None:
            return AgentResult(
                agent=self.name,
                status=AgentStatus.PARTIAL,
                message="No document header (TXA) to summarize",
                recommendations=("Include a TXA segment describing the document",),
                compliance_frameworks=self.frameworks,
                compliance_validated=True,
                metrics=AgentMetrics(data_quality=0.0, accuracy=0.5, confidence=0.25),
            )

        document_type = txa.component(grammar.TXA_DOCUMENT_TYPE, 0) or "unspecified"
        completion = txa.field(grammar.TXA_COMPLETION_STATUS) or "unknown"
        completeness = field_completeness([document_type, completion, message.patient_id or ""])

        return AgentResult(
            agent=self.name,
            status=AgentStatus.PROCESSED,
            message=f"Document of type {document_type} with completion status {completion}",
            actions=(f"Indexed document for patient {message.patient_id or 'unknown'}",),
            compliance_frameworks=self.frameworks,
            compliance_validated=True,
            metrics=AgentMetrics(
                data_quality=completeness,
                accuracy=0.8,
                confidence=0.5 + 0.5 * completeness,
            ),
        )
