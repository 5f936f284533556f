"""
Pipeline orchestrator.

Top-level entry point: parse, validate, classify, convert and run the
agent pipeline for one raw HL7 message, then aggregate everything into a
PipelineResponse.
"""

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from hl7bridge.agents import AgentPipeline, AgentResult, AgentStatus
from hl7bridge.audit import AuditLogger, agent_failed, message_processed, message_rejected
from hl7bridge.hl7 import (
    FHIRResource,
    HL7MessageParser,
    HL7MessageValidator,
    HL7ToFHIRConverter,
    ParseResult,
    SecurityClassifier,
    SecurityLabel,
    ValidationVerdict,
)
from hl7bridge.metrics import PipelineMetrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineSummary:
    total: int
    successful: int
    failed: int
    average_processing_time_ms: float
    compliance_validated: bool

    @classmethod
    def from_results(cls, results: Sequence[AgentResult]) -> "PipelineSummary":
        total = len(results)
        failed = sum(1 for r in results if r.status is AgentStatus.FAILED)
        successful = sum(1 for r in results if r.succeeded)
        average = sum(r.processing_time_ms for r in results) / total if total else 0.0
        return cls(
            total=total,
            successful=successful,
            failed=failed,
            average_processing_time_ms=average,
            compliance_validated=all(r.compliance_validated for r in results),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "averageProcessingTimeMs": round(self.average_processing_time_ms, 3),
            "complianceValidated": self.compliance_validated,
        }


@dataclass(frozen=True)
class PipelineResponse:
    """Terminal aggregate of one pipeline run."""
    message: ParseResult
    verdict: ValidationVerdict
    label: SecurityLabel
    resources: Tuple[FHIRResource, ...]
    agent_results: Tuple[AgentResult, ...]
    summary: PipelineSummary
    processing_time_ms: float
    return_fhir: bool = True
    scenarios: Tuple[str, ...] = field(default=())

    def with_verdict(self, verdict: ValidationVerdict) -> "PipelineResponse":
        return replace(self, verdict=verdict)

    @property
    def status(self) -> str:
        if not self.message.ok:
            return "parse_error"
        return "success" if self.verdict.valid else "invalid"

    def to_dict(self, correlation_id: Optional[str] = None) -> Dict[str, Any]:
        """Serialize to the outbound JSON shape."""
        message = self.message
        fhir: Dict[str, Any] = {
            "resourceCount": len(self.resources),
            "resourceTypes": sorted({r.resource_type for r in self.resources}),
        }
        if self.return_fhir:
            fhir["resources"] = [r.to_fhir() for r in self.resources]

        return {
            "status": self.status,
            "message": {
                "type": message.message_type or None,
                "triggerEvent": message.trigger_event or None,
                "controlId": message.control_id or None,
                "patientId": message.patient_id,
                "timestamp": message.timestamp.isoformat() if message.timestamp else None,
                "segmentCount": len(message.segments),
                "parseErrors": list(message.errors),
            },
            "validation": self.verdict.to_dict(),
            "security": self.label.to_dict(),
            "fhir": fhir,
            "agents": {
                "results": [r.to_dict() for r in self.agent_results],
                "summary": self.summary.to_dict(),
            },
            "metadata": {
                "processingTimeMs": round(self.processing_time_ms, 3),
                "correlationId": correlation_id,
                "scenarios": list(self.scenarios),
            },
        }


class PipelineOrchestrator:
    """Sequences parser, validator, classifier, converter and agents."""

    def __init__(
        self,
        parser: Optional[HL7MessageParser] = None,
        validator: Optional[HL7MessageValidator] = None,
        classifier: Optional[SecurityClassifier] = None,
        converter: Optional[HL7ToFHIRConverter] = None,
        pipeline: Optional[AgentPipeline] = None,
        audit_logger: Optional[AuditLogger] = None,
        metrics: Optional[PipelineMetrics] = None,
    ):
        self.parser = parser or HL7MessageParser()
        self.validator = validator or HL7MessageValidator()
        self.classifier = classifier or SecurityClassifier()
        self.converter = converter or HL7ToFHIRConverter()
        self.pipeline = pipeline or AgentPipeline()
        self.audit_logger = audit_logger
        self.metrics = metrics

    def process(
        self,
        raw: str,
        return_fhir: bool = True,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> PipelineResponse:
        """
        Run one raw message through the full pipeline.

        When parsing fails the message is still validated (reporting the
        parse errors) but conversion and agents are skipped, and both lists
        in the response are empty.

        Args:
            raw: Raw HL7 v2.x message
            return_fhir: Whether the serialized response includes resources
            should_cancel: Checked before each agent stage

        Returns:
            A complete PipelineResponse

        Raises:
            PipelineCancelled: If should_cancel signalled cancellation
        """
        start = time.perf_counter()

        message = self.parser.parse(raw)
        verdict = self.validator.validate(message)
        label = self.classifier.classify(message)

        resources: List[FHIRResource] = []
        results: List[AgentResult] = []
        if message.ok:
            resources = self.converter.convert(message, label)
            results = self.pipeline.run(message, resources, should_cancel=should_cancel)
        else:
            logger.info("Skipping conversion and agents for malformed message: %s", "; ".join(message.errors))

        elapsed_ms = max(0.0, (time.perf_counter() - start) * 1000)
        response = PipelineResponse(
            message=message,
            verdict=verdict,
            label=label,
            resources=tuple(resources),
            agent_results=tuple(results),
            summary=PipelineSummary.from_results(results),
            processing_time_ms=elapsed_ms,
            return_fhir=return_fhir,
        )

        self._report(response)
        return response

    def _report(self, response: PipelineResponse) -> None:
        """Hand the outcome to the audit and metrics collaborators."""
        message = response.message
        is_error = not response.verdict.valid

        if self.metrics is not None:
            self.metrics.record(response.processing_time_ms, is_error, message.message_type or None)

        if self.audit_logger is None:
            return

        if not message.ok:
            self.audit_logger.log(message_rejected(message.errors, content_hash=response.label.content_hash))
            return

        self.audit_logger.log(message_processed(
            message.message_type,
            message.control_id,
            outcome="failure" if is_error else "success",
            content_hash=response.label.content_hash,
            details={
                "valid": response.verdict.valid,
                "resource_count": len(response.resources),
                "agents_failed": response.summary.failed,
            },
        ))
        for result in response.agent_results:
            if result.status is AgentStatus.FAILED:
                self.audit_logger.log(agent_failed(
                    result.agent.value, message.message_type, message.control_id, result.message,
                ))
