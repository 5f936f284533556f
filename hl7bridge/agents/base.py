"""
Agent stage definitions.

An agent is an independent post-conversion stage that evaluates a message
and its FHIR resources and emits an AgentResult.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple

from hl7bridge.hl7.fhir_resources import FHIRResource
from hl7bridge.hl7.types import ParsedMessage


class AgentName(str, Enum):
    PRIOR_AUTH = "PriorAuth"
    SUMMARIZER = "Summarizer"
    COMPLIANCE = "Compliance"


class AgentStatus(str, Enum):
    PROCESSED = "processed"
    FAILED = "failed"
    SKIPPED = "skipped"
    PARTIAL = "partial"


def clamp(value: float) -> float:
    """Clamp a score into [0, 1]."""
    return max(0.0, min(1.0, float(value)))


@dataclass(frozen=True)
class AgentMetrics:
    """Quality scores, each in [0, 1]."""
    data_quality: float = 0.0
    accuracy: float = 0.0
    confidence: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "data_quality", clamp(self.data_quality))
        object.__setattr__(self, "accuracy", clamp(self.accuracy))
        object.__setattr__(self, "confidence", clamp(self.confidence))

    def to_dict(self) -> Dict[str, float]:
        return {
            "dataQuality": round(self.data_quality, 4),
            "accuracy": round(self.accuracy, 4),
            "confidence": round(self.confidence, 4),
        }


@dataclass(frozen=True)
class AgentResult:
    """Verdict of one agent stage for one message."""
    agent: AgentName
    status: AgentStatus
    message: str
    actions: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    compliance_frameworks: Tuple[str, ...] = ()
    compliance_validated: bool = False
    compliance_issues: Tuple[str, ...] = ()
    metrics: AgentMetrics = field(default_factory=AgentMetrics)
    processing_time_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status in (AgentStatus.PROCESSED, AgentStatus.PARTIAL)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent": self.agent.value,
            "status": self.status.value,
            "message": self.message,
            "actions": list(self.actions),
            "recommendations": list(self.recommendations),
            "complianceFrameworks": list(self.compliance_frameworks),
            "complianceValidated": self.compliance_validated,
            "complianceIssues": list(self.compliance_issues),
            "metrics": self.metrics.to_dict(),
            "processingTimeMs": round(self.processing_time_ms, 3),
        }


class BaseAgent:
    """
    Base class for agent stages.

    Subclasses set the catalogue attributes and implement evaluate(). A
    message_types of None means the agent applies to every message.
    """

    name: AgentName
    role: str = ""
    version: str = "1.0.0"
    capabilities: Tuple[str, ...] = ()
    message_types: Optional[FrozenSet[str]] = None

    def applies_to(self, message_type: str) -> bool:
        return self.message_types is None or message_type in self.message_types

    def evaluate(self, message: ParsedMessage, resources: Sequence[FHIRResource]) -> AgentResult:
        raise NotImplementedError

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name.value,
            "role": self.role,
            "version": self.version,
            "capabilities": list(self.capabilities),
            "messageTypes": sorted(self.message_types) if self.message_types is not None else ["*"],
        }


def resources_of(resources: Sequence[FHIRResource], resource_type: str) -> List[FHIRResource]:
    return [r for r in resources if r.resource_type == resource_type]


def field_completeness(values: Sequence[str]) -> float:
    """Share of non-empty values; 0 for an empty sequence."""
    if not values:
        return 0.0
    return sum(1 for v in values if v and v.strip()) / len(values)
