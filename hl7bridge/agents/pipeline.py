"""
Agent pipeline.

Runs the agent stages in fixed order (PriorAuth, Summarizer, Compliance).
Each stage is isolated: a fault in one stage becomes that stage's failed
result and never stops the stages after it.
"""

import logging
import time
from dataclasses import replace
from typing import Callable, List, Optional, Sequence

from hl7bridge.hl7.fhir_resources import FHIRResource
from hl7bridge.hl7.types import ParsedMessage
from hl7bridge.security_utils.phi_filter import redact_phi

from .base import AgentMetrics, AgentResult, AgentStatus, BaseAgent
from .compliance import ComplianceAgent
from .prior_auth import PriorAuthAgent
from .summarizer import SummarizerAgent

logger = logging.getLogger(__name__)


class PipelineCancelled(Exception):
    """The caller cancelled processing before the next stage began."""
    pass


def default_agents() -> List[BaseAgent]:
    return [PriorAuthAgent(), SummarizerAgent(), ComplianceAgent()]


class AgentPipeline:
    """Fixed-order sequence of agent stages."""

    def __init__(self, agents: Optional[Sequence[BaseAgent]] = None):
        self.agents: List[BaseAgent] = list(agents) if agents is not None else default_agents()

    def run(
        self,
        message: ParsedMessage,
        resources: Sequence[FHIRResource],
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> List[AgentResult]:
        """
        Run every applicable agent against a message.

        Agents that do not apply to the message type are left out of the
        output entirely; the output order always follows the stage order.

        Args:
            message: Well-formed parsed message
            resources: FHIR resources converted from the message
            should_cancel: Checked before each stage; when it returns True
                the run stops with PipelineCancelled

        Returns:
            One AgentResult per applicable agent

        Raises:
            PipelineCancelled: If should_cancel signalled cancellation
        """
        results: List[AgentResult] = []
        for agent in self.agents:
            if not agent.applies_to(message.message_type):
                continue
            if should_cancel is not None and should_cancel():
                raise PipelineCancelled(f"Cancelled before {agent.name.value} stage")
            results.append(self._run_stage(agent, message, resources))
        return results

    def _run_stage(
        self,
        agent: BaseAgent,
        message: ParsedMessage,
        resources: Sequence[FHIRResource],
    ) -> AgentResult:
        start = time.perf_counter()
        try:
            result = agent.evaluate(message, resources)
        except Exception as e:
            reason = redact_phi(str(e))
            logger.error(
                "%s agent failed on message %s: %s: %s",
                agent.name.value,
                message.control_id,
                type(e).__name__,
                reason,
            )
            result = AgentResult(
                agent=agent.name,
                status=AgentStatus.FAILED,
                message=f"{agent.name.value} agent failed: {reason}",
                compliance_validated=False,
                metrics=AgentMetrics(),
            )
        elapsed_ms = max(0.0, (time.perf_counter() - start) * 1000)
        return replace(result, processing_time_ms=elapsed_ms)

    def catalogue(self) -> List[dict]:
        return [agent.describe() for agent in self.agents]
