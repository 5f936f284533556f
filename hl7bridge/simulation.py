"""
Simulation harness for POST /hl7/simulate.

Wraps the orchestrator with demo/test hooks: a bounded, cancellable delay
and named scenarios that either short-circuit with a simulated fault before
any parsing happens or perturb a real pipeline result. Faults raised here
are kept apart from genuine pipeline errors: they are audited with
``simulated=True`` and never reach pipeline metrics.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Callable, Optional, Sequence, Tuple

from hl7bridge.audit import AuditLogger, simulation_fault
from hl7bridge.orchestrator import PipelineOrchestrator, PipelineResponse

logger = logging.getLogger(__name__)

SUCCESS = "success"
VALIDATION_ERROR = "validation_error"
NETWORK_FAILURE = "network_failure"
TIMEOUT = "timeout"
MALFORMED_DATA = "malformed_data"

KNOWN_SCENARIOS = frozenset({SUCCESS, VALIDATION_ERROR, NETWORK_FAILURE, TIMEOUT, MALFORMED_DATA})

# Scenarios that replace the pipeline entirely, with the HTTP status they map to
FAULT_SCENARIOS = MappingProxyType({
    MALFORMED_DATA: 400,
    NETWORK_FAILURE: 503,
    TIMEOUT: 200,
})

FAULT_MESSAGES = MappingProxyType({
    MALFORMED_DATA: "Simulated malformed HL7 data",
    NETWORK_FAILURE: "Simulated network failure",
    TIMEOUT: "Simulated processing timeout",
})

SIMULATED_VALIDATION_ERROR = "Simulated validation error: injected by validation_error scenario"


class SimulatedFault(Exception):
    """Raised when a fault scenario short-circuits the pipeline."""

    def __init__(self, scenario: str, status_code: int, message: str):
        super().__init__(message)
        self.scenario = scenario
        self.status_code = status_code
        self.message = message


@dataclass(frozen=True)
class SimulationPlan:
    scenarios: Tuple[str, ...] = ()
    delay_ms: float = 0.0
    return_fhir: bool = True

    def fault(self) -> Optional[str]:
        """First fault scenario requested, in request order."""
        for scenario in self.scenarios:
            if scenario in FAULT_SCENARIOS:
                return scenario
        return None


def unknown_scenarios(scenarios: Sequence[str]) -> list:
    return [s for s in scenarios if s not in KNOWN_SCENARIOS]


class SimulationHarness:
    """
    Runs one message through the orchestrator under a SimulationPlan.

    Args:
        orchestrator: The real pipeline
        audit_logger: Sink for simulated fault events (optional)
        max_delay_ms: Upper bound applied to any requested delay
        enabled: When False, scenarios and delay are ignored
    """

    def __init__(
        self,
        orchestrator: PipelineOrchestrator,
        audit_logger: Optional[AuditLogger] = None,
        max_delay_ms: int = 10000,
        enabled: bool = True,
    ):
        self.orchestrator = orchestrator
        self.audit_logger = audit_logger
        self.max_delay_ms = max_delay_ms
        self.enabled = enabled

    def bounded_delay(self, delay_ms: float) -> float:
        return min(max(0.0, float(delay_ms)), float(self.max_delay_ms))

    async def _pause(self, delay_ms: float) -> None:
        logger.debug("Simulating %.0f ms of latency", delay_ms)
        await asyncio.sleep(delay_ms / 1000)

    async def run(
        self,
        raw: str,
        plan: SimulationPlan,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> PipelineResponse:
        """
        Execute the plan.

        Returns:
            The orchestrator's response, possibly with a superseded verdict

        Raises:
            SimulatedFault: For malformed_data, network_failure and timeout
            PipelineCancelled: If should_cancel fires between agent stages
        """
        if not self.enabled:
            plan = SimulationPlan(return_fhir=plan.return_fhir)

        delay_ms = self.bounded_delay(plan.delay_ms)
        if delay_ms:
            await self._pause(delay_ms)

        fault = plan.fault()
        if fault is not None:
            status_code = FAULT_SCENARIOS[fault]
            logger.info("Injecting simulated %s fault (status %s)", fault, status_code)
            if self.audit_logger is not None:
                self.audit_logger.log(simulation_fault(fault, status_code))
            raise SimulatedFault(fault, status_code, FAULT_MESSAGES[fault])

        response = self.orchestrator.process(raw, return_fhir=plan.return_fhir, should_cancel=should_cancel)

        if VALIDATION_ERROR in plan.scenarios:
            response = response.with_verdict(response.verdict.with_errors([SIMULATED_VALIDATION_ERROR]))

        return replace(response, scenarios=plan.scenarios)
