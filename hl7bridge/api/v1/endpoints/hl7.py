"""
HL7 v2.x pipeline endpoints.

Provides HTTP endpoints for running messages through the pipeline (with
optional simulation hooks), validating messages, and describing the agents
and message grammar.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from hl7bridge.agents import AgentPipeline, PipelineCancelled
from hl7bridge.audit import get_audit_logger
from hl7bridge.config import Settings, get_settings
from hl7bridge.hl7 import HL7MessageParser, HL7MessageValidator
from hl7bridge.hl7.grammar import MESSAGE_RULES, SUPPORTED_VERSIONS
from hl7bridge.metrics import get_metrics
from hl7bridge.models import SimulateRequest, ValidateRequest, ValidateResponse
from hl7bridge.orchestrator import PipelineOrchestrator
from hl7bridge.simulation import SimulatedFault, SimulationHarness, SimulationPlan
from hl7bridge.utils.error_responses import (
    cancelled_response,
    get_correlation_id,
    simulated_fault_response,
)
from hl7bridge.utils.logging_utils import log_structured
from hl7bridge.utils.service_error_handler import ServiceErrorHandler

logger = logging.getLogger(__name__)

router = APIRouter()


def get_hl7_parser() -> HL7MessageParser:
    """Dependency to get HL7 message parser."""
    return HL7MessageParser()


def get_hl7_validator() -> HL7MessageValidator:
    """Dependency to get HL7 message validator."""
    return HL7MessageValidator()


def get_agent_pipeline() -> AgentPipeline:
    """Dependency to get the agent pipeline."""
    return AgentPipeline()


def get_orchestrator(
    parser: HL7MessageParser = Depends(get_hl7_parser),
    validator: HL7MessageValidator = Depends(get_hl7_validator),
    pipeline: AgentPipeline = Depends(get_agent_pipeline),
) -> PipelineOrchestrator:
    """Dependency to get a pipeline orchestrator wired to the audit and metrics sinks."""
    return PipelineOrchestrator(
        parser=parser,
        validator=validator,
        pipeline=pipeline,
        audit_logger=get_audit_logger(),
        metrics=get_metrics(),
    )


def get_simulation_harness(
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_settings),
) -> SimulationHarness:
    """Dependency to get the simulation harness."""
    return SimulationHarness(
        orchestrator,
        audit_logger=get_audit_logger(),
        max_delay_ms=settings.simulation_max_delay_ms,
        enabled=settings.simulation_enabled,
    )


def build_plan(body: SimulateRequest, settings: Settings) -> SimulationPlan:
    options = body.simulation
    if options is None:
        return SimulationPlan(return_fhir=settings.return_fhir_default)
    return_fhir = settings.return_fhir_default if options.return_fhir is None else options.return_fhir
    return SimulationPlan(
        scenarios=tuple(options.scenarios),
        delay_ms=options.delay,
        return_fhir=return_fhir,
    )


def fault_response(fault: SimulatedFault, correlation_id: str) -> JSONResponse:
    """Render a simulated fault; timeout is reported as a 200 with status "timeout"."""
    content = simulated_fault_response(fault.scenario, fault.status_code, fault.message, correlation_id)
    return JSONResponse(status_code=fault.status_code, content=content)


@router.post("/hl7/simulate")
async def simulate_hl7_message(
    request: Request,
    body: SimulateRequest,
    harness: SimulationHarness = Depends(get_simulation_harness),
    settings: Settings = Depends(get_settings),
):
    """
    Run an HL7 v2.x message through the full pipeline.

    Validation failures are reported in the body with a 200. Non-2xx codes
    are reserved for the malformed_data (400) and network_failure (503)
    simulation scenarios and for infrastructure faults.
    """
    correlation_id = get_correlation_id(request)
    plan = build_plan(body, settings)

    try:
        log_structured(
            level="info",
            message="Simulating HL7 message",
            correlation_id=correlation_id,
            request=request,
            scenarios=",".join(plan.scenarios) or "none",
            delay_ms=plan.delay_ms,
        )

        response = await harness.run(body.hl7, plan)

        log_structured(
            level="info",
            message="HL7 message processed",
            correlation_id=correlation_id,
            request=request,
            status=response.status,
            message_type=response.message.message_type or "unknown",
        )
        return response.to_dict(correlation_id=correlation_id)

    except SimulatedFault as fault:
        log_structured(
            level="info",
            message="Simulated fault injected",
            correlation_id=correlation_id,
            request=request,
            scenario=fault.scenario,
            status_code=fault.status_code,
        )
        return fault_response(fault, correlation_id)
    except PipelineCancelled as e:
        log_structured(
            level="warning",
            message="HL7 processing cancelled",
            correlation_id=correlation_id,
            request=request,
        )
        return JSONResponse(
            status_code=503,
            content=cancelled_response(str(e), correlation_id),
        )
    except Exception as e:
        raise ServiceErrorHandler.handle_service_error(
            e,
            {"operation": "simulate_hl7_message"},
            correlation_id,
            request,
        )


@router.post("/hl7/validate", response_model=ValidateResponse)
async def validate_hl7_message(
    request: Request,
    body: ValidateRequest,
    parser: HL7MessageParser = Depends(get_hl7_parser),
    validator: HL7MessageValidator = Depends(get_hl7_validator),
):
    """
    Validate an HL7 v2.x message without converting it or running agents.
    """
    correlation_id = get_correlation_id(request)

    try:
        message = parser.parse(body.hl7)
        verdict = validator.validate(message)

        log_structured(
            level="info",
            message="HL7 message validated",
            correlation_id=correlation_id,
            request=request,
            valid=verdict.valid,
            error_count=len(verdict.errors),
        )

        return ValidateResponse(
            messageType=message.message_type or None,
            controlId=message.control_id or None,
            **verdict.to_dict(),
        )
    except Exception as e:
        raise ServiceErrorHandler.handle_service_error(
            e,
            {"operation": "validate_hl7_message"},
            correlation_id,
            request,
        )


@router.get("/hl7/agents")
async def list_agents(pipeline: AgentPipeline = Depends(get_agent_pipeline)):
    """Describe the agent stages in execution order."""
    agents = pipeline.catalogue()
    return {"agents": agents, "count": len(agents)}


@router.get("/hl7/grammar")
async def get_grammar():
    """Supported message types with their segment rules."""
    return {
        "messageTypes": {
            message_type: {
                "description": rule.description,
                "required": list(rule.required),
                "optional": list(rule.optional),
                "complianceLevel": rule.compliance_level.value,
            }
            for message_type, rule in MESSAGE_RULES.items()
        },
        "supportedVersions": sorted(SUPPORTED_VERSIONS),
    }
