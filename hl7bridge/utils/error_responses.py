"""
Error bodies for the HL7 endpoints.

Every non-success body shares one envelope (status, message, correlation_id,
timestamp, status_code and an optional hint). Simulated faults add
``simulated`` and ``scenario`` so clients can tell an injected failure from
a real one.
"""

import uuid
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from fastapi import Request


STATUS_HINTS: Mapping[int, str] = MappingProxyType({
    400: "The HL7 payload was not accepted. Check the MSH header and segment separators.",
    404: "Unknown route. HL7 endpoints are served under /api/v1/hl7.",
    422: "Request body rejected. 'hl7' must be a non-empty string and scenarios must be known names.",
    500: "HL7 pipeline infrastructure error. Quote the correlation_id when reporting it.",
    503: "HL7 pipeline unavailable or cancelled. Resubmit the message.",
})

SCENARIO_HINTS: Mapping[str, str] = MappingProxyType({
    "malformed_data": "Injected by the malformed_data scenario. The message was not parsed.",
    "network_failure": "Injected by the network_failure scenario. Remove it from simulation.scenarios to process normally.",
    "timeout": "Injected by the timeout scenario. No pipeline result was produced.",
})


def get_correlation_id(request: Request) -> str:
    """Correlation id stored by the middleware, or a fresh one."""
    return getattr(request.state, "correlation_id", None) or uuid.uuid4().hex


def get_hint_for_status_code(status_code: int) -> Optional[str]:
    return STATUS_HINTS.get(status_code)


def create_error_response(
    message: str,
    status_code: int = 500,
    correlation_id: Optional[str] = None,
    error_type: Optional[str] = None,
    hint: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """
    Build the error envelope.

    Args:
        message: Human-readable error message
        status_code: HTTP status code the body is sent with
        correlation_id: Request correlation ID; generated when missing
        error_type: Exception or fault name, e.g. "SimulatedFault"
        hint: Overrides the per-status hint
        **extra: Fields merged last, so they may replace envelope keys

    Returns:
        JSON-serializable error body
    """
    response: Dict[str, Any] = {
        "status": "error",
        "message": message,
        "correlation_id": correlation_id or uuid.uuid4().hex,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status_code": status_code,
    }
    if error_type:
        response["error_type"] = error_type

    hint = hint or get_hint_for_status_code(status_code)
    if hint:
        response["hint"] = hint

    response.update(extra)
    return response


def simulated_fault_response(
    scenario: str,
    status_code: int,
    message: str,
    correlation_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Body for an injected fault; a 200 fault reports status "timeout"."""
    extra: Dict[str, Any] = {"simulated": True, "scenario": scenario}
    if status_code == 200:
        extra["status"] = "timeout"
    return create_error_response(
        message,
        status_code=status_code,
        correlation_id=correlation_id,
        error_type="SimulatedFault",
        hint=SCENARIO_HINTS.get(scenario),
        **extra,
    )


def cancelled_response(message: str = "", correlation_id: Optional[str] = None) -> Dict[str, Any]:
    return create_error_response(
        message or "Processing cancelled before the next pipeline stage",
        status_code=503,
        correlation_id=correlation_id,
        error_type="PipelineCancelled",
    )
