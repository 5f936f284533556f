"""
Logging utilities for consistent logging with correlation IDs.

Provides standardized logging functions that automatically include
correlation IDs from request context and keep PHI out of log lines.
"""

import logging
from typing import Optional, Any, Dict
from fastapi import Request

from hl7bridge.config.compliance_policies import is_phi_allowed_in_logs
from hl7bridge.security_utils.phi_filter import redact_phi


logger = logging.getLogger(__name__)


def get_correlation_id_from_request(request: Optional[Request]) -> str:
    """
    Extract correlation ID from request state or return empty string.

    Args:
        request: FastAPI request object (may be None)

    Returns:
        Correlation ID string or empty string if not available
    """
    if request is None:
        return ""
    return getattr(request.state, "correlation_id", "")


def format_context(context: Dict[str, Any]) -> str:
    """Render context as key=value pairs, redacting PHI unless the region allows it."""
    context_str = ", ".join(f"{k}={v}" for k, v in context.items())
    if is_phi_allowed_in_logs():
        return context_str
    return redact_phi(context_str)


def log_structured(
    level: str,
    message: str,
    correlation_id: Optional[str] = None,
    request: Optional[Request] = None,
    **kwargs
) -> None:
    """
    Log a message with correlation ID and context.

    Args:
        level: Log level ('info', 'warning', 'error', 'debug')
        message: Log message
        correlation_id: Correlation ID (extracted from request if not provided)
        request: FastAPI request object (used to extract correlation ID)
        **kwargs: Additional context to include in log message
    """
    if correlation_id is None:
        correlation_id = get_correlation_id_from_request(request)

    formatted_message = f"[{correlation_id}] {message}" if correlation_id else message

    if kwargs:
        formatted_message = f"{formatted_message} ({format_context(kwargs)})"

    log_func = getattr(logger, level.lower(), logger.info)
    log_func(formatted_message)


def log_service_error(
    error: Exception,
    context: Dict[str, Any],
    correlation_id: Optional[str] = None,
    request: Optional[Request] = None,
) -> None:
    """
    Log a service-layer exception with its context and traceback.

    Args:
        error: Exception that occurred
        context: Operation context (e.g. {"operation": "simulate_hl7_message"})
        correlation_id: Correlation ID (extracted from request if not provided)
        request: FastAPI request object
    """
    correlation_id = correlation_id or get_correlation_id_from_request(request)
    formatted_message = f"{type(error).__name__}: {redact_phi(str(error))}"
    if correlation_id:
        formatted_message = f"[{correlation_id}] {formatted_message}"
    if context:
        formatted_message = f"{formatted_message} ({format_context(context)})"

    # Tracebacks repeat the unredacted exception text
    logger.error(formatted_message, exc_info=error if is_phi_allowed_in_logs() else None)
