"""
Maps infrastructure exceptions raised while serving HL7 requests to HTTP errors.

Parse errors, validation failures and agent failures are data in the
pipeline response and never reach this module. What does reach it is a
broken collaborator such as an audit sink that cannot write, a dependency
that failed to build, or a bug.
"""

import logging
import os
from typing import Any, Dict, Optional, Tuple, Type

from fastapi import HTTPException, Request

from hl7bridge.security_utils.phi_filter import redact_phi
from hl7bridge.utils.error_responses import get_correlation_id
from hl7bridge.utils.logging_utils import log_service_error

logger = logging.getLogger(__name__)

# First isinstance match wins; TimeoutError must precede its OSError base
ERROR_STATUS: Tuple[Tuple[Type[BaseException], int, str], ...] = (
    (ConnectionError, 503, "HL7 pipeline dependency unavailable"),
    (TimeoutError, 503, "HL7 pipeline dependency timed out"),
    (OSError, 503, "Audit or storage sink unavailable"),
    (ValueError, 400, "HL7 request could not be processed"),
)


class ServiceErrorHandler:
    """Turns unexpected endpoint exceptions into HTTPExceptions carrying the correlation id."""

    @staticmethod
    def classify(error: Exception) -> Tuple[int, str]:
        for error_type, status_code, message in ERROR_STATUS:
            if isinstance(error, error_type):
                return status_code, message
        return 500, "HL7 pipeline failed unexpectedly"

    @staticmethod
    def handle_service_error(
        error: Exception,
        context: Dict[str, Any],
        correlation_id: Optional[str] = None,
        request: Optional[Request] = None,
    ) -> HTTPException:
        """
        Log the error with its context and build the HTTPException to raise.

        The exception text reaches the client only for ValueError or when
        DEBUG is set, and is PHI-redacted either way.

        Args:
            error: Exception that occurred
            context: Operation context, e.g. {"operation": "simulate_hl7_message"}
            correlation_id: Request correlation ID
            request: FastAPI request object

        Returns:
            HTTPException for the caller to raise
        """
        if correlation_id is None and request is not None:
            correlation_id = get_correlation_id(request)

        log_service_error(error, context, correlation_id, request)

        status_code, message = ServiceErrorHandler.classify(error)
        if isinstance(error, ValueError) or os.getenv("DEBUG", "False").lower() == "true":
            detail = redact_phi(str(error))
            if detail:
                message = f"{message}: {detail}"

        if correlation_id:
            message = f"{message} [correlation_id={correlation_id}]"

        return HTTPException(status_code=status_code, detail=message)
