"""
Application settings read from the environment.

Values come from environment variables (optionally loaded from a .env file
by python-dotenv in main.py).
"""

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings.

    Attributes:
        log_level: Root logging level
        audit_log_dir: Directory for JSON-lines audit logs
        audit_console_output: Mirror audit events to the console logger
        simulation_enabled: Whether /hl7/simulate honours simulation options
        simulation_max_delay_ms: Upper bound on simulated latency
        return_fhir_default: Include FHIR resources when the caller does not say
    """

    log_level: str = "INFO"
    audit_log_dir: str = "audit-logs"
    audit_console_output: bool = True
    simulation_enabled: bool = True
    simulation_max_delay_ms: int = 10000
    return_fhir_default: bool = True


def get_settings() -> Settings:
    """Build settings from the current environment."""
    max_delay = int(os.getenv("SIMULATION_MAX_DELAY_MS", "10000"))
    if max_delay < 0:
        raise ValueError("SIMULATION_MAX_DELAY_MS must be a non-negative integer")

    return Settings(
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        audit_log_dir=os.getenv("AUDIT_LOG_DIR", "audit-logs"),
        audit_console_output=_env_bool("AUDIT_CONSOLE_OUTPUT", True),
        simulation_enabled=_env_bool("SIMULATION_ENABLED", True),
        simulation_max_delay_ms=max_delay,
        return_fhir_default=_env_bool("RETURN_FHIR_DEFAULT", True),
    )
