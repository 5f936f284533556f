import pytest

import hl7bridge.audit.audit_logger as audit_logger_module
from hl7bridge.audit import AuditLogger
from hl7bridge.hl7 import (
    HL7MessageParser,
    HL7MessageValidator,
    HL7ToFHIRConverter,
    SecurityClassifier,
)
from hl7bridge.main import app
from hl7bridge.metrics import get_metrics


@pytest.fixture(scope="session")
def anyio_backend():
    """Restrict anyio tests to the asyncio backend."""

    yield "asyncio"


@pytest.fixture(autouse=True)
def quiet_audit(monkeypatch):
    """Keep audit events in memory and start every test with empty metrics."""

    monkeypatch.setattr(
        audit_logger_module,
        "_audit_logger",
        AuditLogger(log_dir=None, console_output=False),
    )
    get_metrics().reset()
    yield
    get_metrics().reset()


@pytest.fixture
def dependency_overrides_guard():
    """Save and restore FastAPI dependency overrides for each test."""

    original_overrides = dict(app.dependency_overrides)

    try:
        yield app.dependency_overrides
    finally:
        app.dependency_overrides = original_overrides


@pytest.fixture
def parser():
    return HL7MessageParser()


@pytest.fixture
def validator():
    return HL7MessageValidator()


@pytest.fixture
def classifier():
    return SecurityClassifier()


@pytest.fixture
def converter():
    return HL7ToFHIRConverter()
