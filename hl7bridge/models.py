from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hl7bridge.simulation import KNOWN_SCENARIOS, unknown_scenarios


class SimulationOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    scenarios: List[str] = Field(default_factory=list)
    delay: float = Field(0, ge=0, description="Simulated latency in milliseconds")
    return_fhir: Optional[bool] = Field(None, alias="returnFhir")

    @field_validator("scenarios")
    @classmethod
    def check_scenarios(cls, value: List[str]) -> List[str]:
        unknown = unknown_scenarios(value)
        if unknown:
            raise ValueError(
                f"Unknown simulation scenario(s): {', '.join(unknown)}. "
                f"Expected one of: {', '.join(sorted(KNOWN_SCENARIOS))}"
            )
        return value


class SimulateRequest(BaseModel):
    hl7: str = Field(..., min_length=1, description="HL7 v2.x message (pipe-delimited)")
    simulation: Optional[SimulationOptions] = None

    @field_validator("hl7")
    @classmethod
    def check_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("hl7 must not be blank")
        return value


class ValidateRequest(BaseModel):
    hl7: str = Field(..., min_length=1)


class ValidateResponse(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    complianceLevel: str
    messageType: Optional[str] = None
    controlId: Optional[str] = None


class HealthCheckResponse(BaseModel):
    status: str
    service: str
    version: str
    region: str
    metrics: Optional[Dict[str, Any]] = None
