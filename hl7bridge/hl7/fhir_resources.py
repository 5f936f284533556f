"""
FHIR R4 resource values produced from HL7 v2.x messages.

A closed set of immutable variants (Patient, Encounter, Observation). Each
renders its FHIR JSON with to_fhir().
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple, Union

CONFIDENTIALITY_SYSTEM = "http://terminology.hl7.org/CodeSystem/v3-Confidentiality"
ACT_CODE_SYSTEM = "http://terminology.hl7.org/CodeSystem/v3-ActCode"
INTERPRETATION_SYSTEM = "http://terminology.hl7.org/CodeSystem/v3-ObservationInterpretation"
LOINC_SYSTEM = "http://loinc.org"


@dataclass(frozen=True)
class SecurityTag:
    system: str
    code: str
    display: str

    def to_fhir(self) -> Dict[str, str]:
        return {"system": self.system, "code": self.code, "display": self.display}


RESTRICTED = SecurityTag(system=CONFIDENTIALITY_SYSTEM, code="R", display="Restricted")


@dataclass(frozen=True)
class ResourceMeta:
    version_id: str
    source: str
    last_updated: datetime
    security: Optional[SecurityTag] = None

    def to_fhir(self) -> Dict[str, Any]:
        meta: Dict[str, Any] = {
            "versionId": self.version_id,
            "source": self.source,
            "lastUpdated": self.last_updated.isoformat(),
        }
        if self.security is not None:
            meta["security"] = [self.security.to_fhir()]
        return meta


@dataclass(frozen=True)
class Address:
    line: Tuple[str, ...] = ()
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None

    def to_fhir(self) -> Dict[str, Any]:
        address: Dict[str, Any] = {}
        if self.line:
            address["line"] = list(self.line)
        if self.city:
            address["city"] = self.city
        if self.state:
            address["state"] = self.state
        if self.postal_code:
            address["postalCode"] = self.postal_code
        if self.country:
            address["country"] = self.country
        return address


def _reference(patient_id: Optional[str]) -> Optional[Dict[str, str]]:
    return {"reference": f"Patient/{patient_id}"} if patient_id else None


@dataclass(frozen=True)
class Patient:
    id: str
    meta: ResourceMeta
    gender: str
    identifier: Optional[str] = None
    family: Optional[str] = None
    given: Tuple[str, ...] = ()
    birth_date: Optional[str] = None
    address: Optional[Address] = None

    resource_type = "Patient"

    def to_fhir(self) -> Dict[str, Any]:
        patient: Dict[str, Any] = {
            "resourceType": self.resource_type,
            "id": self.id,
            "meta": self.meta.to_fhir(),
            "gender": self.gender,
        }
        if self.identifier:
            patient["identifier"] = [{"use": "usual", "value": self.identifier}]
        if self.family or self.given:
            name: Dict[str, Any] = {"use": "official"}
            if self.family:
                name["family"] = self.family
            if self.given:
                name["given"] = list(self.given)
            patient["name"] = [name]
        if self.birth_date:
            patient["birthDate"] = self.birth_date
        if self.address is not None:
            rendered = self.address.to_fhir()
            if rendered:
                patient["address"] = [rendered]
        return patient


@dataclass(frozen=True)
class Encounter:
    id: str
    meta: ResourceMeta
    status: str
    class_code: str
    class_display: str
    subject: Optional[str] = None
    location: Optional[str] = None

    resource_type = "Encounter"

    def to_fhir(self) -> Dict[str, Any]:
        encounter: Dict[str, Any] = {
            "resourceType": self.resource_type,
            "id": self.id,
            "meta": self.meta.to_fhir(),
            "status": self.status,
            "class": {
                "system": ACT_CODE_SYSTEM,
                "code": self.class_code,
                "display": self.class_display,
            },
        }
        subject = _reference(self.subject)
        if subject:
            encounter["subject"] = subject
        if self.location:
            encounter["location"] = [{"location": {"display": self.location}}]
        return encounter


@dataclass(frozen=True)
class Observation:
    id: str
    meta: ResourceMeta
    status: str
    code: str
    display: str
    value: str
    interpretation: str
    interpretation_code: str
    system: Optional[str] = None
    units: Optional[str] = None
    reference_range: Optional[str] = None
    subject: Optional[str] = None

    resource_type = "Observation"

    @property
    def abnormal(self) -> bool:
        return self.interpretation_code != "N"

    @property
    def critical(self) -> bool:
        return self.interpretation_code in ("LL", "HH")

    def to_fhir(self) -> Dict[str, Any]:
        coding: Dict[str, Any] = {"code": self.code, "display": self.display}
        if self.system:
            coding["system"] = self.system

        observation: Dict[str, Any] = {
            "resourceType": self.resource_type,
            "id": self.id,
            "meta": self.meta.to_fhir(),
            "status": self.status,
            "code": {"coding": [coding], "text": self.display},
            "valueString": self.value,
            "interpretation": [{
                "coding": [{
                    "system": INTERPRETATION_SYSTEM,
                    "code": self.interpretation_code,
                    "display": self.interpretation,
                }],
            }],
        }
        subject = _reference(self.subject)
        if subject:
            observation["subject"] = subject
        if self.units:
            observation["note"] = [{"text": f"Units: {self.units}"}]
        if self.reference_range:
            observation["referenceRange"] = [{"text": self.reference_range}]
        return observation


FHIRResource = Union[Patient, Encounter, Observation]
