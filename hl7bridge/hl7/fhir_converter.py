"""
HL7 v2.x to FHIR resource converter.

Converts parsed HL7 v2.x messages to FHIR R4 resources. Conversion is
deterministic: identical input yields identical resources, including ids.
"""

import logging
from types import MappingProxyType
from typing import List, Mapping, Optional
from uuid import NAMESPACE_URL, uuid5

from . import grammar
from .fhir_resources import (
    LOINC_SYSTEM,
    RESTRICTED,
    Address,
    Encounter,
    FHIRResource,
    Observation,
    Patient,
    ResourceMeta,
)
from .security import SecurityLabel
from .types import ParsedMessage, ParseResult, Segment

logger = logging.getLogger(__name__)


GENDER_MAP: Mapping[str, str] = MappingProxyType({
    "M": "male",
    "F": "female",
    "O": "other",
    "U": "unknown",
})

ENCOUNTER_CLASS_MAP: Mapping[str, str] = MappingProxyType({
    "I": "IMP",  # Inpatient
    "O": "AMB",  # Outpatient
    "E": "EMER",  # Emergency
    "P": "PRENC",  # Pre-admission
    "R": "AMB",  # Recurring patient
    "B": "OBSENC",  # Obstetrics
})

ENCOUNTER_CLASS_DISPLAY: Mapping[str, str] = MappingProxyType({
    "IMP": "inpatient encounter",
    "AMB": "ambulatory",
    "EMER": "emergency",
    "PRENC": "pre-admission",
    "OBSENC": "observation encounter",
})

INTERPRETATION_MAP: Mapping[str, str] = MappingProxyType({
    "L": "Low",
    "H": "High",
    "LL": "Critical Low",
    "HH": "Critical High",
    "A": "Abnormal",
})

OBSERVATION_STATUS_MAP: Mapping[str, str] = MappingProxyType({
    "F": "final",
    "P": "preliminary",
    "C": "corrected",
    "X": "cancelled",
    "D": "entered-in-error",
})


def map_gender(code: Optional[str]) -> str:
    """Map HL7 administrative sex to FHIR gender; anything unknown is 'unknown'."""
    return GENDER_MAP.get((code or "").strip(), "unknown")


def map_encounter_class(code: Optional[str]) -> str:
    """Map PV1-2 patient class to a v3 ActCode; defaults to AMB."""
    return ENCOUNTER_CLASS_MAP.get((code or "").strip(), "AMB")


def map_interpretation(flag: Optional[str]) -> str:
    """Map OBX-8 abnormal flag to an interpretation display; defaults to Normal."""
    return INTERPRETATION_MAP.get((flag or "").strip(), "Normal")


def map_observation_status(status: Optional[str]) -> str:
    return OBSERVATION_STATUS_MAP.get((status or "").strip(), "final")


def map_encounter_status(trigger_event: str) -> str:
    """Map ADT trigger event to encounter status."""
    if trigger_event in ("A01", "A02", "A04"):  # Admit, Transfer, Register
        return "in-progress"
    if trigger_event == "A03":  # Discharge
        return "finished"
    return "planned"


def format_hl7_date(value: str) -> Optional[str]:
    """Reformat an HL7 date (YYYYMMDD...) as YYYY-MM-DD."""
    digits = value.strip()[:8]
    if len(digits) < 8 or not digits.isdigit():
        return None
    return f"{digits[0:4]}-{digits[4:6]}-{digits[6:8]}"


class HL7ToFHIRConverter:
    """Converter from HL7 v2.x to FHIR R4 resources."""

    def convert(self, message: ParseResult, label: SecurityLabel) -> List[FHIRResource]:
        """
        Convert a parsed HL7 v2.x message to FHIR resources.

        Resources are produced only for segments that are present: a Patient
        from the first PID, an Encounter from the first PV1 and one
        Observation per OBX. Missing segments are not an error.

        Args:
            message: Result of HL7MessageParser.parse
            label: Security label for the message

        Returns:
            Resources in order Patient, Encounter, Observations
        """
        if not message.ok:
            return []

        meta = ResourceMeta(
            version_id="1",
            source=f"{message.sending_application}@{message.sending_facility}",
            last_updated=message.timestamp,
            security=RESTRICTED if label.contains_phi else None,
        )

        resources: List[FHIRResource] = []
        patient_ref = message.patient_id

        pid = message.first("PID")
        if pid is not None:
            patient = self._convert_patient(message, pid, meta)
            patient_ref = patient.id
            resources.append(patient)

        pv1 = message.first("PV1")
        if pv1 is not None:
            resources.append(self._convert_encounter(message, pv1, meta, patient_ref))

        for obx in message.all("OBX"):
            resources.append(self._convert_observation(message, obx, meta, patient_ref))

        logger.debug(
            "Converted message %s into %d FHIR resources", message.control_id, len(resources)
        )
        return resources

    def _resource_id(self, message: ParsedMessage, segment: Segment) -> str:
        return str(uuid5(NAMESPACE_URL, f"hl7:{message.control_id}:{segment.sequence}:{segment.segment_type}"))

    def _convert_patient(self, message: ParsedMessage, pid: Segment, meta: ResourceMeta) -> Patient:
        """Convert PID segment to FHIR Patient resource."""
        name = pid.components(grammar.PID_NAME)
        family = name[0] if name and name[0] else None
        given = tuple(g for g in name[1:3] if g)

        address = None
        parts = pid.components(grammar.PID_ADDRESS)
        if any(parts):
            def part(i: int) -> Optional[str]:
                return parts[i] if i < len(parts) and parts[i] else None

            address = Address(
                line=tuple(p for p in parts[0:2] if p),
                city=part(2),
                state=part(3),
                postal_code=part(4),
                country=part(5),
            )

        return Patient(
            id=message.patient_id or self._resource_id(message, pid),
            meta=meta,
            identifier=message.patient_id,
            family=family,
            given=given,
            gender=map_gender(pid.field(grammar.PID_SEX)),
            birth_date=format_hl7_date(pid.field(grammar.PID_BIRTH_DATE)),
            address=address,
        )

    def _convert_encounter(
        self,
        message: ParsedMessage,
        pv1: Segment,
        meta: ResourceMeta,
        patient_ref: Optional[str],
    ) -> Encounter:
        """Convert PV1 segment to FHIR Encounter resource."""
        if not patient_ref:
            logger.warning("PV1 segment without patient reference in message %s", message.control_id)

        class_code = map_encounter_class(pv1.field(grammar.PV1_PATIENT_CLASS))
        location = pv1.component(grammar.PV1_ASSIGNED_LOCATION, 0) or None

        return Encounter(
            id=self._resource_id(message, pv1),
            meta=meta,
            status=map_encounter_status(message.trigger_event),
            class_code=class_code,
            class_display=ENCOUNTER_CLASS_DISPLAY.get(class_code, class_code),
            subject=patient_ref,
            location=location,
        )

    def _convert_observation(
        self,
        message: ParsedMessage,
        obx: Segment,
        meta: ResourceMeta,
        patient_ref: Optional[str],
    ) -> Observation:
        """Convert OBX segment to FHIR Observation resource."""
        code = obx.component(grammar.OBX_IDENTIFIER, 0)
        display = obx.component(grammar.OBX_IDENTIFIER, 1) or code
        coding_system = obx.component(grammar.OBX_IDENTIFIER, 2)

        system = None
        if coding_system.upper() in ("LN", "LOINC"):
            system = LOINC_SYSTEM
        elif code and code.replace("-", "").isdigit() and "-" in code:
            # Looks like a LOINC code (e.g. 6690-2)
            system = LOINC_SYSTEM
        elif coding_system:
            system = coding_system

        flag = obx.field(grammar.OBX_ABNORMAL_FLAGS).strip().upper()
        interpretation = map_interpretation(flag)

        return Observation(
            id=self._resource_id(message, obx),
            meta=meta,
            status=map_observation_status(obx.field(grammar.OBX_STATUS)),
            code=code or "UNKNOWN",
            display=display or "UNKNOWN",
            system=system,
            value=obx.field(grammar.OBX_VALUE),
            units=obx.field(grammar.OBX_UNITS) or None,
            reference_range=obx.field(grammar.OBX_REFERENCE_RANGE) or None,
            interpretation=interpretation,
            interpretation_code=flag if flag in INTERPRETATION_MAP else "N",
            subject=patient_ref,
        )
