"""
HL7 v2.x message parser.

Parses pipe-delimited HL7 v2.x messages into ParsedMessage values. Parsing
is total: malformed input yields a MalformedMessage instead of raising.
"""

import logging
import re
from datetime import datetime
from typing import List, Optional, Tuple

import hl7

from . import grammar
from .types import MalformedMessage, ParsedMessage, ParseResult, Segment

logger = logging.getLogger(__name__)

_LEADING_DIGITS = re.compile(r"^\d+")


class HL7ParseError(Exception):
    """Structural error reading an HL7 v2.x message."""
    pass


def parse_hl7_timestamp(value: Optional[str], now: Optional[datetime] = None) -> datetime:
    """
    Parse an HL7 timestamp of the form YYYYMMDD[HHMMSS].

    Hour, minute and second default to 0 when absent. Timezone offsets and
    fractional seconds are ignored. A missing or malformed value falls back
    to the current time instead of failing.

    Args:
        value: Raw timestamp field (e.g. "20240115103000")
        now: Fallback value; defaults to datetime.now()

    Returns:
        Naive datetime
    """
    match = _LEADING_DIGITS.match(value.strip()) if value else None
    digits = match.group(0) if match else ""
    if len(digits) >= 8:
        try:
            return datetime(
                int(digits[0:4]),
                int(digits[4:6]),
                int(digits[6:8]),
                int(digits[8:10] or 0),
                int(digits[10:12] or 0),
                int(digits[12:14] or 0),
            )
        except ValueError:
            logger.debug("Invalid HL7 timestamp %r, using current time", value)
    return now or datetime.now()


def split_segments(raw: str) -> List[str]:
    """Split raw text into non-blank segment lines."""
    text = raw.replace("\r\n", "\r").replace("\n", "\r")
    return [line for line in text.split(grammar.SEGMENT_TERMINATOR) if line.strip()]


class HL7MessageParser:
    """Parser for HL7 v2.x messages."""

    def parse(self, message: str) -> ParseResult:
        """
        Parse an HL7 v2.x message string.

        Args:
            message: Raw HL7 v2.x message (pipe-delimited, CR-separated segments)

        Returns:
            ParsedMessage for well-formed input, MalformedMessage otherwise.
            Never raises.
        """
        if isinstance(message, bytes):
            message = message.decode("utf-8", errors="replace")
        raw = message or ""

        lines = split_segments(raw)
        try:
            self._check_structure(lines)
            header = self._read_header(lines)
        except HL7ParseError as e:
            logger.info("Rejected HL7 message: %s", e)
            return MalformedMessage(errors=(str(e),), raw=raw)

        message_type = header["message_type"]
        segments = tuple(
            self._build_segment(line, index, message_type)
            for index, line in enumerate(lines)
        )

        return ParsedMessage(
            message_type=message_type,
            trigger_event=header["trigger_event"],
            control_id=header["control_id"],
            timestamp=parse_hl7_timestamp(header["timestamp"]),
            sending_application=header["sending_application"],
            sending_facility=header["sending_facility"],
            receiving_application=header["receiving_application"],
            receiving_facility=header["receiving_facility"],
            processing_id=header["processing_id"],
            version=header["version"],
            patient_id=header["patient_id"],
            segments=segments,
            raw=raw,
        )

    def _check_structure(self, lines: List[str]) -> None:
        if not lines:
            raise HL7ParseError("Empty message: no segments found")

        first = lines[0]
        if not first.startswith("MSH"):
            raise HL7ParseError(f"Missing MSH segment: first segment is '{first[:3]}'")

        field_count = len(first.split(grammar.FIELD_SEPARATOR))
        if field_count < grammar.MSH_MIN_FIELDS:
            raise HL7ParseError(
                f"Insufficient MSH fields: expected at least {grammar.MSH_MIN_FIELDS}, found {field_count}"
            )

    def _read_header(self, lines: List[str]) -> dict:
        """Read MSH metadata and the PID identifier through the hl7 library."""
        try:
            parsed = hl7.parse(grammar.SEGMENT_TERMINATOR.join(lines))
            msh = parsed.segment("MSH")
        except Exception as e:
            raise HL7ParseError(f"Unreadable MSH segment: {e}") from e

        # The hl7 library counts MSH-1 (the field separator) as msh[1]
        message_type, trigger_event = self._split_type(self._msh_field(msh, grammar.MSH_MESSAGE_TYPE + 1))

        return {
            "message_type": message_type,
            "trigger_event": trigger_event,
            "control_id": self._msh_field(msh, grammar.MSH_CONTROL_ID + 1),
            "timestamp": self._msh_field(msh, grammar.MSH_TIMESTAMP + 1),
            "sending_application": self._msh_field(msh, grammar.MSH_SENDING_APPLICATION + 1),
            "sending_facility": self._msh_field(msh, grammar.MSH_SENDING_FACILITY + 1),
            "receiving_application": self._msh_field(msh, grammar.MSH_RECEIVING_APPLICATION + 1),
            "receiving_facility": self._msh_field(msh, grammar.MSH_RECEIVING_FACILITY + 1),
            "processing_id": self._msh_field(msh, grammar.MSH_PROCESSING_ID + 1),
            "version": self._msh_field(msh, grammar.MSH_VERSION + 1),
            "patient_id": self._patient_id(parsed),
        }

    def _msh_field(self, msh, index: int) -> str:
        return str(msh[index]).strip() if len(msh) > index else ""

    def _split_type(self, value: str) -> Tuple[str, str]:
        """Split MSH-9 (e.g. "ADT^A01") into message type and trigger event."""
        parts = value.split(grammar.COMPONENT_SEPARATOR)
        message_type = parts[0].strip().upper()
        trigger_event = parts[1].strip().upper() if len(parts) > 1 else ""
        return message_type, trigger_event

    def _patient_id(self, parsed) -> Optional[str]:
        """PID-3, first repetition, first component."""
        try:
            pid = parsed.segments("PID")[0]
        except (KeyError, IndexError):
            return None

        if len(pid) <= grammar.PID_IDENTIFIER:
            return None
        identifier = str(pid[grammar.PID_IDENTIFIER]).split("~")[0]
        patient_id = identifier.split(grammar.COMPONENT_SEPARATOR)[0].strip()
        return patient_id or None

    def _build_segment(self, line: str, sequence: int, message_type: str) -> Segment:
        segment_type = line[:3]
        return Segment(
            segment_type=segment_type,
            fields=tuple(line.split(grammar.FIELD_SEPARATOR)),
            sequence=sequence,
            required=grammar.is_required(segment_type, message_type),
        )
