"""
Structured HL7 v2.x message types.

A parse yields either a ParsedMessage (well-formed) or a MalformedMessage
(error state carrying only the reasons). Both are immutable.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, Optional, Tuple, Union

from .grammar import COMPONENT_SEPARATOR


@dataclass(frozen=True)
class Segment:
    """One line of an HL7 message."""
    segment_type: str
    fields: Tuple[str, ...]
    sequence: int
    required: bool = False

    def field(self, index: int, default: str = "") -> str:
        """Return a field by index, or default when out of range."""
        if 0 <= index < len(self.fields):
            return self.fields[index]
        return default

    def components(self, index: int) -> Tuple[str, ...]:
        """Split a field into its ^-delimited components."""
        value = self.field(index)
        if not value:
            return ()
        return tuple(value.split(COMPONENT_SEPARATOR))

    def component(self, index: int, position: int, default: str = "") -> str:
        """Return one component of a field, or default when absent."""
        parts = self.components(index)
        if position < len(parts):
            return parts[position]
        return default


@dataclass(frozen=True)
class ParsedMessage:
    """A well-formed HL7 message: MSH header metadata plus ordered segments."""
    message_type: str
    trigger_event: str
    control_id: str
    timestamp: datetime
    sending_application: str
    sending_facility: str
    receiving_application: str
    receiving_facility: str
    processing_id: str
    version: str
    patient_id: Optional[str]
    segments: Tuple[Segment, ...]
    raw: str

    ok = True

    @property
    def errors(self) -> Tuple[str, ...]:
        return ()

    @property
    def segment_types(self) -> Tuple[str, ...]:
        return tuple(s.segment_type for s in self.segments)

    def has_segment(self, segment_type: str) -> bool:
        return any(s.segment_type == segment_type for s in self.segments)

    def first(self, segment_type: str) -> Optional[Segment]:
        """Return the first segment of a type, or None."""
        for segment in self.segments:
            if segment.segment_type == segment_type:
                return segment
        return None

    def all(self, segment_type: str) -> Iterator[Segment]:
        return (s for s in self.segments if s.segment_type == segment_type)


@dataclass(frozen=True)
class MalformedMessage:
    """Error state of a parse: the input could not be read as an HL7 message."""
    errors: Tuple[str, ...]
    raw: str

    ok = False
    message_type = ""
    trigger_event = ""
    control_id = ""
    patient_id = None
    timestamp = None

    @property
    def segments(self) -> Tuple[Segment, ...]:
        return ()

    @property
    def segment_types(self) -> Tuple[str, ...]:
        return ()


ParseResult = Union[ParsedMessage, MalformedMessage]
