from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Value objects for a tokenized EDIFACT interchange and its explanation.
# Everything here is created fresh per parse/annotate call and frozen afterwards.

DEFAULT_COMPONENT_SEPARATOR = ':'
DEFAULT_DATA_SEPARATOR = '+'
DEFAULT_RELEASE_CHARACTER = '?'
DEFAULT_SEGMENT_TERMINATOR = "'"


class EmptyInputError(ValueError):
    """Raised when the input is not a usable interchange string at all."""
    code = "EMPTY_INPUT"

    def __init__(self, message: str = "EMPTY_INPUT"):
        super().__init__(message)


class StructuralErrorCode(str, Enum):
    FIELD_VALUE_MISMATCH = "FIELD_VALUE_MISMATCH"
    UNT_SEGMENT_COUNT_MISSING = "UNT_SEGMENT_COUNT_MISSING"
    UNT_SEGMENT_COUNT_MISMATCH = "UNT_SEGMENT_COUNT_MISMATCH"
    UNT_REFERENCE_MISMATCH = "UNT_REFERENCE_MISMATCH"
    UNZ_MESSAGE_COUNT_MISMATCH = "UNZ_MESSAGE_COUNT_MISMATCH"
    UNZ_CONTROL_REFERENCE_MISMATCH = "UNZ_CONTROL_REFERENCE_MISMATCH"
    MALFORMED_SEGMENT_TAG = "MALFORMED_SEGMENT_TAG"
    UNKNOWN_SEGMENT = "UNKNOWN_SEGMENT"
    UNH_OUT_OF_SEQUENCE = "UNH_OUT_OF_SEQUENCE"
    SEGMENT_OUT_OF_MESSAGE_SCOPE = "SEGMENT_OUT_OF_MESSAGE_SCOPE"


class StructuralError(BaseModel):
    """Represents a structural anomaly found after tokenization."""
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    code: StructuralErrorCode
    message: str
    segment_tag: Optional[str] = None
    position: Optional[int] = None
    field: Optional[str] = None
    value: Optional[Any] = None


class DelimiterSet(BaseModel):
    """The four control characters in use for one interchange."""
    model_config = ConfigDict(frozen=True)

    component_separator: str = DEFAULT_COMPONENT_SEPARATOR
    data_separator: str = DEFAULT_DATA_SEPARATOR
    release_character: str = DEFAULT_RELEASE_CHARACTER
    segment_terminator: str = DEFAULT_SEGMENT_TERMINATOR

    def as_tuple(self) -> tuple:
        return (self.component_separator, self.data_separator, self.release_character, self.segment_terminator)

    def is_distinct(self) -> bool:
        chars = self.as_tuple()
        return all(len(c) == 1 for c in chars) and len(set(chars)) == 4


class RawSegment(BaseModel):
    """Represents a single tokenized EDIFACT segment."""
    model_config = ConfigDict(frozen=True)

    tag: str
    position: int
    elements: List[List[str]] = Field(default_factory=list)

    def get_element(self, position: int) -> Optional[List[str]]:
        """Retrieves an element's components by its position (1-based index)."""
        if 1 <= position <= len(self.elements):
            return self.elements[position - 1]
        return None

    def get_component(self, element_position: int, component_position: int = 1) -> Optional[str]:
        """Retrieves a single component value, both positions 1-based."""
        element = self.get_element(element_position)
        if element is not None and 1 <= component_position <= len(element):
            return element[component_position - 1]
        return None


class Document(BaseModel):
    model_config = ConfigDict(frozen=True)

    delimiters: DelimiterSet = Field(default_factory=DelimiterSet)
    segments: List[RawSegment] = Field(default_factory=list)

    def get_segment(self, tag: str) -> Optional[RawSegment]:
        return next((segment for segment in self.segments if segment.tag == tag), None)

    def get_segments(self, tag: str) -> List[RawSegment]:
        return [segment for segment in self.segments if segment.tag == tag]

    def get_last_segment(self, tag: str) -> Optional[RawSegment]:
        return next((segment for segment in reversed(self.segments) if segment.tag == tag), None)


class ParseResult(BaseModel):
    """A tokenized document together with the structural errors found in it."""
    model_config = ConfigDict(frozen=True)

    document: Document
    errors: List[StructuralError] = Field(default_factory=list)

    @property
    def error_codes(self) -> List[str]:
        return [str(error.code) for error in self.errors]


class AnnotatedField(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    name: str
    description: Optional[str] = None
    value: str


class AnnotatedSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    segment: str
    position: int
    description: str
    fields: List[AnnotatedField] = Field(default_factory=list)


class Explanations(BaseModel):
    model_config = ConfigDict(frozen=True)

    segments: List[AnnotatedSegment] = Field(default_factory=list)


class ExplainedDocument(Document):
    """A Document plus per-component explanations."""
    explanations: Explanations = Field(default_factory=Explanations)
