import logging
import re
from typing import Iterable, Iterator, List, Optional, Tuple

from edifact_models import DelimiterSet, Document, EmptyInputError, ParseResult, RawSegment
from structural_validator import validate_document

logger = logging.getLogger(__name__)

SERVICE_STRING_ADVICE_TAG = 'UNA'
# UNA + component sep, data sep, decimal mark, release char, reserved, segment terminator
SERVICE_STRING_ADVICE_LENGTH = 9

_LINE_BREAKS = re.compile(r'[\r\n]')


# --- Delimiter Resolver ---
def _read_service_string_advice(text: str) -> Optional[DelimiterSet]:
    if not text.startswith(SERVICE_STRING_ADVICE_TAG):
        return None
    six = text[3:SERVICE_STRING_ADVICE_LENGTH]
    if len(six) != 6:
        logger.warning(f"Service string advice is truncated ('{text[:SERVICE_STRING_ADVICE_LENGTH]}'). Falling back to default delimiters.")
        return None
    # Positions 2 (decimal mark) and 4 (reserved) are not used for tokenizing.
    delimiters = DelimiterSet(
        component_separator=six[0],
        data_separator=six[1],
        release_character=six[3],
        segment_terminator=six[5],
    )
    if not delimiters.is_distinct():
        logger.warning(f"Service string advice declares non-distinct delimiters {delimiters.as_tuple()}. Falling back to default delimiters.")
        return None
    return delimiters


def resolve_delimiters(text: str) -> DelimiterSet:
    """
    Detects the delimiter set from an optional leading UNA service string advice.
    Never raises: anything unreadable degrades to the default ':+?\\'' scheme.
    """
    delimiters = _read_service_string_advice(text)
    if delimiters is None:
        logger.debug("No usable UNA service string advice. Using default delimiters (':', '+', '?', \"'\").")
        return DelimiterSet()
    logger.debug(f"Delimiters detected: Component='{delimiters.component_separator}', Data='{delimiters.data_separator}', "
                 f"Release='{delimiters.release_character}', Segment='{delimiters.segment_terminator}'")
    return delimiters


# --- Escape-aware scanning ---
def _scan(text: str, release: str) -> Iterator[Tuple[str, bool]]:
    """Yields (character, was_escaped) pairs. Release characters themselves are not yielded."""
    escaped = False
    for ch in text:
        if escaped:
            escaped = False
            yield ch, True
        elif ch == release:
            escaped = True
        else:
            yield ch, False


def _finish_segment(buffer: List[str]) -> str:
    return _LINE_BREAKS.sub('', ''.join(buffer)).strip()


def tokenize_segments(text: str, terminator: str, release: str, keep_escapes: bool = False) -> List[str]:
    """
    Splits interchange text into trimmed, non-empty raw segment strings (terminator stripped).

    An escaped character is always literal payload. With keep_escapes=True the release
    character stays in front of it, so later splitting stages can still tell an escaped
    separator from a real one.
    """
    segments: List[str] = []
    buffer: List[str] = []
    for ch, escaped in _scan(text, release):
        if escaped:
            if keep_escapes:
                buffer.append(release)
            buffer.append(ch)
        elif ch == terminator:
            segment = _finish_segment(buffer)
            if segment:
                segments.append(segment)
            buffer = []
        else:
            buffer.append(ch)

    # Unterminated trailing segment
    segment = _finish_segment(buffer)
    if segment:
        segments.append(segment)
    return segments


def split_top_level(segment_body: str, sep: str, release: str, unescape: bool = True) -> List[str]:
    """
    Splits on every unescaped `sep`. Always emits the trailing token, so 'A++B' gives
    ['A', '', 'B']. With unescape=False escape sequences are kept for a nested split.
    """
    tokens: List[str] = []
    current: List[str] = []
    for ch, escaped in _scan(segment_body, release):
        if escaped:
            if not unescape:
                current.append(release)
            current.append(ch)
        elif ch == sep:
            tokens.append(''.join(current))
            current = []
        else:
            current.append(ch)
    tokens.append(''.join(current))
    return tokens


class EdifactParser:
    def __init__(self, edifact_string: str, expected_message_type: Optional[str] = None,
                 known_tags: Optional[Iterable[str]] = None):
        if not isinstance(edifact_string, str) or not edifact_string.strip():
            raise EmptyInputError()

        self.expected_message_type = expected_message_type
        self.known_tags = frozenset(tag.upper() for tag in known_tags) if known_tags else frozenset()

        clean_edifact = edifact_string.strip()
        self.delimiters = resolve_delimiters(clean_edifact)
        self.all_segments: List[RawSegment] = self._segmentize(clean_edifact)
        self.document = Document(delimiters=self.delimiters, segments=self.all_segments)
        logger.debug(f"Parser initialized with {len(self.all_segments)} segments.")

    def _segmentize(self, edifact_string: str) -> List[RawSegment]:
        d = self.delimiters
        segments: List[RawSegment] = []
        body = edifact_string

        if _read_service_string_advice(edifact_string) is not None:
            # The advice carries the release and terminator characters literally, so it is
            # taken verbatim instead of being scanned.
            service_chars = edifact_string[3:SERVICE_STRING_ADVICE_LENGTH - 1]
            segments.append(RawSegment(tag=SERVICE_STRING_ADVICE_TAG, position=1, elements=[[service_chars]]))
            body = edifact_string[SERVICE_STRING_ADVICE_LENGTH:]

        for raw in tokenize_segments(body, d.segment_terminator, d.release_character, keep_escapes=True):
            segments.append(self._build_segment(raw, len(segments) + 1))
        return segments

    def _build_segment(self, raw_segment: str, position: int) -> RawSegment:
        d = self.delimiters
        tag = raw_segment[:3].upper()
        rest = raw_segment[3:]
        if rest.startswith(d.data_separator):
            rest = rest[1:]
        elements = [
            split_top_level(element, d.component_separator, d.release_character)
            for element in split_top_level(rest, d.data_separator, d.release_character, unescape=False)
        ]
        logger.debug(f"  Segment {position}: '{tag}' with {len(elements)} elements")
        return RawSegment(tag=tag, position=position, elements=elements)

    def parse(self) -> ParseResult:
        document = self.document
        errors = validate_document(document, self.expected_message_type, self.known_tags)

        if errors:
            logger.warning("--- EDIFACT STRUCTURAL VALIDATION SUMMARY: ERRORS FOUND ---")
            logger.warning(f"Total Errors: {len(errors)}")
            for error in errors:
                logger.warning(f"  - {error.code} at {error.segment_tag or 'DOCUMENT'} (Position: {error.position}): {error.message}")
            logger.warning("--- END OF SUMMARY ---")
        else:
            logger.info(f"EDIFACT document parsed: {len(document.segments)} segments, no structural errors.")

        return ParseResult(document=document, errors=errors)


def parse_edifact(edifact_string: str, expected_message_type: Optional[str] = None,
                  known_tags: Optional[Iterable[str]] = None) -> ParseResult:
    """Tokenizes and validates in one call."""
    return EdifactParser(edifact_string, expected_message_type, known_tags).parse()
