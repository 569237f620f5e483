import logging
import re
from typing import Any, Iterable, List, Optional

from default_mapping import SEGMENT_DIRECTORY, SERVICE_SEGMENT_TAGS
from edifact_models import Document, RawSegment, StructuralError, StructuralErrorCode

logger = logging.getLogger(__name__)

SEGMENT_TAG_PATTERN = re.compile(r'^[A-Z]{3}$')
ENVELOPE_SIGNAL_TAGS = ('UNB', 'UNH', 'UNT')


def _parse_count(value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip().isdigit():
        return None
    return int(value.strip())


def validate_document(document: Document, expected_message_type: Optional[str] = None,
                      known_tags: Optional[Iterable[str]] = None) -> List[StructuralError]:
    """
    Performs the structural checks on an already tokenized document.
    Every check is independent; none of them stops the others or raises.
    Returns the accumulated errors in the order they were found.
    """
    errors: List[StructuralError] = []
    segments = document.segments
    recognised_tags = SEGMENT_DIRECTORY | frozenset(tag.upper() for tag in (known_tags or ()))

    def add_error(code: StructuralErrorCode, message: str, segment: Optional[RawSegment] = None,
                  field: Optional[str] = None, value: Any = None):
        logger.debug(f"[FAIL] {code.value}: {message}")
        errors.append(StructuralError(
            code=code,
            message=message,
            segment_tag=segment.tag if segment else None,
            position=segment.position if segment else None,
            field=field,
            value=value,
        ))

    # Message type of the first UNH (S009, component 0065)
    first_unh = document.get_segment('UNH')
    if first_unh and expected_message_type:
        message_type = first_unh.get_component(2, 1)
        if message_type and message_type.strip().upper() != expected_message_type.strip().upper():
            add_error(StructuralErrorCode.FIELD_VALUE_MISMATCH,
                      f"Message type must be {expected_message_type.upper()}, found '{message_type}'.",
                      first_unh, field="S009.01", value=message_type)

    # Segment count of the last UNT (0074)
    last_unt = document.get_last_segment('UNT')
    if last_unt and _parse_count(last_unt.get_component(1, 1)) is None:
        add_error(StructuralErrorCode.UNT_SEGMENT_COUNT_MISSING,
                  "UNT segment count missing or invalid.", last_unt,
                  field="0074", value=last_unt.get_component(1, 1))

    # Tag shape and directory membership
    for segment in segments:
        if not SEGMENT_TAG_PATTERN.match(segment.tag):
            add_error(StructuralErrorCode.MALFORMED_SEGMENT_TAG,
                      f"Segment tag '{segment.tag}' is not a three-letter tag.", segment)
        elif segment.tag not in recognised_tags:
            add_error(StructuralErrorCode.UNKNOWN_SEGMENT,
                      f"Segment tag '{segment.tag}' is not a known EDIFACT segment.", segment)

    # Message scope and header/trailer pairing
    has_envelope = any(segment.tag in ENVELOPE_SIGNAL_TAGS for segment in segments)
    open_header: Optional[RawSegment] = None
    header_index = 0
    interchange_closed = False
    message_count = 0
    for index, segment in enumerate(segments):
        if segment.tag == 'UNH':
            if open_header is not None:
                add_error(StructuralErrorCode.UNH_OUT_OF_SEQUENCE,
                          f"UNH at position {segment.position} opens a message while the message opened at "
                          f"position {open_header.position} has no UNT.", segment)
            elif interchange_closed:
                add_error(StructuralErrorCode.UNH_OUT_OF_SEQUENCE,
                          f"UNH at position {segment.position} appears after the interchange trailer.", segment)
            open_header = segment
            header_index = index
            message_count += 1
        elif segment.tag == 'UNT':
            if open_header is None:
                add_error(StructuralErrorCode.SEGMENT_OUT_OF_MESSAGE_SCOPE,
                          f"UNT at position {segment.position} has no open message header.", segment)
                continue
            _check_message_trailer(open_header, segment, index - header_index + 1, add_error)
            open_header = None
        elif segment.tag == 'UNZ':
            interchange_closed = True
        elif has_envelope and open_header is None and segment.tag not in SERVICE_SEGMENT_TAGS:
            add_error(StructuralErrorCode.SEGMENT_OUT_OF_MESSAGE_SCOPE,
                      f"Segment '{segment.tag}' at position {segment.position} is outside any UNH...UNT message.", segment)

    _check_interchange_trailer(document, message_count, add_error)

    logger.debug(f"Structural validation finished with {len(errors)} errors over {len(segments)} segments.")
    return errors


def _check_message_trailer(header: RawSegment, trailer: RawSegment, actual_count: int, add_error):
    declared = _parse_count(trailer.get_component(1, 1))
    if declared is not None and declared != actual_count:
        add_error(StructuralErrorCode.UNT_SEGMENT_COUNT_MISMATCH,
                  f"UNT declares {declared} segments but the message has {actual_count}.",
                  trailer, field="0074", value=declared)

    header_ref = header.get_component(1, 1)
    trailer_ref = trailer.get_component(2, 1)
    if header_ref and trailer_ref and header_ref.strip() != trailer_ref.strip():
        add_error(StructuralErrorCode.UNT_REFERENCE_MISMATCH,
                  f"UNT message reference '{trailer_ref}' does not match UNH reference '{header_ref}'.",
                  trailer, field="0062", value=trailer_ref)


def _check_interchange_trailer(document: Document, message_count: int, add_error):
    unz = document.get_last_segment('UNZ')
    if unz is None:
        return

    # A UNZ count over functional groups cannot be compared with a message count.
    declared = _parse_count(unz.get_component(1, 1))
    if declared is not None and document.get_segment('UNG') is None and declared != message_count:
        add_error(StructuralErrorCode.UNZ_MESSAGE_COUNT_MISMATCH,
                  f"UNZ declares {declared} messages but the interchange has {message_count}.",
                  unz, field="0036", value=declared)

    unb = document.get_segment('UNB')
    control_ref = unb.get_component(5, 1) if unb else None
    trailer_ref = unz.get_component(2, 1)
    if control_ref and trailer_ref and control_ref.strip() != trailer_ref.strip():
        add_error(StructuralErrorCode.UNZ_CONTROL_REFERENCE_MISMATCH,
                  f"UNZ control reference '{trailer_ref}' does not match UNB control reference '{control_ref}'.",
                  unz, field="0020", value=trailer_ref)
