import logging
from typing import Dict, List, Mapping, Optional

from edifact_models import AnnotatedField, AnnotatedSegment, ExplainedDocument

logger = logging.getLogger(__name__)

# Segments that usually repeat and read best as one table across occurrences.
TABULAR_SEGMENTS = frozenset({'LIN', 'QTY', 'PRI', 'MOA', 'NAD', 'RFF', 'DTM'})

LABELS = {
    'en': {'overview': 'Overview', 'format': 'Format', 'segments': 'Segments', 'position': 'Position'},
    'de': {'overview': 'Überblick', 'format': 'Format', 'segments': 'Segmente', 'position': 'Position'},
}

# Paths whose value is a party code that can carry a speaking name.
PARTY_ID_PATHS = frozenset({'UNB/02/01', 'UNB/03/01', 'NAD/02/01'})


def _escape(value) -> str:
    return str(value if value is not None else '').replace('|', '\\|')


def _with_party_name(field: AnnotatedField, party_names: Mapping[str, str]) -> str:
    value = field.value
    if field.path not in PARTY_ID_PATHS:
        return value
    name = (party_names.get(value) or '').strip()
    if name and name != value:
        return f"{value} ({name})"
    return value


def _render_table(segments: List[AnnotatedSegment], party_names: Mapping[str, str]) -> List[str]:
    headers: List[str] = []
    for segment in segments:
        for field in segment.fields:
            label = field.name or field.path
            if label not in headers:
                headers.append(label)

    lines = ['|' + '|'.join(_escape(h) for h in headers) + '|',
             '|' + '|'.join('---' for _ in headers) + '|']
    for segment in segments:
        by_label: Dict[str, AnnotatedField] = {}
        for field in segment.fields:
            by_label.setdefault(field.name or field.path, field)
        row = [_escape(_with_party_name(by_label[h], party_names)) if h in by_label else '' for h in headers]
        lines.append('|' + '|'.join(row) + '|')
    lines.append('')
    return lines


def _render_bullets(segments: List[AnnotatedSegment], position_label: str,
                    party_names: Mapping[str, str]) -> List[str]:
    lines: List[str] = []
    for segment in segments:
        lines.append(f"### {position_label} {segment.position}")
        for field in segment.fields:
            detail = f" - {field.description}" if field.description else ''
            value = _with_party_name(field, party_names)
            lines.append(f"- {_escape(field.name or field.path)}: {_escape(value)}{detail}")
        lines.append('')
    return lines


def explained_to_markdown(
    explained: ExplainedDocument,
    title: Optional[str] = None,
    language: str = 'en',
    format_name: Optional[str] = None,
    party_names: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Renders an explained document as a Markdown summary.

    Segments are grouped by tag in first-seen order. Repeated tabular segments become
    one table; everything else is listed per occurrence.
    """
    labels = LABELS.get((language or 'en').lower(), LABELS['en'])
    party_names = party_names or {}

    lines: List[str] = []
    if title:
        lines.append(f"# {title}")
    lines.append('')
    lines.append(f"## {labels['overview']}")
    lines.append(f"- {labels['format']}: {format_name or 'UNKNOWN'}")
    if explained.segments:
        lines.append(f"- {labels['segments']}: {len(explained.segments)}")
    lines.append('')

    groups: Dict[str, List[AnnotatedSegment]] = {}
    for segment in explained.explanations.segments:
        groups.setdefault(segment.segment, []).append(segment)

    for tag, segments in groups.items():
        lines.append(f"## {tag}")
        if segments[0].description:
            lines.append(segments[0].description)
        lines.append('')
        if tag in TABULAR_SEGMENTS and len(segments) > 1:
            lines.extend(_render_table(segments, party_names))
        else:
            lines.extend(_render_bullets(segments, labels['position'], party_names))

    logger.debug(f"Rendered {len(groups)} segment groups to Markdown.")
    return '\n'.join(lines)
