import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from default_mapping import DEFAULT_MAPPING_TABLE, QUALIFIER_TABLES
from edifact_models import AnnotatedField, AnnotatedSegment, Document, ExplainedDocument, Explanations, RawSegment
from mapping_models import MappingEntry, MappingTable, lenient_mapping_table

logger = logging.getLogger(__name__)

TableLike = Union[MappingTable, Mapping[str, Any], None]


def field_path(tag: str, element_index: int, component_index: int) -> str:
    """Conventional 1-based position notation for 0-based indexes, e.g. ('DTM', 0, 1) -> 'DTM/01/02'."""
    return f"{tag}/{element_index + 1:02d}/{component_index + 1:02d}"


def resolve_mapping_table(table: TableLike) -> MappingTable:
    """
    Returns the table to annotate with. A supplied table is layered over the built-in
    default per tag; an empty or missing table means the default alone. Raw tables
    are read leniently: malformed entries are logged and skipped.
    """
    if table is None:
        return DEFAULT_MAPPING_TABLE
    if not isinstance(table, MappingTable):
        table = lenient_mapping_table(table)
    if not len(table):
        return DEFAULT_MAPPING_TABLE
    return table.layered_over(DEFAULT_MAPPING_TABLE)


def _qualifier_meaning(tag: str, component_index: int, value: str, entry: Optional[MappingEntry]) -> Optional[str]:
    code = value.strip()
    if not code:
        return None
    # A code list on the field itself wins over the built-in seed tables.
    if entry is not None and entry.codes:
        meaning = entry.lookup_code(code)
        if meaning:
            return meaning
    if component_index == 0 and tag in QUALIFIER_TABLES:
        return QUALIFIER_TABLES[tag].get(code)
    return None


def _append_qualifier(description: Optional[str], code: str, meaning: str) -> str:
    if description:
        return f"{description} (qualifier {code}: {meaning})"
    return f"Qualifier {code}: {meaning}"


def _explain_segment(segment: RawSegment, table: MappingTable) -> AnnotatedSegment:
    mapping = table.get(segment.tag)
    segment_description = None
    if mapping is not None:
        segment_description = mapping.segmentDescription or mapping.notes
    if not segment_description:
        segment_description = f"Segment {segment.tag}"

    fields: List[AnnotatedField] = []
    for i, components in enumerate(segment.elements):
        for j, value in enumerate(components):
            path = field_path(segment.tag, i, j)
            entry = mapping.get_field(path) if mapping is not None else None

            name = entry.name if entry is not None else f"Component {i + 1}.{j + 1}"
            description = entry.description if entry is not None else None

            meaning = _qualifier_meaning(segment.tag, j, value, entry)
            if meaning:
                description = _append_qualifier(description, value.strip(), meaning)

            fields.append(AnnotatedField(path=path, name=name, description=description or None, value=value))

    return AnnotatedSegment(segment=segment.tag, position=segment.position,
                            description=segment_description, fields=fields)


def annotate(document: Document, table: TableLike = None) -> ExplainedDocument:
    """
    Produces, for every component of every segment, its path, a human-readable name,
    an optional (qualifier-enriched) description and the raw value.

    Unknown tags and paths never raise; they fall back to generic labels. The input
    document is not modified and the result owns its own copies of the segment data.
    """
    effective_table = resolve_mapping_table(table)
    explained_segments = [_explain_segment(segment, effective_table) for segment in document.segments]
    logger.debug(f"Annotated {len(explained_segments)} segments using a table of {len(effective_table)} segment mappings.")

    copied: Dict[str, Any] = document.model_dump()
    return ExplainedDocument(
        delimiters=copied["delimiters"],
        segments=copied["segments"],
        explanations=Explanations(segments=explained_segments),
    )
