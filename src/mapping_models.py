import logging
import re
from typing import Any, Dict, Iterator, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, RootModel, ValidationError, field_validator

# Mapping tables describe what each tokenized position means for one message format.
# They are plain data: supplied externally (or the built-in default) and read-only
# during annotation.

PATH_PATTERN = re.compile(r'^[A-Z]{3}/\d{2}/\d{2}$')

logger = logging.getLogger(__name__)


class CodeDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    meaning: Optional[str] = None


def _coerce_code(raw):
    # Synthesized tables sometimes list codes as bare strings: "137" or "137=Document date".
    if isinstance(raw, str):
        for sep in ('=', ':'):
            if sep in raw:
                code, meaning = raw.split(sep, 1)
                return {"code": code.strip(), "meaning": meaning.strip() or None}
        return {"code": raw.strip(), "meaning": None}
    return raw


class MappingEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str = Field(description="TAG/elementIndex2/componentIndex2, 1-based, e.g. DTM/01/02")
    name: str
    description: Optional[str] = None
    required: Optional[bool] = None
    datatype: Optional[Literal['string', 'number', 'date', 'code']] = None
    codes: Optional[List[CodeDefinition]] = None

    @field_validator('path')
    @classmethod
    def _normalise_path(cls, value: str) -> str:
        # "dtm/1" and "DTM/01" both address DTM/01/01; the component defaults to the first.
        parts = [part.strip() for part in value.strip().upper().split('/')]
        if len(parts) == 2:
            parts.append('1')
        if len(parts) == 3 and all(p.isdigit() for p in parts[1:]):
            parts = [parts[0]] + [p.zfill(2) for p in parts[1:]]
        normalised = '/'.join(parts)
        if not PATH_PATTERN.match(normalised):
            raise ValueError(f"Mapping path '{value}' must look like 'TAG/01/01'.")
        return normalised

    @field_validator('codes', mode='before')
    @classmethod
    def _normalise_codes(cls, value):
        if value is None:
            return None
        return [_coerce_code(item) for item in value]

    def lookup_code(self, code: str) -> Optional[str]:
        """Meaning of a code from this entry's own code list, if it carries one."""
        for definition in self.codes or []:
            if definition.code == code and definition.meaning:
                return definition.meaning
        return None


class SegmentMapping(BaseModel):
    model_config = ConfigDict(frozen=True)

    segmentDescription: Optional[str] = None
    notes: Optional[str] = None
    fields: List[MappingEntry] = Field(default_factory=list)

    def get_field(self, path: str) -> Optional[MappingEntry]:
        return next((entry for entry in self.fields if entry.path == path), None)


class MappingTable(RootModel[Dict[str, SegmentMapping]]):
    """Segment tag -> SegmentMapping."""
    model_config = ConfigDict(frozen=True)

    root: Dict[str, SegmentMapping] = Field(default_factory=dict)

    @field_validator('root', mode='before')
    @classmethod
    def _upper_tags(cls, value):
        if isinstance(value, dict):
            return {str(tag).strip().upper(): mapping for tag, mapping in value.items()}
        return value

    def get(self, tag: str) -> Optional[SegmentMapping]:
        return self.root.get(tag)

    def tags(self) -> List[str]:
        return list(self.root.keys())

    def __iter__(self) -> Iterator[str]:
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __contains__(self, tag: object) -> bool:
        return tag in self.root

    def layered_over(self, base: 'MappingTable') -> 'MappingTable':
        """Returns a new table with this table's tags replacing those of `base`."""
        merged = dict(base.root)
        merged.update(self.root)
        return MappingTable(merged)


def lenient_mapping_table(raw: Mapping[str, Any]) -> MappingTable:
    """
    Builds a table from caller-supplied data, dropping only the parts that fail validation.

    A bad field entry (unreadable path, unknown datatype, ...) is skipped with a warning
    and the rest of its segment is kept. A segment entry that is not an object, or whose
    own attributes are invalid, is skipped whole.
    """
    segments: Dict[str, SegmentMapping] = {}
    for tag, raw_segment in raw.items():
        tag = str(tag).strip().upper()
        if not isinstance(raw_segment, Mapping):
            logger.warning(f"Skipping mapping for segment {tag}: expected an object, got {type(raw_segment).__name__}")
            continue

        raw_fields = raw_segment.get('fields') or []
        if not isinstance(raw_fields, list):
            logger.warning(f"Ignoring fields of segment {tag}: expected a list")
            raw_fields = []

        fields: List[MappingEntry] = []
        for index, raw_field in enumerate(raw_fields):
            try:
                fields.append(MappingEntry.model_validate(raw_field))
            except ValidationError as e:
                logger.warning(f"Skipping mapping entry {tag}.fields[{index}]: {e.error_count()} validation error(s); "
                               f"{e.errors()[0]['msg']}")

        try:
            segments[tag] = SegmentMapping.model_validate({**raw_segment, 'fields': fields})
        except ValidationError as e:
            logger.warning(f"Skipping mapping for segment {tag}: {e.errors()[0]['msg']}")

    return MappingTable(segments)
