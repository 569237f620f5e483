import logging
import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from edifact_models import Document, EmptyInputError, ExplainedDocument, StructuralError
from edifact_parser import EdifactParser
from field_annotator import TableLike, annotate, resolve_mapping_table
from mapping_store import MappingTableStore

logger = logging.getLogger(__name__)

UNKNOWN_FORMAT = "UNKNOWN"

KNOWN_MESSAGE_TYPES = (
    'APERAK', 'INVOIC', 'ORDERS', 'UTILMD', 'MSCONS', 'REMADV', 'QUOTES', 'PARTIN',
    'UTILTS', 'IFTSTA', 'CONTRL', 'INSRPT', 'REQOTE', 'ORDRSP', 'PRICAT',
)

_MESSAGE_TYPE_PATTERN = re.compile(r'^[A-Z]{3,8}$')


def detect_message_type(document: Document) -> Optional[str]:
    """Message type named by the first UNH, if one can be recognised."""
    unh = document.get_segment('UNH')
    if unh is None:
        return None

    candidate = (unh.get_component(2, 1) or '').strip().upper()
    if _MESSAGE_TYPE_PATTERN.match(candidate):
        return candidate

    for element in unh.elements:
        for value in element:
            if value.strip().upper() in KNOWN_MESSAGE_TYPES:
                return value.strip().upper()
    return None


class ExplainResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    format: str = UNKNOWN_FORMAT
    explained: Optional[ExplainedDocument] = None
    errors: List[StructuralError] = Field(default_factory=list)
    error_message: Optional[str] = None


class EdifactExplainService:
    """Parses and explains one interchange, choosing the mapping table by message type."""

    def __init__(self, mapping_base_path: Optional[str] = None):
        self.mapping_store = MappingTableStore(mapping_base_path) if mapping_base_path else None

    def _select_table(self, message_type: Optional[str], mapping_table: TableLike) -> TableLike:
        if mapping_table:
            return mapping_table
        if self.mapping_store is not None:
            stored = self.mapping_store.get_table(message_type)
            if stored is not None:
                logger.info(f"Using stored mapping table for {message_type}")
                return stored
        logger.debug(f"No mapping table for {message_type or UNKNOWN_FORMAT}. Using the built-in default table.")
        return None

    def parse_and_explain(
        self,
        text: str,
        message_type: Optional[str] = None,
        mapping_table: TableLike = None,
    ) -> ExplainResult:
        """
        Parse, validate and explain EDIFACT text.

        Args:
            text: The raw interchange text
            message_type: Expected message type; detected from UNH when omitted
            mapping_table: Mapping table overriding any stored table

        Returns:
            ExplainResult with the explained document and structural errors
        """
        try:
            parser = EdifactParser(text, expected_message_type=message_type)
            detected = detect_message_type(parser.document)
            effective_format = (message_type or detected or UNKNOWN_FORMAT).upper()
            logger.info(f"Explaining EDIFACT message (declared: {message_type or '-'}, detected: {detected or '-'})")

            table = resolve_mapping_table(self._select_table(effective_format, mapping_table))
            parser.known_tags = frozenset(table.tags())
            parsed = parser.parse()
            explained = annotate(parsed.document, table)

            logger.info(f"Explanation completed: format={effective_format}, segments={len(explained.segments)}, "
                        f"errors={len(parsed.errors)}")
            return ExplainResult(success=True, format=effective_format, explained=explained, errors=parsed.errors)

        except EmptyInputError as e:
            logger.error(f"EDIFACT input rejected: {e}")
            return ExplainResult(success=False, format=(message_type or UNKNOWN_FORMAT).upper(),
                                 error_message=f"Input rejected: {e.code}")
        except Exception as e:
            logger.error(f"EDIFACT explanation failed: {e}", exc_info=True)
            return ExplainResult(success=False, format=(message_type or UNKNOWN_FORMAT).upper(),
                                 error_message=f"Explanation failed: {str(e)}")
