import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from mapping_models import MappingTable

logger = logging.getLogger(__name__)


class MappingTableStore:
    """
    Loads mapping tables from a directory of JSON files, one per message type.
    The file stem is the message type: 'APERAK.json' serves APERAK messages.
    """

    def __init__(self, base_path: str):
        self.base_path = Path(base_path)
        self._tables: Dict[str, MappingTable] = {}
        self._load_tables()

    def _load_tables(self):
        if not self.base_path.exists():
            logger.warning(f"Mapping table path does not exist: {self.base_path}")
            return

        logger.info(f"Loading EDIFACT mapping tables from: {self.base_path}")
        for table_file in sorted(self.base_path.glob("*.json")):
            message_type = table_file.stem.upper()
            try:
                with open(table_file, 'r', encoding='utf-8') as f:
                    table = MappingTable.model_validate(json.load(f))
                self._tables[message_type] = table
                logger.info(f"Loaded mapping table: {table_file.name} ({len(table)} segments)")
            except Exception as e:
                logger.error(f"Failed to load mapping table {table_file.name}: {e}")

    def get_table(self, message_type: Optional[str]) -> Optional[MappingTable]:
        """
        Args:
            message_type: Message type such as "APERAK"; matched case-insensitively.

        Returns:
            MappingTable or None if no table was loaded for it
        """
        if not message_type:
            return None
        return self._tables.get(message_type.upper())

    def list_tables(self) -> List[str]:
        return list(self._tables.keys())

    def reload_tables(self):
        self._tables.clear()
        self._load_tables()
