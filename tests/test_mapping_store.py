import pytest
import json
from pathlib import Path
from mapping_store import MappingTableStore

@pytest.fixture
def mapping_dir(tmp_path: Path) -> Path:
    """Create a temporary directory with mapping tables for two message types."""
    aperak_table = {
        "BGM": {"segmentDescription": "Beginning of APERAK",
                "fields": [{"path": "BGM/01/01", "name": "Document name code"}]},
    }
    (tmp_path / "APERAK.json").write_text(json.dumps(aperak_table))

    utilmd_table = {
        "ide": {"segmentDescription": "Transaction identifier",
                "fields": [{"path": "IDE/2", "name": "Transaction reference"}]},
    }
    (tmp_path / "utilmd.json").write_text(json.dumps(utilmd_table))

    # Malformed JSON
    (tmp_path / "malformed.json").write_text("{'invalid_json':}")

    # Valid JSON, invalid table (bad path)
    (tmp_path / "BROKEN.json").write_text(json.dumps({"BGM": {"fields": [{"path": "nonsense", "name": "x"}]}}))

    return tmp_path

def test_store_loads_valid_tables_only(mapping_dir: Path):
    store = MappingTableStore(str(mapping_dir))
    assert sorted(store.list_tables()) == ["APERAK", "UTILMD"]

def test_get_table_is_case_insensitive(mapping_dir: Path):
    store = MappingTableStore(str(mapping_dir))
    table = store.get_table("aperak")
    assert table is not None
    assert table.get("BGM").segmentDescription == "Beginning of APERAK"

def test_tags_and_paths_are_normalised(mapping_dir: Path):
    store = MappingTableStore(str(mapping_dir))
    table = store.get_table("UTILMD")
    assert "IDE" in table
    assert table.get("IDE").fields[0].path == "IDE/02/01"

def test_get_table_not_found(mapping_dir: Path):
    store = MappingTableStore(str(mapping_dir))
    assert store.get_table("INVOIC") is None
    assert store.get_table(None) is None

def test_missing_directory_is_empty(tmp_path: Path):
    store = MappingTableStore(str(tmp_path / "does-not-exist"))
    assert store.list_tables() == []

def test_reload_tables(mapping_dir: Path):
    store = MappingTableStore(str(mapping_dir))
    assert store.get_table("ORDERS") is None

    (mapping_dir / "ORDERS.json").write_text(json.dumps({"BGM": {"fields": []}}))
    store.reload_tables()
    assert store.get_table("ORDERS") is not None
    assert len(store.list_tables()) == 3
