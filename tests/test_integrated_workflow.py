"""
Integration tests for the parse → validate → explain → render workflow.
Tests the complete flow from raw interchange text to the acceptance gate and the CLI.
"""

import json
import pytest
import sys
import os
from concurrent.futures import ThreadPoolExecutor

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import main
from conformance_tester import EdifactPipeline, run_conformance
from edifact_parser import parse_edifact
from explain_service import EdifactExplainService
from field_annotator import annotate
from markdown_renderer import explained_to_markdown

pytestmark = pytest.mark.integration


class TestIntegratedWorkflow:
    """Test cases for the end-to-end workflow."""

    def setup_method(self):
        """Set up test fixtures."""
        self.service = EdifactExplainService()

    def test_concrete_scenario(self, minimal_aperak_edifact_string):
        # Step 1: tokenize with default delimiters
        result = parse_edifact(minimal_aperak_edifact_string)
        assert [(s.tag, s.position) for s in result.document.segments] == [
            ('UNB', 1), ('UNH', 2), ('BGM', 3), ('UNT', 4), ('UNZ', 5)]

        # Step 2: the acceptance gate flags the corrupted header as detected
        report = run_conformance(EdifactPipeline(), [{"name": "APERAK_1", "text": minimal_aperak_edifact_string}])
        mutated = next(r for r in report.results if r.name == "APERAK_1 (mutated)")
        assert mutated.ok is True
        assert report.success is True

    def test_explain_then_render(self, valid_aperak_edifact_string):
        result = self.service.parse_and_explain(valid_aperak_edifact_string, message_type="APERAK")
        assert result.success and result.errors == []

        markdown = explained_to_markdown(result.explained, title="APERAK", format_name=result.format)
        assert "- Format: APERAK" in markdown
        assert "Document/message date/time" in markdown

    def test_explained_document_is_json_round_trippable(self, valid_aperak_edifact_string):
        result = self.service.parse_and_explain(valid_aperak_edifact_string)
        payload = json.loads(result.explained.model_dump_json())

        assert payload["delimiters"]["release_character"] == "?"
        assert payload["segments"][4]["elements"] == [["137", "202501151030+00", "303"]]
        assert payload["explanations"]["segments"][4]["fields"][0]["path"] == "DTM/01/01"

    def test_concurrent_invocations_with_different_tables(self, valid_aperak_edifact_string):
        tables = [
            {"BGM": {"segmentDescription": f"Table {i}", "fields": []}} for i in range(8)
        ]
        document = parse_edifact(valid_aperak_edifact_string).document

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda table: annotate(document, table), tables))

        for i, explained in enumerate(results):
            bgm = next(s for s in explained.explanations.segments if s.segment == "BGM")
            assert bgm.description == f"Table {i}"


class TestCommandLine:

    def test_cli_writes_json(self, tmp_path, valid_aperak_edifact_string):
        input_file = tmp_path / "aperak.edi"
        input_file.write_text(valid_aperak_edifact_string)

        exit_code = main.main([str(input_file), "--message-type", "APERAK"])

        assert exit_code == 0
        payload = json.loads((tmp_path / "aperak.json").read_text())
        assert payload["format"] == "APERAK"
        assert payload["errors"] == []
        assert len(payload["explained"]["explanations"]["segments"]) == 10

    def test_cli_writes_markdown_with_mapping(self, tmp_path, valid_aperak_edifact_string):
        input_file = tmp_path / "aperak.edi"
        input_file.write_text(valid_aperak_edifact_string)
        mapping_file = tmp_path / "mapping.json"
        mapping_file.write_text(json.dumps({"BGM": {"segmentDescription": "Custom BGM", "fields": []}}))
        output_file = tmp_path / "out.md"

        exit_code = main.main([str(input_file), str(output_file), "--mapping", str(mapping_file),
                               "--markdown", "--language", "de"])

        assert exit_code == 0
        markdown = output_file.read_text()
        assert "## Überblick" in markdown
        assert "Custom BGM" in markdown

    def test_cli_missing_input(self, tmp_path):
        assert main.main([str(tmp_path / "missing.edi")]) == 1

    def test_cli_empty_input(self, tmp_path):
        input_file = tmp_path / "empty.edi"
        input_file.write_text("")
        assert main.main([str(input_file)]) == 1

    def test_cli_markdown_with_party_names(self, tmp_path, valid_aperak_edifact_string):
        input_file = tmp_path / "aperak.edi"
        input_file.write_text(valid_aperak_edifact_string)
        names_file = tmp_path / "parties.json"
        names_file.write_text(json.dumps({"9900123000002": "Sender Stadtwerke"}))

        exit_code = main.main([str(input_file), "--markdown", "--party-names", str(names_file)])

        assert exit_code == 0
        markdown = (tmp_path / "aperak.md").read_text()
        assert "- Sender id (0004): 9900123000002 (Sender Stadtwerke)" in markdown
        assert "- Party id (3039): 9900123000002 (Sender Stadtwerke)" in markdown

    def test_cli_party_names_must_be_an_object(self, tmp_path, valid_aperak_edifact_string):
        input_file = tmp_path / "aperak.edi"
        input_file.write_text(valid_aperak_edifact_string)
        names_file = tmp_path / "parties.json"
        names_file.write_text(json.dumps(["9900123000002"]))

        assert main.main([str(input_file), "--markdown", "--party-names", str(names_file)]) == 1
        assert main.main([str(input_file), "--markdown", "--party-names", str(tmp_path / "none.json")]) == 1

    def test_cli_mapping_with_malformed_entry(self, tmp_path, valid_aperak_edifact_string):
        input_file = tmp_path / "aperak.edi"
        input_file.write_text(valid_aperak_edifact_string)
        mapping_file = tmp_path / "mapping.json"
        mapping_file.write_text(json.dumps({"BGM": {"segmentDescription": "Custom BGM", "fields": [
            {"path": "BGM-01-01", "name": "broken"}, {"path": "BGM/01/01", "name": "Doc code"}]}}))

        exit_code = main.main([str(input_file), "--mapping", str(mapping_file)])

        assert exit_code == 0
        payload = json.loads((tmp_path / "aperak.json").read_text())
        bgm = next(s for s in payload["explained"]["explanations"]["segments"] if s["segment"] == "BGM")
        assert bgm["description"] == "Custom BGM"
        assert bgm["fields"][0]["name"] == "Doc code"
