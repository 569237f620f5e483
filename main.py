#!/usr/bin/env python3
"""
EDIFACT Explain Command Line Tool

Parses EDIFACT interchange files, validates their envelope structure and writes an
explained JSON (or Markdown) document.

Usage:
    python main.py input.edi                                   # Explain input.edi -> input.json
    python main.py input.edi output.json                       # Explain to a specific output file
    python main.py input.edi out.json --mapping APERAK.json    # Use a specific mapping table
    python main.py input.edi out.md --markdown                 # Render Markdown instead of JSON
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict

# Try importing from installed package first, fallback to src path
try:
    from explain_service import EdifactExplainService
    from mapping_models import MappingTable, lenient_mapping_table
    from markdown_renderer import explained_to_markdown
except ImportError:
    # Add src to path for imports when not installed
    sys.path.insert(0, str(Path(__file__).parent / "src"))
    from explain_service import EdifactExplainService
    from mapping_models import MappingTable, lenient_mapping_table
    from markdown_renderer import explained_to_markdown


def load_mapping_table(mapping_file: str) -> MappingTable:
    """Load a mapping table from a JSON file."""
    mapping_path = Path(mapping_file)

    if not mapping_path.exists():
        raise FileNotFoundError(f"Mapping table file not found: {mapping_path}")

    with open(mapping_path, 'r', encoding='utf-8') as f:
        return lenient_mapping_table(json.load(f))


def load_party_names(names_file: str) -> Dict[str, str]:
    """Load a party id -> display name lookup from a JSON object file."""
    names_path = Path(names_file)

    if not names_path.exists():
        raise FileNotFoundError(f"Party names file not found: {names_path}")

    with open(names_path, 'r', encoding='utf-8') as f:
        names = json.load(f)
    if not isinstance(names, dict):
        raise ValueError(f"Party names file must hold a JSON object, got {type(names).__name__}")
    return {str(code).strip(): str(name) for code, name in names.items()}


def explain_edifact_file(args: argparse.Namespace) -> int:
    """Explain an EDIFACT file and save the result."""

    print(f"EDIFACT Explain - Processing {args.input_file}")
    print("=" * 50)

    try:
        with open(args.input_file, 'r', encoding='utf-8') as f:
            edifact_content = f.read()
        print(f"Loaded {len(edifact_content)} characters")

        mapping_table = None
        if args.mapping:
            print(f"Loading mapping table: {args.mapping}")
            mapping_table = load_mapping_table(args.mapping)
            print(f"Mapping table loaded ({len(mapping_table)} segments)")

        service = EdifactExplainService(mapping_base_path=args.mapping_dir)
        result = service.parse_and_explain(edifact_content, message_type=args.message_type,
                                           mapping_table=mapping_table)

        if not result.success:
            print(f"Error: {result.error_message}")
            return 1

        print(f"\nResults:")
        print(f"  Format: {result.format}")
        print(f"  Segments: {len(result.explained.segments)}")

        if result.errors:
            print(f"Structural validation found {len(result.errors)} issues:")
            for i, error in enumerate(result.errors[:5]):
                print(f"  {i+1}. [{error.code}] {error.message}")
            if len(result.errors) > 5:
                print(f"  ... and {len(result.errors) - 5} more issues")
        else:
            print("No structural errors found.")

        if args.markdown:
            party_names = None
            if args.party_names:
                party_names = load_party_names(args.party_names)
                print(f"Party names loaded ({len(party_names)} entries)")
            output = explained_to_markdown(result.explained, title=Path(args.input_file).name,
                                           language=args.language, format_name=result.format,
                                           party_names=party_names)
        else:
            payload = {
                "format": result.format,
                "explained": result.explained.model_dump(),
                "errors": [error.model_dump() for error in result.errors],
            }
            output = json.dumps(payload, indent=2, ensure_ascii=False)

        with open(args.output_file, 'w', encoding='utf-8') as f:
            f.write(output)

        print(f"Output saved to: {args.output_file}")
        print(f"Output size: {len(output):,} characters")

        return 0

    except FileNotFoundError as e:
        print(f"Error: File not found: {e}")
        return 1
    except Exception as e:
        logging.getLogger(__name__).error(f"Error during EDIFACT processing: {e}", exc_info=True)
        print(f"Error during EDIFACT processing: {e}")
        return 1


def main(argv=None):
    """Main entry point with command line argument parsing."""

    parser = argparse.ArgumentParser(
        description="Parse and explain EDIFACT files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py aperak.edi                                  # aperak.edi -> aperak.json
  python main.py aperak.edi out.json --message-type APERAK   # Check the UNH message type
  python main.py aperak.edi out.json --mapping-dir mappings  # Pick mappings/APERAK.json by format
  python main.py aperak.edi out.md --markdown --language de  # German Markdown summary
  python main.py aperak.edi out.md --markdown --party-names parties.json
        """
    )

    parser.add_argument('input_file', help='Input EDIFACT file')
    parser.add_argument('output_file', nargs='?',
                        help='Output file (default: input_file.json or input_file.md)')
    parser.add_argument('--mapping', help='Mapping table JSON file')
    parser.add_argument('--mapping-dir', help='Directory of <MESSAGE_TYPE>.json mapping tables')
    parser.add_argument('--message-type', help='Expected message type, e.g. APERAK')
    parser.add_argument('--markdown', action='store_true', help='Write a Markdown summary instead of JSON')
    parser.add_argument('--language', default='en', choices=['en', 'de'], help='Markdown language (default: en)')
    parser.add_argument('--party-names', help='JSON object of party id -> name, shown next to ids in Markdown')
    parser.add_argument('--log-level', default='WARNING', help='Logging level (default: WARNING)')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="[%(asctime)s] [%(levelname)s] [%(name)s:%(lineno)d] - %(message)s",
    )

    if not args.output_file:
        input_path = Path(args.input_file)
        args.output_file = str(input_path.with_suffix('.md' if args.markdown else '.json'))

    if not Path(args.input_file).exists():
        print(f"Error: Input file not found: {args.input_file}")
        return 1

    return explain_edifact_file(args)


if __name__ == "__main__":
    exit(main())
