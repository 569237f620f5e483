# FILE: tests/conftest.py

import pytest
import sys
import os
import logging

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from mapping_models import MappingTable

# ==============================================================================
# PYTEST CONFIGURATION & HOOKS
# ==============================================================================

def pytest_configure(config):
    """Configure pytest settings and markers."""
    config.addinivalue_line("markers", "unit: Pure unit tests with no external dependencies.")
    config.addinivalue_line("markers", "integration: Tests that drive several components end to end.")

@pytest.fixture(scope="session", autouse=True)
def setup_test_environment(pytestconfig):
    """Set up test environment with logging configuration."""
    # Use pytest's log_cli_level if available, otherwise default to INFO
    log_level = pytestconfig.getoption("log_cli_level") or "INFO"
    logging.basicConfig(
        level=log_level.upper(),
        format="[%(asctime)s] [%(levelname)s] [%(name)s:%(lineno)d] - %(message)s",
        stream=sys.stdout,
        force=True,
    )
    logging.info(f"Test logging configured with level: {log_level.upper()}")
    yield

# ==============================================================================
# UNIT TEST FIXTURES
# ==============================================================================

@pytest.fixture(scope="session")
def minimal_aperak_edifact_string() -> str:
    """The smallest complete interchange: UNB, UNH, BGM, UNT, UNZ on a single line."""
    return "UNB+UNOC:3+S:R+R:S+250101:0101+REF'UNH+1+APERAK:D:07B:UN:2.1i'BGM+312+X'UNT+4+1'UNZ+1+REF'"

@pytest.fixture(scope="session")
def valid_aperak_edifact_string() -> str:
    """
    A pretty-printed, envelope-consistent APERAK interchange with a UNA service string
    advice, one segment per line. UNT count (7) and UNZ count (1) match the content.
    """
    return """
UNA:+.? '
UNB+UNOC:3+9900123000002:500+9900321000009:500+250115:1030+ABC4711'
UNH+MSG001+APERAK:D:07B:UN:2.1i'
BGM+313+DOC-2025-001+9'
DTM+137:202501151030?+00:303'
RFF+ACE:REF-0815'
RFF+TN:TX123'
NAD+MS+9900123000002::293'
UNT+7+MSG001'
UNZ+1+ABC4711'
""".strip()

@pytest.fixture(scope="session")
def two_message_edifact_string() -> str:
    """Two messages in one interchange, each with a consistent trailer."""
    return """
UNB+UNOC:3+SENDER:14+RECEIVER:14+250201:0900+IC0001'
UNH+1+ORDERS:D:96A:UN'
BGM+220+PO-1+9'
DTM+171:20250201:102'
UNT+4+1'
UNH+2+ORDERS:D:96A:UN'
BGM+220+PO-2+9'
UNT+3+2'
UNZ+2+IC0001'
""".strip()

@pytest.fixture(scope="session")
def aperak_mapping_table() -> MappingTable:
    """A synthesized-style mapping table carrying its own qualifier code list."""
    return MappingTable.model_validate({
        "BGM": {
            "segmentDescription": "Beginning of APERAK",
            "fields": [
                {"path": "BGM/01/01", "name": "Document name code", "description": "313 = Application error message",
                 "required": True, "datatype": "code", "codes": [{"code": "313", "meaning": "Application error and acknowledgement"}]},
                {"path": "BGM/02/01", "name": "Document number", "required": True, "datatype": "string"},
            ],
        },
        "RFF": {
            "segmentDescription": "Referenced message",
            "fields": [
                {"path": "RFF/01/01", "name": "Reference qualifier", "description": "Kind of reference",
                 "datatype": "code", "codes": ["ACE=Related document number", "TN"]},
                {"path": "RFF/01/02", "name": "Reference value"},
            ],
        },
        "ERC": {
            "segmentDescription": "Application error",
            "fields": [
                {"path": "ERC/01/01", "name": "Error code"},
            ],
        },
    })
