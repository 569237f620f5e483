from types import MappingProxyType

from mapping_models import MappingTable

# Built-in seed data. Used whenever no external mapping table is available, so that
# annotation is always possible. None of this is an exhaustive code-list authority.

DEFAULT_MAPPING_TABLE = MappingTable.model_validate({
    "UNB": {"segmentDescription": "Interchange header", "fields": [
        {"path": "UNB/01/01", "name": "Syntax id (0001)", "description": "Syntax identifier, e.g. UNOC"},
        {"path": "UNB/01/02", "name": "Syntax version (0002)", "description": "Version of the syntax"},
        {"path": "UNB/02/01", "name": "Sender id (0004)", "description": "Interchange sender"},
        {"path": "UNB/02/02", "name": "Sender qualifier (0007)", "description": "Partner identification code qualifier"},
        {"path": "UNB/03/01", "name": "Recipient id (0010)", "description": "Interchange recipient"},
        {"path": "UNB/03/02", "name": "Recipient qualifier (0007)", "description": "Partner identification code qualifier"},
        {"path": "UNB/04/01", "name": "Date (0017)", "description": "YYMMDD or CCYYMMDD"},
        {"path": "UNB/04/02", "name": "Time (0019)", "description": "HHMM"},
        {"path": "UNB/05/01", "name": "Interchange control ref (0020)", "description": "Interchange control reference"},
    ]},
    "UNH": {"segmentDescription": "Message header", "fields": [
        {"path": "UNH/01/01", "name": "Message reference number (0062)", "description": "Unique message reference assigned by the sender"},
        {"path": "UNH/02/01", "name": "Message type (0065)", "description": "Identifies the message type, e.g. APERAK"},
        {"path": "UNH/02/02", "name": "Version (0052)", "description": "Message version number"},
        {"path": "UNH/02/03", "name": "Release (0054)", "description": "Message release number"},
        {"path": "UNH/02/04", "name": "Controlling agency (0051)", "description": "Agency controlling the message, e.g. UN"},
        {"path": "UNH/02/05", "name": "Association assigned code (0057)", "description": "Code assigned by the association"},
    ]},
    "BGM": {"segmentDescription": "Beginning of message", "fields": [
        {"path": "BGM/01/01", "name": "Document/message name, coded (1001)", "description": "Code identifying the document/message name"},
        {"path": "BGM/02/01", "name": "Document/message number (1004)", "description": "Identifier for the document/message"},
        {"path": "BGM/03/01", "name": "Message function, coded (1225)", "description": "Code indicating the function of the message"},
    ]},
    "DTM": {"segmentDescription": "Date/time/period", "fields": [
        {"path": "DTM/01/01", "name": "Date/time/period qualifier (2005)", "description": "Code giving the function of the date/time"},
        {"path": "DTM/01/02", "name": "Date/time/period (2380)", "description": "Value formatted per 2379"},
        {"path": "DTM/01/03", "name": "Format qualifier (2379)", "description": "203=CCYYMMDDHHMM, 303=CCYYMMDDHHMMZZZ, 102=CCYYMMDD"},
    ]},
    "RFF": {"segmentDescription": "Reference", "fields": [
        {"path": "RFF/01/01", "name": "Reference qualifier (1153)", "description": "Code giving the type of reference"},
        {"path": "RFF/01/02", "name": "Reference number (1154)", "description": "Reference identifier"},
        {"path": "RFF/01/03", "name": "Line number (1156)", "description": "Related line number"},
    ]},
    "NAD": {"segmentDescription": "Name and address", "fields": [
        {"path": "NAD/01/01", "name": "Party function qualifier (3035)", "description": "MS=Sender, MR=Recipient"},
        {"path": "NAD/02/01", "name": "Party id (3039)", "description": "Party identifier"},
        {"path": "NAD/02/02", "name": "Code list qualifier (1131)", "description": "Qualifier for the code list"},
        {"path": "NAD/02/03", "name": "Code list agency (3055)", "description": "Responsible agency, e.g. 293, 332, 9"},
    ]},
    "UNT": {"segmentDescription": "Message trailer", "fields": [
        {"path": "UNT/01/01", "name": "Segment count (0074)", "description": "Number of segments including UNH and UNT"},
        {"path": "UNT/02/01", "name": "Message ref (0062)", "description": "Must match the UNH message reference"},
    ]},
    "UNZ": {"segmentDescription": "Interchange trailer", "fields": [
        {"path": "UNZ/01/01", "name": "Message/group count (0036)", "description": "Number of messages or groups"},
        {"path": "UNZ/02/01", "name": "Interchange control ref (0020)", "description": "Must match the UNB control reference"},
    ]},
})

DATE_TIME_QUALIFIERS = MappingProxyType({
    '137': 'Document/message date/time',
    '171': 'Reference date/time',
    '163': 'Processing/period start date/time',
    '164': 'Processing/period end date/time',
    '735': 'Time zone difference',
})

REFERENCE_QUALIFIERS = MappingProxyType({
    'ON': 'Order number',
    'TN': 'Transaction/reference number',
    'ACE': 'Reference (ACE)',
    'AGO': 'Agreement/order reference',
    'ACW': 'Previous message reference',
    'Z13': 'Process identifier',
})

# Segment tag -> built-in qualifier table for its first component.
QUALIFIER_TABLES = MappingProxyType({
    'DTM': DATE_TIME_QUALIFIERS,
    'RFF': REFERENCE_QUALIFIERS,
})

# Envelope and control segments, valid outside a UNH...UNT message body.
SERVICE_SEGMENT_TAGS = frozenset({'UNA', 'UNB', 'UNG', 'UNE', 'UNH', 'UNT', 'UNZ'})

# ISO 9735 service segments: groups, packages, section control, security and the
# interactive envelope.
SERVICE_DIRECTORY = frozenset(SERVICE_SEGMENT_TAGS | {
    'UCD', 'UCF', 'UCI', 'UCM', 'UCS', 'UGH', 'UGT', 'UIB', 'UIH', 'UIR', 'UIT', 'UIZ',
    'UNO', 'UNP', 'UNR', 'UNS', 'USA', 'USB', 'USC', 'USD', 'USE', 'USF', 'USH',
    'USL', 'USR', 'UST', 'USU', 'USX', 'USY',
})

# UN/EDIFACT batch segment directory, including tags retired after D.96A that older
# interchanges still carry.
BATCH_DIRECTORY = frozenset({
    'ADR', 'ADS', 'AGR', 'AJT', 'ALC', 'ALI', 'ALS', 'APD', 'APP', 'APR', 'ARD', 'ARR',
    'ASD', 'ASI', 'ATT', 'AUT', 'BAS', 'BCD', 'BGM', 'BII', 'BUS', 'CAV', 'CCD', 'CCI',
    'CDI', 'CDS', 'CDV', 'CED', 'CIN', 'CLA', 'CLI', 'CLT', 'CMN', 'CMP', 'CNI', 'CNT',
    'COD', 'COM', 'COT', 'CPI', 'CPS', 'CPT', 'CRI', 'CST', 'CTA', 'CUX', 'DAM', 'DFN',
    'DGS', 'DII', 'DIM', 'DLI', 'DLM', 'DMS', 'DOC', 'DRD', 'DSG', 'DSI', 'DTM', 'EDT',
    'EFI', 'ELM', 'ELU', 'ELV', 'EMP', 'EQA', 'EQD', 'EQN', 'ERC', 'ERP', 'EVE', 'EVT',
    'FCA', 'FII', 'FNS', 'FNT', 'FOR', 'FSQ', 'FTX', 'GDS', 'GEI', 'GID', 'GIN', 'GIR',
    'GIS', 'GOR', 'GPO', 'GRU', 'HAN', 'HDI', 'HDS', 'HYN', 'ICD', 'IDE', 'IFD', 'IHC',
    'IMD', 'IND', 'INP', 'INV', 'IRQ', 'LAN', 'LIN', 'LOC', 'MEA', 'MEM', 'MKS', 'MOA',
    'MSG', 'MTD', 'NAD', 'NAT', 'PAC', 'PAI', 'PAS', 'PAT', 'PCC', 'PCD', 'PCI', 'PDI',
    'PER', 'PGI', 'PIA', 'PNA', 'POC', 'PRC', 'PRI', 'PRV', 'PSD', 'PTY', 'PYT', 'QRS',
    'QTY', 'QUA', 'QVR', 'RCS', 'REL', 'RFF', 'RJL', 'RNG', 'ROD', 'RSL', 'RTE', 'SAL',
    'SCC', 'SCD', 'SEG', 'SEL', 'SEQ', 'SFI', 'SGP', 'SGU', 'SPR', 'SPS', 'STA', 'STC',
    'STG', 'STS', 'TAX', 'TCC', 'TDT', 'TEM', 'TMD', 'TMP', 'TOD', 'TPL', 'TRU', 'TSR',
    'VLI',
})

# A well-formed tag outside this set, and outside the caller's mapping table, is
# reported as unknown.
SEGMENT_DIRECTORY = SERVICE_DIRECTORY | BATCH_DIRECTORY
