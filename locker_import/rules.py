"""
Fixed-format import rules.

The school exports are positional, so everything the parsers key on lives
here instead of being derived from header text.
"""

import re

# Whitespace plus the byte-order mark spreadsheet exports leave on line one.
_EDGE_BLANKS = re.compile(r"^[\s\ufeff]+|[\s\ufeff]+$")


def trim(value: str) -> str:
    return _EDGE_BLANKS.sub("", value)


# --- Upload decoding ---
TARGET_NEWLINE = "\n"
CANDIDATE_ENCODINGS = ("utf_8", "cp1252", "latin_1")
ALLOWED_EXTENSIONS = (".csv", ".txt")

# --- Student roster export ---
ROSTER_DELIMITER = ";"
ROSTER_MIN_FIELDS = 4
ROSTER_COLUMNS = {
    "name": 1,
    "registration": 2,
    "course": 3,
    "situation": 6,
    "email": 7,
}

DEFAULT_COURSE_CODE = "IFRN"

# Checked in order, each match overwrites the previous one.
COURSE_CODE_RULES = (
    ("administração", "ADM"),
    ("informática", "INFO"),
    ("química", "QUIM"),
    ("análise", "TADS"),
)

SUBSEQUENT_MARKERS = ("subsequente",)
SUBSEQUENT_SUFFIX = " SUB"
INTEGRATED_MARKERS = ("integrada", "integrado")
INTEGRATED_SUFFIX = " INT"

# --- Locker ledger export ---
LEDGER_DELIMITERS = (";", ",")
DEFAULT_LEDGER_DELIMITER = ","
LEDGER_HEADER_MARKERS = ("armário", "localização", "matrícula")
LEDGER_COLUMNS = (
    "number",
    "location",
    "registration",
    "student_name",
    "student_class",
    "observation",
    "loan_date",
    "return_date",
)
QUOTE_CHAR = '"'

# Anything above this in the number column is a stray registration number.
MAX_LOCKER_NUMBER = 1_000_000

MAIN_BLOCK_LAST_LOCKER = 200
MAIN_BLOCK_LOCATION = "Bloco Principal"
ANNEX_BLOCK_LOCATION = "Bloco Anexo"

OPEN_LOAN_MARKER = "aberto"

LOAN_ID_LENGTH = 9

# Longer repaired registrations are not real ids; the raw value is kept.
MAX_REGISTRATION_EXPONENT = 64
