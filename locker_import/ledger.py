"""
Locker ledger import.

Turns the locker spreadsheet export into locker records with their current
occupant and loan history.

Responsibilities:
- delimiter detection (`;` or `,`)
- optional header skip
- quote-aware field splitting
- repair of registration numbers mangled into scientific notation
- row continuation for rows that omit the locker number
- first-open-loan-wins attribution
"""

from __future__ import annotations

import re
import uuid
from typing import Callable, Dict, List, Optional, Sequence

from .models import LoanRecord, LockerRecord, LockerStatus
from .rules import (
    ANNEX_BLOCK_LOCATION,
    DEFAULT_LEDGER_DELIMITER,
    LEDGER_COLUMNS,
    LEDGER_HEADER_MARKERS,
    LOAN_ID_LENGTH,
    MAIN_BLOCK_LAST_LOCKER,
    MAIN_BLOCK_LOCATION,
    MAX_LOCKER_NUMBER,
    MAX_REGISTRATION_EXPONENT,
    OPEN_LOAN_MARKER,
    QUOTE_CHAR,
    trim,
)

IdFactory = Callable[[], str]

_LINE_BREAK = re.compile(r"\r?\n")
_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")
_DIGIT_E_DIGIT = re.compile(r"[0-9]+E[0-9]+")


def new_loan_id() -> str:
    return uuid.uuid4().hex[:LOAN_ID_LENGTH].upper()


def parse_leading_int(text: str) -> Optional[int]:
    """Integer made of the leading digits of `text` ("12B" -> 12), else None."""
    match = _LEADING_INT.match(text)
    if match is None:
        return None
    return int(match.group(1))


def detect_delimiter(lines: Sequence[str]) -> str:
    """
    The first line holding either candidate decides; ties go to `;`.
    """
    for line in lines:
        semicolons = line.count(";")
        commas = line.count(",")
        if semicolons or commas:
            return ";" if semicolons >= commas else ","
    return DEFAULT_LEDGER_DELIMITER


def is_header(line: str) -> bool:
    lowered = line.lower()
    return any(marker in lowered for marker in LEDGER_HEADER_MARKERS)


def split_csv_line(line: str, delimiter: str) -> List[str]:
    """
    Split on `delimiter` outside double quotes.

    Quote characters only toggle the quoted state; they are not kept.
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False

    for char in line:
        if char == QUOTE_CHAR:
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)

    fields.append("".join(current))
    return fields


def fix_scientific_registration(raw: str) -> str:
    """
    Undo spreadsheet scientific notation on a registration number.

    "2.0231011E+13" -> "20231011000000". Values that do not look like
    scientific notation, or cannot be repaired, come back trimmed but
    otherwise untouched.
    """
    if not raw:
        return ""
    reg = trim(raw)
    upper = reg.upper()

    if "E+" not in upper and not ("E" in upper and _DIGIT_E_DIGIT.search(reg)):
        return reg

    parts = reg.replace(",", ".", 1).upper().split("E")
    base, exp = parts[0], parts[1]
    exponent = parse_leading_int(exp.replace("+", "", 1))
    if exponent is None or exponent > MAX_REGISTRATION_EXPONENT:
        return reg

    integer_part, _, fractional_part = base.partition(".")
    if exponent >= len(fractional_part):
        return integer_part + fractional_part.ljust(exponent, "0")
    return integer_part + fractional_part[: max(exponent, 0)]


def default_location(number: int) -> str:
    if number <= MAIN_BLOCK_LAST_LOCKER:
        return MAIN_BLOCK_LOCATION
    return ANNEX_BLOCK_LOCATION


def is_open_loan(return_date: str) -> bool:
    """A loan without a return date, or marked "em aberto", is still running."""
    if not return_date or not trim(return_date):
        return True
    return OPEN_LOAN_MARKER in return_date.lower()


def _row_fields(line: str, delimiter: str) -> Dict[str, str]:
    parts = split_csv_line(line, delimiter)
    return {
        key: (trim(parts[i]) if i < len(parts) else "")
        for i, key in enumerate(LEDGER_COLUMNS)
    }


def parse_locker_csv(
    text: str, id_factory: Optional[IdFactory] = None
) -> List[LockerRecord]:
    """
    Parse a locker ledger export into locker records sorted by number.

    Rows that cannot be tied to a locker are dropped. A locker keeps at most
    one current loan: the first open loan seen for it. Every other loan row
    for that locker, open or closed, goes to its history in source order.
    Multiple open rows are not reconciled by date since loan dates are
    free-form text.
    """
    make_id = id_factory or new_loan_id

    lines = [line for line in _LINE_BREAK.split(text) if trim(line)]
    if len(lines) < 2:
        return []

    delimiter = detect_delimiter(lines)
    start = 1 if is_header(lines[0]) else 0

    lockers: Dict[int, LockerRecord] = {}
    last_seen: Optional[int] = None

    for line in lines[start:]:
        row = _row_fields(line, delimiter)
        raw_number = row["number"]
        location = row["location"]

        # Some exports leave the number column blank and shift it right.
        if raw_number == "" and parse_leading_int(location) is not None:
            raw_number = location
            location = ""

        number = parse_leading_int(raw_number)
        if number is None:
            if last_seen is None:
                continue
            number = last_seen
        elif number > MAX_LOCKER_NUMBER:
            continue
        else:
            last_seen = number

        locker = lockers.get(number)
        if locker is None:
            locker = LockerRecord(
                number=number,
                status=LockerStatus.AVAILABLE,
                location=location or default_location(number),
            )
            lockers[number] = locker

        registration = fix_scientific_registration(row["registration"])
        name = row["student_name"]
        if not name and not registration:
            continue

        loan = LoanRecord(
            id=make_id(),
            locker_number=number,
            physical_location=location or locker.location,
            registration_number=registration,
            student_name=name,
            student_class=row["student_class"],
            observation=row["observation"],
            loan_date=row["loan_date"],
            return_date=row["return_date"],
        )

        if is_open_loan(loan.return_date) and locker.current_loan is None:
            locker.current_loan = loan
            locker.status = LockerStatus.OCCUPIED
        else:
            locker.loan_history.append(loan)

    return [lockers[number] for number in sorted(lockers)]


def count_data_rows(text: str) -> int:
    """Non-blank lines after the optional header, as the parser sees them."""
    lines = [line for line in _LINE_BREAK.split(text) if trim(line)]
    if not lines:
        return 0
    return len(lines) - (1 if is_header(lines[0]) else 0)
