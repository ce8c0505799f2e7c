"""
Student roster import.

The academic system exports one student per line, `;`-separated, with a
header row first. Columns are positional:

    #;Nome;Matrícula;Curso;...;...;Situação;E-mail
"""

from __future__ import annotations

import re
from typing import List

from .models import StudentRecord
from .rules import (
    COURSE_CODE_RULES,
    DEFAULT_COURSE_CODE,
    INTEGRATED_MARKERS,
    INTEGRATED_SUFFIX,
    ROSTER_COLUMNS,
    ROSTER_DELIMITER,
    ROSTER_MIN_FIELDS,
    SUBSEQUENT_MARKERS,
    SUBSEQUENT_SUFFIX,
    trim,
)

_LINE_BREAK = re.compile(r"\r?\n")


def split_lines(text: str) -> List[str]:
    """Trimmed, non-empty lines."""
    return [line for line in (trim(raw) for raw in _LINE_BREAK.split(text)) if line]


def infer_course_code(full_course: str) -> str:
    """
    Reduce a verbose course name to a short class code.

    "13500 - Técnico de Nível Médio em Informática, na Forma Integrado"
    becomes "INFO INT".
    """
    lowered = full_course.lower()

    code = DEFAULT_COURSE_CODE
    for marker, base in COURSE_CODE_RULES:
        if marker in lowered:
            code = base

    if any(marker in lowered for marker in SUBSEQUENT_MARKERS):
        code += SUBSEQUENT_SUFFIX
    if any(marker in lowered for marker in INTEGRATED_MARKERS):
        code += INTEGRATED_SUFFIX

    return code


def _field(parts: List[str], key: str) -> str:
    index = ROSTER_COLUMNS[key]
    return trim(parts[index]) if index < len(parts) else ""


def parse_student_csv(text: str) -> List[StudentRecord]:
    """
    Parse a roster export into student records, in source order.

    The first line is always treated as the header. Rows with fewer than
    four fields, or without a name or registration, are dropped.
    """
    lines = split_lines(text)
    students: List[StudentRecord] = []

    for line in lines[1:]:
        parts = line.split(ROSTER_DELIMITER)
        if len(parts) < ROSTER_MIN_FIELDS:
            continue

        registration = _field(parts, "registration")
        name = _field(parts, "name")
        if not registration or not name:
            continue

        students.append(
            StudentRecord(
                registration=registration,
                name=name,
                course=infer_course_code(_field(parts, "course")),
                situation=_field(parts, "situation"),
                email=_field(parts, "email"),
            )
        )

    return students
