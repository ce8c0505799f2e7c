from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ImportModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StudentRecord(ImportModel):
    model_config = ConfigDict(frozen=True)

    registration: str
    name: str
    course: str
    situation: str = ""
    email: str = ""


class LoanRecord(ImportModel):
    model_config = ConfigDict(frozen=True)

    id: str
    locker_number: int
    physical_location: str
    registration_number: str = ""
    student_name: str = ""
    student_class: str = ""
    observation: str = ""
    loan_date: str = ""
    return_date: str = ""


class LockerStatus(str, Enum):
    AVAILABLE = "Disponível"
    OCCUPIED = "Ocupado"


class LockerRecord(ImportModel):
    number: int
    status: LockerStatus = LockerStatus.AVAILABLE
    location: str
    current_loan: Optional[LoanRecord] = None
    loan_history: List[LoanRecord] = Field(default_factory=list)
    maintenance_history: List[Dict[str, Any]] = Field(default_factory=list)


class EncodingReport(ImportModel):
    detected: Optional[str] = None
    decode_used: str = "utf-8"
    decode_fallback: bool = False
    newlines: Dict[str, int] = Field(default_factory=dict)


class RosterSummary(ImportModel):
    rows: int = 0
    students: int = 0
    skipped: int = 0


class RosterImportResponse(ImportModel):
    students: List[StudentRecord] = Field(default_factory=list)
    summary: RosterSummary
    encoding: EncodingReport


class LedgerSummary(ImportModel):
    rows: int = 0
    lockers: int = 0
    occupied: int = 0
    loans: int = 0
    delimiter: str = ","


class LedgerImportResponse(ImportModel):
    lockers: List[LockerRecord] = Field(default_factory=list)
    summary: LedgerSummary
    encoding: EncodingReport


class HealthResponse(ImportModel):
    ok: bool = True
