import logging

from fastapi import Depends, FastAPI, File, HTTPException, UploadFile

from .config import Settings, configure_logging, get_settings
from .decoding import DecodedText, decode_csv_bytes
from .ledger import count_data_rows, detect_delimiter, parse_locker_csv
from .models import (
    HealthResponse,
    LedgerImportResponse,
    LedgerSummary,
    LockerStatus,
    RosterImportResponse,
    RosterSummary,
)
from .roster import parse_student_csv, split_lines
from .rules import ALLOWED_EXTENSIONS

log = logging.getLogger(__name__)

configure_logging(get_settings().log_level)

app = FastAPI(
    title="locker-import",
    description="Student roster and locker ledger CSV import",
    version="0.1.0",
)


async def _read_upload(file: UploadFile, settings: Settings) -> DecodedText:
    filename = (file.filename or "").lower()
    if not filename.endswith(ALLOWED_EXTENSIONS):
        raise HTTPException(status_code=422, detail="Only CSV files are supported")

    raw = await file.read(settings.max_upload_bytes + 1)
    if not raw:
        raise HTTPException(status_code=422, detail="Uploaded file is empty")
    if len(raw) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File exceeds {settings.max_upload_bytes} bytes",
        )

    decoded = decode_csv_bytes(raw)
    log.info(
        "Decoded %s (%d bytes) as %s", file.filename, len(raw), decoded.encoding.decode_used
    )
    return decoded


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.post("/import/students", response_model=RosterImportResponse)
async def import_students(
    file: UploadFile = File(...), settings: Settings = Depends(get_settings)
):
    decoded = await _read_upload(file, settings)
    students = parse_student_csv(decoded.text)

    rows = max(len(split_lines(decoded.text)) - 1, 0)
    summary = RosterSummary(rows=rows, students=len(students), skipped=rows - len(students))
    log.info("Roster import: %d students from %d rows", summary.students, summary.rows)

    return RosterImportResponse(
        students=students,
        summary=summary,
        encoding=decoded.encoding,
    )


@app.post("/import/lockers", response_model=LedgerImportResponse)
async def import_lockers(
    file: UploadFile = File(...), settings: Settings = Depends(get_settings)
):
    decoded = await _read_upload(file, settings)
    lockers = parse_locker_csv(decoded.text)

    summary = LedgerSummary(
        rows=count_data_rows(decoded.text),
        lockers=len(lockers),
        occupied=sum(1 for locker in lockers if locker.status == LockerStatus.OCCUPIED),
        loans=sum(
            len(locker.loan_history) + (locker.current_loan is not None)
            for locker in lockers
        ),
        delimiter=detect_delimiter(decoded.text.split("\n")),
    )
    log.info(
        "Ledger import: %d lockers (%d occupied), %d loans from %d rows",
        summary.lockers,
        summary.occupied,
        summary.loans,
        summary.rows,
    )

    return LedgerImportResponse(
        lockers=lockers,
        summary=summary,
        encoding=decoded.encoding,
    )
