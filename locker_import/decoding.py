"""
Upload decoding.

Exports come out of spreadsheet software as UTF-8 (often with a BOM) or as
Windows-1252/Latin-1, and with any mix of line endings. The parsers want
plain `str` with LF line breaks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict

from charset_normalizer import from_bytes

from .models import EncodingReport
from .rules import CANDIDATE_ENCODINGS, TARGET_NEWLINE

log = logging.getLogger(__name__)

UTF8_BOM = b"\xef\xbb\xbf"


@dataclass
class DecodedText:
    text: str
    encoding: EncodingReport


def _is_utf8(name: str) -> bool:
    return name.lower().replace("-", "_") in ("utf_8", "utf8")


def count_newlines(text: str) -> Dict[str, int]:
    crlf = text.count("\r\n")
    return {
        "crlf": crlf,
        "cr": text.count("\r") - crlf,
        "lf": text.count("\n") - crlf,
    }


def decode_csv_bytes(raw: bytes) -> DecodedText:
    """
    Decode uploaded bytes to LF-normalized text.

    Rules:
    - Detect encoding best-effort via charset-normalizer, limited to the
      codecs school exports actually use.
    - A UTF-8 BOM is consumed, never returned as text.
    - If decode fails, fall back to UTF-8, then to UTF-8 with replacement
      characters; both cases set `decode_fallback`.
    """
    detected = None
    match = from_bytes(raw, cp_isolation=list(CANDIDATE_ENCODINGS)).best()
    if match is not None:
        detected = match.encoding

    decode_used = detected or "utf-8"
    if raw.startswith(UTF8_BOM) and _is_utf8(decode_used):
        decode_used = "utf-8-sig"

    decode_fallback = False
    try:
        text = raw.decode(decode_used)
    except (UnicodeDecodeError, LookupError):
        decode_fallback = True
        try:
            text = raw.decode("utf-8-sig")
            decode_used = "utf-8-sig"
        except UnicodeDecodeError:
            log.warning("Upload is not valid %s nor UTF-8, replacing bad bytes", decode_used)
            decode_used = "utf-8"
            text = raw.decode(decode_used, errors="replace")

    # Some detectors report a BOM-less codec for BOM-prefixed input.
    text = text.lstrip("\ufeff")

    newlines = count_newlines(text)
    text = text.replace("\r\n", TARGET_NEWLINE).replace("\r", TARGET_NEWLINE)

    return DecodedText(
        text=text,
        encoding=EncodingReport(
            detected=detected,
            decode_used=decode_used,
            decode_fallback=decode_fallback,
            newlines=newlines,
        ),
    )
