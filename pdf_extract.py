from __future__ import annotations

import logging
import re
import warnings
from pathlib import Path

import pdfplumber
from pdfminer.pdfparser import PDFSyntaxError
from pdfplumber.utils.exceptions import PdfminerException

from pdf_models import ExtractionError, Number, RawLine

logging.getLogger("pdfminer").setLevel(logging.ERROR)
warnings.filterwarnings("ignore", module="pdfminer")

logger = logging.getLogger(__name__)

_COLUMN_GAP_RE = re.compile(r"\s{2,}")
_DIGIT_GROUP_RE = re.compile(r"(?<=\d),(?=\d{3}(?!\d))")
_INTEGER_RE = re.compile(r"^-?\d+$")
_DECIMAL_RE = re.compile(r"^-?\d*\.\d+$|^-?\d+\.\d*$")
_NEGATIVE_RE = re.compile(r"^\(\s*(\d*\.?\d+)\s*\)$")


def extract_text(document_id: str) -> str:
    """Return the full layout-preserving text of every page of *document_id*."""
    path = Path(document_id)
    try:
        with pdfplumber.open(path) as pdf:
            pages = [page.extract_text(layout=True) or "" for page in pdf.pages]
    except (OSError, PDFSyntaxError, PdfminerException) as exc:
        raise ExtractionError(f"cannot read {path}: {exc}") from exc
    logger.debug("extracted %d page(s) from %s", len(pages), path)
    return "\n".join(pages)


def extract_lines(document_id: str) -> list[str]:
    """Return the document text as an ordered list of lines."""
    return extract_text(document_id).splitlines()


def to_raw_lines(texts: list[str]) -> list[RawLine]:
    return [RawLine(text=t, position=i) for i, t in enumerate(texts, start=1)]


def split_columns(line: str) -> list[str]:
    """Split a whitespace-aligned table line into its fields.

    Digit-group commas are removed first so ``1,234`` reads as plain digits;
    commas inside labels are kept. A run of two or more whitespace characters is a column boundary; a
    single space belongs to the field, so labels such as ``In bottles and
    cans`` stay whole.
    """
    cleaned = _DIGIT_GROUP_RE.sub("", line)
    return [f for f in _COLUMN_GAP_RE.split(cleaned.strip()) if f]


def to_number(text: str) -> Number | None:
    """Coerce a table cell to a number; blank or non-numeric cells give None.

    Accounting-notation negatives like ``(364)`` come back negative.
    """
    raw = text.strip().replace(",", "")
    if not raw:
        return None

    sign = 1
    m = _NEGATIVE_RE.match(raw)
    if m:
        raw = m.group(1)
        sign = -1

    if _INTEGER_RE.match(raw):
        return sign * int(raw)
    if _DECIMAL_RE.match(raw):
        return sign * float(raw)
    return None
