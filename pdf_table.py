from __future__ import annotations

import logging
import re
from typing import Sequence

from pdf_extract import split_columns, to_number
from pdf_models import AnchorNotFound, ParseAnomaly, ParsedRecord, RawLine, TableWindow

logger = logging.getLogger(__name__)

DEFAULT_START_ANCHOR = "MANUFACTURE OF BEER"
DEFAULT_END_ANCHOR = "Total Used"

_EXPECTED_FIELDS = 5
_FOOTNOTE_FIELD_RE = re.compile(r"^(\d{1,2}/|\*+)$")
_TRAILING_FOOTNOTE_RE = re.compile(r"\s+(\d{1,2}/|\*+)$")


def _find(lines: Sequence[RawLine], anchor: str, start: int) -> int | None:
    for i in range(start, len(lines)):
        if anchor in lines[i].text:
            return i
    return None


def locate(
    lines: Sequence[RawLine],
    start_anchor: str = DEFAULT_START_ANCHOR,
    end_anchor: str = DEFAULT_END_ANCHOR,
) -> TableWindow:
    """Return the table lines from the first *start_anchor* line through the
    first *end_anchor* line at or after it, each stripped.

    Raises AnchorNotFound naming the missing anchor.
    """
    start_index = _find(lines, start_anchor, 0)
    if start_index is None:
        raise AnchorNotFound(start_anchor, "start")

    end_index = _find(lines, end_anchor, start_index)
    if end_index is None:
        raise AnchorNotFound(end_anchor, "end")

    window = tuple(
        RawLine(text=ln.text.strip(), position=ln.position)
        for ln in lines[start_index : end_index + 1]
    )
    return TableWindow(lines=window, start_index=start_index, end_index=end_index)


def normalize_label(label: str) -> str:
    """Strip trailing colons and footnote markers from a row label."""
    label = label.strip()
    while True:
        stripped = _TRAILING_FOOTNOTE_RE.sub("", label).rstrip(":").rstrip()
        if stripped == label:
            return label
        label = stripped


def parse_record(
    fields: Sequence[str],
    row_index: int,
    year: int,
    month: int,
    document_id: str = "",
) -> ParsedRecord | ParseAnomaly:
    """Map one delimited row to a ParsedRecord, or a ParseAnomaly if its shape is wrong.

    A full row is a label plus four measures. A row holding only a label is a
    section header and is kept with empty measures so that segmentation can
    see it. Footnote-only fields do not count toward the shape.
    """
    values = [f for f in fields if not _FOOTNOTE_FIELD_RE.match(f)]

    if len(values) == 1:
        measures: list = [None, None, None, None]
    elif len(values) == _EXPECTED_FIELDS:
        measures = [to_number(v) for v in values[1:]]
    else:
        return ParseAnomaly(
            year=year,
            month=month,
            row_index=row_index,
            raw=tuple(fields),
            reason=f"expected {_EXPECTED_FIELDS} fields, got {len(values)}",
            document_id=document_id,
        )

    return ParsedRecord(
        label=normalize_label(values[0]),
        month_current=measures[0],
        month_prior_year=measures[1],
        ytd_current=measures[2],
        ytd_prior_year=measures[3],
        year=year,
        month=month,
        source_row_index=row_index,
    )


def parse_window(
    window: TableWindow,
    year: int,
    month: int,
    document_id: str = "",
) -> tuple[list[ParsedRecord], list[ParseAnomaly]]:
    """Parse every row of *window* after the column-header row."""
    records: list[ParsedRecord] = []
    anomalies: list[ParseAnomaly] = []

    for row_index, line in enumerate(window.lines[1:], start=1):
        fields = split_columns(line.text)
        if not fields:
            continue
        result = parse_record(fields, row_index, year, month, document_id)
        if isinstance(result, ParseAnomaly):
            logger.debug("%04d-%02d row %d skipped: %s %r", year, month, row_index, result.reason, result.raw)
            anomalies.append(result)
        else:
            records.append(result)

    return records, anomalies
