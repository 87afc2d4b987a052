from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

Number = Union[int, float]


class TableExtractionError(Exception):
    """Base class for failures that invalidate a whole document."""

    reason = "TableExtractionError"


class ExtractionError(TableExtractionError):
    """The document could not be read or converted to text."""

    reason = "ExtractionError"


class ExtractionTimeout(ExtractionError):
    """Text extraction did not finish within the per-document timeout."""

    reason = "Timeout"


class AnchorNotFound(TableExtractionError):
    """A table start or end marker is missing from the document text."""

    reason = "AnchorNotFound"

    def __init__(self, anchor: str, role: str) -> None:
        super().__init__(f"{role} anchor {anchor!r} not found")
        self.anchor = anchor
        self.role = role


class BoundaryNotFound(TableExtractionError):
    """No label separates the production rows from the materials rows."""

    reason = "BoundaryNotFound"


class DatasetKind(str, enum.Enum):
    PRODUCTION = "Production"
    MATERIALS = "Materials Used"


@dataclass(frozen=True)
class RawLine:
    """One line of extracted text with its 1-based position in the document."""

    text: str
    position: int


@dataclass(frozen=True)
class TableWindow:
    """Trimmed lines between the start and end anchors, both included."""

    lines: tuple[RawLine, ...]
    start_index: int
    end_index: int


@dataclass(frozen=True)
class ParsedRecord:
    label: str
    month_current: Number | None
    month_prior_year: Number | None
    ytd_current: Number | None
    ytd_prior_year: Number | None
    year: int
    month: int
    source_row_index: int

    @property
    def is_label_only(self) -> bool:
        return all(
            v is None
            for v in (self.month_current, self.month_prior_year, self.ytd_current, self.ytd_prior_year)
        )


@dataclass(frozen=True)
class ParseAnomaly:
    """A table row whose field count did not match the expected layout."""

    year: int
    month: int
    row_index: int
    raw: tuple[str, ...]
    reason: str
    document_id: str = ""


@dataclass(frozen=True)
class Segment:
    kind: DatasetKind
    records: tuple[ParsedRecord, ...]


@dataclass(frozen=True)
class ClassifiedRecord:
    record: ParsedRecord
    kind: DatasetKind
    category: str
    tax_rate: str | None = None


@dataclass(frozen=True)
class DocumentSpec:
    """A monthly report to process, identified by its reporting period."""

    year: int
    month: str
    document_id: str


@dataclass(frozen=True)
class DocumentError:
    year: int
    month: int
    document_id: str
    reason: str
    detail: str = ""


@dataclass
class DocumentResult:
    spec: DocumentSpec
    production: list[ClassifiedRecord] = field(default_factory=list)
    materials: list[ClassifiedRecord] = field(default_factory=list)
    anomalies: list[ParseAnomaly] = field(default_factory=list)


@dataclass
class BatchConfig:
    """Settings for one batch run."""

    out_root: Path
    start_anchor: str = "MANUFACTURE OF BEER"
    end_anchor: str = "Total Used"
    max_workers: int = 4
    timeout: float = 60.0
    log_level: str = "INFO"
