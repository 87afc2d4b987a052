from __future__ import annotations

import logging
from typing import Callable, Sequence

from pdf_models import BoundaryNotFound, ClassifiedRecord, DatasetKind, ParsedRecord, Segment

logger = logging.getLogger(__name__)

BOUNDARY_LABELS = ("MATERIALS USED", "IN POUNDS")
SECTION_HEADERS = ("IN POUNDS", "MATERIALS USED", "MANUFACTURE OF BEER", "BARRELS")

# Federal excise rate per barrel (reduced/general), changed for 2018 onward.
_TAX_RATES: list[tuple[int, str]] = [
    (2017, "$7/$18 per barrel"),
]
_LATER_TAX_RATE = "$3.50/$16 per barrel"

Rule = tuple[Callable[[str], bool], Callable[[str], str]]


def _exact(*labels: str) -> Callable[[str], bool]:
    wanted = frozenset(labels)
    return lambda label: label in wanted


def _contains(*words: str) -> Callable[[str], bool]:
    return lambda label: any(w in label for w in words)


def _fixed(category: str) -> Callable[[str], str]:
    return lambda label: category


TAX_STATUS_RULES: list[Rule] = [
    (_exact("In bottles and cans", "In kegs", "In barrels and kegs", "Tax Determined, Premises Use"), _fixed("Taxable")),
    (_exact("Sub Total Taxable"), _fixed("Sub Total Taxable")),
    (_exact("For export", "For vessels and aircraft", "Consumed on brewery premises"), _fixed("Tax Free")),
    (_exact("Sub Total Tax-Free"), _fixed("Sub Total Tax-Free")),
    (_exact("Production", "Total Removals", "Stocks On Hand end-of-month"), _fixed("Totals")),
]

MATERIAL_TYPE_RULES: list[Rule] = [
    (_contains("Malt", "Corn", "Rice", "Barley", "Wheat"), _fixed("Grain Products")),
    (_contains("Sugar", "Hops", "Other"), _fixed("Non-Grain Products")),
    # totals describe themselves
    (_contains("Total"), lambda label: label),
]


def match_category(label: str, rules: Sequence[Rule]) -> str | None:
    """Return the category of the first rule matching *label*, or None."""
    for matches, category in rules:
        if matches(label):
            return category(label)
    return None


def tax_rate_for(year: int) -> str:
    for last_year, rate in _TAX_RATES:
        if year <= last_year:
            return rate
    return _LATER_TAX_RATE


def _is_section_header(record: ParsedRecord) -> bool:
    return any(h in record.label for h in SECTION_HEADERS)


def find_boundary(records: Sequence[ParsedRecord]) -> int:
    """Index of the first record that opens the materials sub-table."""
    for i, record in enumerate(records):
        if any(b in record.label for b in BOUNDARY_LABELS):
            return i
    raise BoundaryNotFound(f"no row labelled {' or '.join(map(repr, BOUNDARY_LABELS))}")


def segment(records: Sequence[ParsedRecord]) -> tuple[Segment, Segment]:
    """Split parsed rows into production and materials segments.

    Structural header rows are removed from both segments after the split.
    """
    boundary = find_boundary(records)
    production = tuple(r for r in records[:boundary] if not _is_section_header(r))
    materials = tuple(r for r in records[boundary:] if not _is_section_header(r))
    return (
        Segment(kind=DatasetKind.PRODUCTION, records=production),
        Segment(kind=DatasetKind.MATERIALS, records=materials),
    )


def classify_production(segment: Segment) -> list[ClassifiedRecord]:
    """Attach tax status and tax rate; rows without a known label are dropped."""
    out: list[ClassifiedRecord] = []
    for record in segment.records:
        status = match_category(record.label, TAX_STATUS_RULES)
        if status is None:
            continue
        out.append(
            ClassifiedRecord(
                record=record,
                kind=DatasetKind.PRODUCTION,
                category=status,
                tax_rate=tax_rate_for(record.year),
            )
        )
    return out


def classify_materials(segment: Segment) -> list[ClassifiedRecord]:
    out: list[ClassifiedRecord] = []
    for record in segment.records:
        material = match_category(record.label, MATERIAL_TYPE_RULES)
        if material is None:
            continue
        out.append(ClassifiedRecord(record=record, kind=DatasetKind.MATERIALS, category=material))
    return out
