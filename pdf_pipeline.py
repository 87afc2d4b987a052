from __future__ import annotations

import json
import logging
import re
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict
from pathlib import Path
from typing import Callable, Iterable, NamedTuple, Sequence, Union

import pandas as pd

from pdf_classify import classify_materials, classify_production, segment
from pdf_config import load_config
from pdf_extract import extract_lines, to_raw_lines
from pdf_models import (
    BatchConfig,
    ClassifiedRecord,
    DatasetKind,
    DocumentError,
    DocumentResult,
    DocumentSpec,
    ExtractionError,
    ExtractionTimeout,
    ParseAnomaly,
    TableExtractionError,
)
from pdf_table import locate, parse_window

logger = logging.getLogger(__name__)

Extractor = Callable[[str], Sequence[str]]
DocumentLike = Union[DocumentSpec, tuple]

MEASURE_COLUMNS = ["month_current", "month_prior_year", "ytd_current", "ytd_prior_year"]
PRODUCTION_COLUMNS = ["data_type", "tax_status", "tax_rate", "year", "month", "type", *MEASURE_COLUMNS]
MATERIALS_COLUMNS = ["data_type", "material_type", "year", "month", "type", *MEASURE_COLUMNS]
DIAGNOSTIC_COLUMNS = ["kind", "year", "month", "document_id", "row_index", "reason", "detail"]

_PERIOD_RE = re.compile(r"(?<!\d)(\d{4})[_-]?(\d{2})(?!\d)")


class BatchResult(NamedTuple):
    production: pd.DataFrame
    materials: pd.DataFrame
    errors: list[DocumentError]
    anomalies: list[ParseAnomaly]


def find_documents(input_dir: str | Path, years: Iterable[int] | None = None) -> list[DocumentSpec]:
    """List PDF reports under *input_dir* whose file name carries a YYYYMM period.

    ``201601.pdf``, ``beer_2016_01.pdf`` and ``2016-01-stats.pdf`` all map to
    January 2016. Files without a recognisable period are skipped.
    """
    root = Path(input_dir).expanduser().resolve()
    wanted = set(years) if years is not None else None

    found: list[DocumentSpec] = []
    for path in root.rglob("*"):
        if not path.is_file() or path.suffix.lower() != ".pdf":
            continue
        m = _PERIOD_RE.search(path.stem)
        if not m or not 1 <= int(m.group(2)) <= 12:
            logger.debug("skipping %s: no reporting period in name", path.name)
            continue
        year = int(m.group(1))
        if wanted is not None and year not in wanted:
            continue
        found.append(DocumentSpec(year=year, month=m.group(2), document_id=str(path)))

    found.sort(key=lambda d: (d.year, d.month, d.document_id))
    return found


def _as_spec(doc: DocumentLike) -> DocumentSpec:
    if isinstance(doc, DocumentSpec):
        return doc
    year, month, document_id = doc
    return DocumentSpec(year=int(year), month=f"{int(month):02d}", document_id=str(document_id))


def _call_extractor(extractor: Extractor, document_id: str) -> list[str]:
    try:
        return list(extractor(document_id))
    except TableExtractionError:
        raise
    except Exception as exc:
        raise ExtractionError(f"cannot read {document_id}: {exc!r}") from exc


def _extract_with_timeout(extractor: Extractor, document_id: str, timeout: float | None) -> list[str]:
    """Extract lines, giving up after *timeout* seconds.

    Extraction runs on a daemon thread, so a hung read is left behind on
    timeout and never holds up interpreter exit.
    """
    if not timeout:
        return _call_extractor(extractor, document_id)

    outcome: dict[str, object] = {}

    def target() -> None:
        try:
            outcome["lines"] = _call_extractor(extractor, document_id)
        except TableExtractionError as exc:
            outcome["error"] = exc

    worker = threading.Thread(target=target, name=f"extract-{Path(document_id).name}", daemon=True)
    worker.start()
    worker.join(timeout)
    if worker.is_alive():
        raise ExtractionTimeout(f"extraction exceeded {timeout:g}s")
    if "error" in outcome:
        raise outcome["error"]
    return outcome["lines"]


def process_document(
    spec: DocumentSpec,
    extractor: Extractor | None = None,
    config: BatchConfig | None = None,
) -> DocumentResult:
    """Locate, parse, segment and classify the table of one report.

    Raises a TableExtractionError subclass when the document as a whole is unusable.
    """
    config = config or load_config()
    extractor = extractor or extract_lines
    year, month = spec.year, int(spec.month)

    lines = to_raw_lines(_extract_with_timeout(extractor, spec.document_id, config.timeout))
    window = locate(lines, config.start_anchor, config.end_anchor)
    records, anomalies = parse_window(window, year, month, spec.document_id)
    production, materials = segment(records)

    result = DocumentResult(
        spec=spec,
        production=classify_production(production),
        materials=classify_materials(materials),
        anomalies=anomalies,
    )
    logger.debug(
        "%s: %d production row(s), %d materials row(s), %d anomalies",
        spec.document_id,
        len(result.production),
        len(result.materials),
        len(anomalies),
    )
    return result


def _process_safely(
    spec: DocumentSpec,
    extractor: Extractor | None,
    config: BatchConfig,
) -> DocumentResult | DocumentError:
    try:
        return process_document(spec, extractor, config)
    except TableExtractionError as exc:
        logger.warning("%s (%d-%s) failed: %s: %s", spec.document_id, spec.year, spec.month, exc.reason, exc)
        return DocumentError(
            year=spec.year,
            month=int(spec.month),
            document_id=spec.document_id,
            reason=exc.reason,
            detail=str(exc),
        )


def run(
    documents: Iterable[DocumentLike],
    extractor: Extractor | None = None,
    config: BatchConfig | None = None,
) -> BatchResult:
    """Process every document concurrently and merge the results in (year, month) order.

    A failing document contributes a DocumentError and no rows; the batch
    always completes. Documents submitted twice contribute twice.
    """
    config = config or load_config()
    specs = [_as_spec(d) for d in documents]

    outcomes: list[tuple[int, DocumentResult | DocumentError]] = []
    with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
        futures = {
            executor.submit(_process_safely, spec, extractor, config): i
            for i, spec in enumerate(specs)
        }
        for future in as_completed(futures):
            outcomes.append((futures[future], future.result()))

    outcomes.sort(key=lambda item: (specs[item[0]].year, int(specs[item[0]].month), item[0]))

    production: list[ClassifiedRecord] = []
    materials: list[ClassifiedRecord] = []
    errors: list[DocumentError] = []
    anomalies: list[ParseAnomaly] = []
    for _, outcome in outcomes:
        if isinstance(outcome, DocumentError):
            errors.append(outcome)
            continue
        production.extend(outcome.production)
        materials.extend(outcome.materials)
        anomalies.extend(outcome.anomalies)

    logger.info(
        "processed %d document(s): %d failed, %d production row(s), %d materials row(s), %d row anomalies",
        len(specs),
        len(errors),
        len(production),
        len(materials),
        len(anomalies),
    )
    production_df, materials_df = to_frames(production, materials)
    return BatchResult(production_df, materials_df, errors, anomalies)


def _row(c: ClassifiedRecord) -> dict:
    r = c.record
    row = {
        "data_type": c.kind.value,
        "year": r.year,
        "month": r.month,
        "type": r.label,
        "month_current": r.month_current,
        "month_prior_year": r.month_prior_year,
        "ytd_current": r.ytd_current,
        "ytd_prior_year": r.ytd_prior_year,
    }
    if c.kind is DatasetKind.PRODUCTION:
        row["tax_status"] = c.category
        row["tax_rate"] = c.tax_rate
    else:
        row["material_type"] = c.category
    return row


def to_frames(
    production: Sequence[ClassifiedRecord],
    materials: Sequence[ClassifiedRecord],
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Build the two output tables with their fixed column order."""
    production_df = pd.DataFrame([_row(c) for c in production], columns=PRODUCTION_COLUMNS)
    materials_df = pd.DataFrame([_row(c) for c in materials], columns=MATERIALS_COLUMNS)
    return production_df, materials_df


def diagnostics_frame(errors: Sequence[DocumentError], anomalies: Sequence[ParseAnomaly]) -> pd.DataFrame:
    rows = [
        {
            "kind": "document_error",
            "year": e.year,
            "month": e.month,
            "document_id": e.document_id,
            "row_index": None,
            "reason": e.reason,
            "detail": e.detail,
        }
        for e in errors
    ]
    rows += [
        {
            "kind": "parse_anomaly",
            "year": a.year,
            "month": a.month,
            "document_id": a.document_id or None,
            "row_index": a.row_index,
            "reason": a.reason,
            "detail": " | ".join(a.raw),
        }
        for a in anomalies
    ]
    return pd.DataFrame(rows, columns=DIAGNOSTIC_COLUMNS)


def write_outputs(result: BatchResult, out_root: Path) -> dict[str, Path]:
    """Write production.csv, materials.csv and diagnostics.json under *out_root*."""
    out_root.mkdir(parents=True, exist_ok=True)
    paths = {
        "production": out_root / "production.csv",
        "materials": out_root / "materials.csv",
        "diagnostics": out_root / "diagnostics.json",
    }
    result.production.to_csv(paths["production"], index=False)
    result.materials.to_csv(paths["materials"], index=False)

    diagnostics = {
        "errors": [asdict(e) for e in result.errors],
        "anomalies": [asdict(a) for a in result.anomalies],
    }
    paths["diagnostics"].write_text(json.dumps(diagnostics, ensure_ascii=False, indent=2), encoding="utf-8")
    return paths
