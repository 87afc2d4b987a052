from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pdf_models import BatchConfig
from pdf_table import DEFAULT_END_ANCHOR, DEFAULT_START_ANCHOR


def _default_workers() -> int:
    return min(8, (os.cpu_count() or 1) + 4)


def load_config(
    out_root: Optional[str] = None,
    start_anchor: Optional[str] = None,
    end_anchor: Optional[str] = None,
    max_workers: Optional[int] = None,
    timeout: Optional[float] = None,
    log_level: Optional[str] = None,
) -> BatchConfig:
    """Build a BatchConfig from explicit values, falling back to BEER_TABLES_* env vars."""
    root = Path(out_root or os.getenv("BEER_TABLES_OUT_ROOT", "output")).expanduser().resolve()

    workers = int(max_workers or os.getenv("BEER_TABLES_WORKERS", "0")) or _default_workers()
    if workers < 1:
        raise ValueError(f"max_workers must be positive, got {workers}")

    return BatchConfig(
        out_root=root,
        start_anchor=start_anchor or os.getenv("BEER_TABLES_START_ANCHOR", DEFAULT_START_ANCHOR),
        end_anchor=end_anchor or os.getenv("BEER_TABLES_END_ANCHOR", DEFAULT_END_ANCHOR),
        max_workers=workers,
        timeout=float(timeout or os.getenv("BEER_TABLES_TIMEOUT", "60")),
        log_level=(log_level or os.getenv("BEER_TABLES_LOG_LEVEL", "INFO")).upper(),
    )
