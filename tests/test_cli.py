from __future__ import annotations

import argparse

import pytest

import beer_tables
import pdf_pipeline
from conftest import REPORT_TEXT
from pdf_config import load_config


def test_parse_years():
    assert beer_tables._parse_years("2016") == [2016]
    assert beer_tables._parse_years("2016-2018") == [2016, 2017, 2018]
    with pytest.raises(argparse.ArgumentTypeError):
        beer_tables._parse_years("2018-2016")
    with pytest.raises(argparse.ArgumentTypeError):
        beer_tables._parse_years("soon")


def test_load_config_env_fallback(monkeypatch, tmp_path):
    monkeypatch.setenv("BEER_TABLES_OUT_ROOT", str(tmp_path))
    monkeypatch.setenv("BEER_TABLES_WORKERS", "2")
    monkeypatch.setenv("BEER_TABLES_TIMEOUT", "7.5")
    monkeypatch.setenv("BEER_TABLES_LOG_LEVEL", "debug")

    cfg = load_config()

    assert cfg.out_root == tmp_path.resolve()
    assert cfg.max_workers == 2
    assert cfg.timeout == 7.5
    assert cfg.log_level == "DEBUG"
    assert cfg.start_anchor == "MANUFACTURE OF BEER"
    assert cfg.end_anchor == "Total Used"


def test_load_config_explicit_values_win(monkeypatch, tmp_path):
    monkeypatch.setenv("BEER_TABLES_WORKERS", "2")
    cfg = load_config(out_root=str(tmp_path), max_workers=5, end_anchor="Total")
    assert cfg.max_workers == 5
    assert cfg.end_anchor == "Total"


def test_load_config_rejects_negative_workers(tmp_path):
    with pytest.raises(ValueError):
        load_config(out_root=str(tmp_path), max_workers=-1)


def test_main_end_to_end(monkeypatch, tmp_path, capsys):
    reports = tmp_path / "reports"
    reports.mkdir()
    (reports / "201601.pdf").write_bytes(b"")
    (reports / "201602.pdf").write_bytes(b"")
    out = tmp_path / "out"

    def fake_extract(document_id):
        if document_id.endswith("201602.pdf"):
            return ["nothing to see"]
        return REPORT_TEXT.splitlines()

    monkeypatch.setattr(pdf_pipeline, "extract_lines", fake_extract)

    code = beer_tables.main([str(reports), "--out-root", str(out), "--workers", "2"])

    assert code == 0
    assert (out / "production.csv").exists()
    assert (out / "materials.csv").exists()
    assert (out / "diagnostics.json").exists()
    printed = capsys.readouterr().out
    assert "2 (1 failed)" in printed
    assert "AnchorNotFound" in printed


def test_main_without_reports(tmp_path):
    assert beer_tables.main([str(tmp_path), "--out-root", str(tmp_path / "out")]) == 1
