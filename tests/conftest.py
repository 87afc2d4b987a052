from __future__ import annotations

import pytest

from pdf_models import BatchConfig, ExtractionError

REPORT_TEXT = """\
                      DEPARTMENT OF THE TREASURY
               ALCOHOL AND TOBACCO TAX AND TRADE BUREAU
                   Beer Monthly Statistical Release

MANUFACTURE OF BEER         Current Month    Prior Year Current Month    Current Year Cumulative to Date    Prior Year Cumulative to Date
BARRELS
Production                          15,656,133          16,018,011          15,656,133          16,018,011
Removals
  Taxable:
    In bottles and cans             11,318,462          11,569,393          11,318,462          11,569,393
    In barrels and kegs              1,439,208           1,522,187           1,439,208           1,522,187
    Tax Determined, Premises Use       113,419             108,627             113,419             108,627
  Sub Total Taxable                 12,871,089          13,200,207          12,871,089          13,200,207
  Tax Free:
    For export                         273,014             320,110             273,014             320,110
    For vessels and aircraft                 -                   -                   -                   -
    Consumed on brewery premises         3,187               3,215               3,187               3,215
  Sub Total Tax-Free                   276,201             323,325             276,201             323,325
Total Removals                      13,147,290          13,523,532          13,147,290          13,523,532
Stocks On Hand end-of-month: 1/     10,929,812          10,834,101          10,929,812          10,834,101

MATERIALS USED
IN POUNDS
Malt and malt products             295,384,152         301,873,442         295,384,152         301,873,442
Corn and corn products              58,374,889          60,015,774          58,374,889          60,015,774
Rice and rice products              51,447,336          52,771,911          51,447,336          52,771,911
Barley and barley products           5,013,577           5,217,006           5,013,577           5,217,006
Wheat and wheat products             1,912,118           1,866,231           1,912,118           1,866,231
Total Grain products               412,132,072         421,744,364         412,132,072         421,744,364
Sugar and syrups                    46,281,221          48,903,513          46,281,221          48,903,513
Hops (dry)                           6,003,552           5,741,019           6,003,552           5,741,019
Hops (used as extracts)                184,732             182,210             184,732             182,210
Other                                  929,003             901,347             929,003             901,347
Total Non-Grain products            53,398,508          55,728,089          53,398,508          55,728,089
Total Used                         465,530,580         477,472,453         465,530,580         477,472,453

1/ Stocks are reported as of the last day of the month.
"""

PRODUCTION_LABELS = [
    "Production",
    "In bottles and cans",
    "In barrels and kegs",
    "Tax Determined, Premises Use",
    "Sub Total Taxable",
    "For export",
    "For vessels and aircraft",
    "Consumed on brewery premises",
    "Sub Total Tax-Free",
    "Total Removals",
    "Stocks On Hand end-of-month",
]

MATERIALS_LABELS = [
    "Malt and malt products",
    "Corn and corn products",
    "Rice and rice products",
    "Barley and barley products",
    "Wheat and wheat products",
    "Total Grain products",
    "Sugar and syrups",
    "Hops (dry)",
    "Hops (used as extracts)",
    "Other",
    "Total Non-Grain products",
    "Total Used",
]


class FakeExtractor:
    """Serves report text by document id; ids missing from *texts* fail like a corrupt file."""

    def __init__(self, texts: dict[str, str]) -> None:
        self.texts = texts
        self.calls: list[str] = []

    def __call__(self, document_id: str) -> list[str]:
        self.calls.append(document_id)
        if document_id not in self.texts:
            raise ExtractionError(f"cannot read {document_id}")
        return self.texts[document_id].splitlines()


@pytest.fixture
def report_lines() -> list[str]:
    return REPORT_TEXT.splitlines()


@pytest.fixture
def config(tmp_path) -> BatchConfig:
    return BatchConfig(out_root=tmp_path / "out", max_workers=3, timeout=5.0)
