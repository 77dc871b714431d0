# adas_scrub/engine.py - ADAS ESTIMATE SCRUB ENGINE
"""
Estimate scrub engine.

Architecture:
    Estimate text -> [Operation Extraction] -> [Source Collection] -> [Reconciliation] -> Status + Report

Sources:
    Estimate        rule engine over repair lines
    ExternalReport  VIN-decoded calibration list (+ optional stated count)
    AI              optional pre-structured AI analysis
    KnowledgeBase   optional brand trigger rules

``scrub_estimate`` never raises: a fault that prevents any result is returned
as status ERROR with the exception message.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional
from dataclasses import dataclass
import warnings

import numpy as np
import pandas as pd
from tqdm import tqdm

from .config import ScrubOptions
from .constants import Confidence, ScrubStatus
from .extractor import quick_scan
from .formatting import format_compact, format_full, format_preview
from .mapping import ORDER_OUTCOLS
from .reconcile import ReconciliationResult, reconcile
from .sources import collect_sources


# ============================================================
# SINGLE ESTIMATE
# ============================================================

def scrub_estimate(
    estimate_text: Optional[str],
    report_text: Optional[str] = None,
    stated_count: Any = None,
    ai: Any = None,
    kb: Any = None,
    options: Optional[ScrubOptions] = None,
) -> ReconciliationResult:
    """
    Scrub one estimate against the available sources.

    Args:
        estimate_text: Repair-order text (plain, newline-delimited)
        report_text: External report calibration field (";" / "," / newline delimited)
        stated_count: Explicit report item count; wins over the parsed count for status
        ai: Optional AIAnalysis or mapping
        kb: Optional KnowledgeBaseRules or mapping
        options: ScrubOptions

    Returns:
        ReconciliationResult (status ERROR on failure, never raises)
    """
    options = options or ScrubOptions()
    try:
        sources = collect_sources(estimate_text, report_text, stated_count, ai, kb, options)
        result = reconcile(sources, options)
    except Exception as e:
        msg = str(e) or type(e).__name__
        if options.verbose:
            print(f"  ❌ Scrub failed: {msg}")
        return ReconciliationResult.from_error(msg)

    if options.verbose:
        print(f"  {result.status.value}: {result.status_message}")
    return result


# ============================================================
# BATCH
# ============================================================

@dataclass
class BatchRow:
    idx: int
    ro_number: Optional[str]
    result: ReconciliationResult


def _cell(row: pd.Series, col: str) -> Optional[str]:
    if col not in row.index:
        return None
    val = row[col]
    if val is None or (not isinstance(val, str) and pd.isna(val)):
        return None
    return str(val)


class ScrubEngine:
    """
    Batch scrub over a DataFrame of repair orders.

    Usage:
        engine = ScrubEngine(verbose=True)
        rows = engine.scrub_batch(df)
        out_df = engine.to_dataframe(rows)
    """

    def __init__(
        self,
        options: Optional[ScrubOptions] = None,
        kb_by_brand: Optional[Dict[str, Any]] = None,
        verbose: bool = False,
    ):
        """
        Args:
            options: ScrubOptions shared by every row
            kb_by_brand: Optional brand -> knowledge-base record, picked by the Brand column
            verbose: Print progress messages
        """
        self.options = options or ScrubOptions()
        self.kb_by_brand = {k.lower(): v for k, v in (kb_by_brand or {}).items()}
        self.verbose = verbose or self.options.verbose

    def _kb_for(self, brand: Optional[str]) -> Any:
        if not brand:
            return None
        return self.kb_by_brand.get(brand.strip().lower())

    def scrub_batch(self, df: pd.DataFrame, skip_without_adas: bool = False) -> List[BatchRow]:
        """
        Args:
            df: DataFrame with columns Estimate_Text, Report_Calibrations,
                Report_Stated_Count (optional), RO_Number, Brand (optional)
            skip_without_adas: Skip repair-line extraction for estimates the quick
                scan finds no ADAS-relevant repair in; only the report is checked

        Returns:
            List[BatchRow] - one per input row
        """
        if self.verbose:
            print(f"🚀 Scrubbing {len(df)} repair orders...")

        rows: List[BatchRow] = []
        n_skipped = 0
        for i, (_, row) in enumerate(tqdm(df.iterrows(), total=len(df), disable=not self.verbose)):
            estimate = _cell(row, "Estimate_Text")
            if skip_without_adas and not quick_scan(estimate).has_adas_relevant_repairs:
                n_skipped += 1
                estimate = None
            result = scrub_estimate(
                estimate,
                report_text=_cell(row, "Report_Calibrations"),
                stated_count=_cell(row, "Report_Stated_Count"),
                kb=self._kb_for(_cell(row, "Brand")),
                options=self.options,
            )
            if result.status == ScrubStatus.ERROR:
                warnings.warn(f"Scrub failed for row {i}: {result.error}")
            rows.append(BatchRow(idx=i, ro_number=_cell(row, "RO_Number"), result=result))

        if self.verbose:
            statuses = [r.result.status.value for r in rows]
            if skip_without_adas:
                print(f"        Quick scan: {n_skipped} estimates without ADAS-relevant repairs")
            for s in ScrubStatus:
                print(f"        {s.value}: {statuses.count(s.value)}")

        return rows

    def to_dataframe(self, rows: List[BatchRow]) -> pd.DataFrame:
        out = []
        for r in rows:
            res = r.result
            out.append({
                "RO_Number": r.ro_number,
                "Scrub_Status": res.status.value,
                "Estimate_Count": res.estimate_count,
                "Report_Count": res.report_count,
                "Report_Parsed_Count": res.report_parsed_count,
                "Missing": "; ".join(res.missing),
                "Extra": "; ".join(res.extra),
                "Verified": len(res.verified),
                "Need_Review": len(res.to_review),
                "Excluded": "; ".join(c.name for c in res.excluded),
                "Conflicts": "; ".join(c.item for c in res.conflicts),
                "Compact_Notes": format_compact(res, self.options.preview_max_items),
                "Preview_Notes": format_preview(res, self.options.preview_max_items),
                "Summary": res.summary,
                "Error": res.error,
                "Full_Report": format_full(res, self.options.full_max_operations),
            })
        return pd.DataFrame(out, columns=["RO_Number"] + ORDER_OUTCOLS + ["Full_Report"])

    def get_statistics(self, rows: List[BatchRow]) -> Dict[str, Any]:
        n_total = len(rows)
        statuses = [r.result.status for r in rows]
        ok = [r.result for r in rows if r.result.status != ScrubStatus.ERROR]

        est_counts = [r.estimate_count for r in ok]
        rep_counts = [r.report_count for r in ok]
        diffs = [abs(a - b) for a, b in zip(est_counts, rep_counts)]
        confs = [c.confidence for r in ok for c in r.calibrations]

        return {
            "total_ros": n_total,
            "status": {s.value: statuses.count(s) for s in ScrubStatus},
            "calibrations": {
                "estimate_mean": float(np.mean(est_counts)) if est_counts else 0.0,
                "report_mean": float(np.mean(rep_counts)) if rep_counts else 0.0,
                "count_diff_mean": float(np.mean(diffs)) if diffs else 0.0,
                "count_diff_max": int(np.max(diffs)) if diffs else 0,
            },
            "confidence": {c.value: confs.count(c) for c in Confidence},
            "needs_review_rate": (
                sum(1 for s in statuses if s in (ScrubStatus.NEEDS_REVIEW, ScrubStatus.ERROR)) / n_total
                if n_total > 0 else 0.0
            ),
        }
