# adas_scrub/formatting.py
"""
Text renderings of a ReconciliationResult.

    format_compact        one sentence (notes column)
    format_preview        counts + up to N named discrepancies
    format_full           multi-section report (sidebar / export)
    format_voice_summary  short spoken-style summary
    to_records            one dict per calibration (tables)

All renderers are pure and handle ERROR results.
"""
from __future__ import annotations
import regex as re
from typing import Any, Dict, List, Optional, Sequence

from .constants import SOURCE_LABELS, ScrubStatus, SourceTag
from .reconcile import ReconciliationResult

_CAL_WORD_RE = re.compile(r"\s*calibration\s*", re.I)
_PAREN_RE = re.compile(r"\s*\([^)]*\)")
_WS_RE = re.compile(r"\s+")

RULE = "-" * 44


def shorten_name(name: str) -> str:
    """'Front Camera Calibration (Static)' -> 'Front Camera'"""
    s = _PAREN_RE.sub("", name or "")
    s = _CAL_WORD_RE.sub(" ", s)
    return _WS_RE.sub(" ", s).strip() or (name or "").strip()


def _named_list(names: Sequence[str], limit: int, shorten: bool = False) -> str:
    shown = [shorten_name(n) if shorten else n for n in names[:limit]]
    text = ", ".join(shown)
    if len(names) > limit:
        text += f", +{len(names) - limit}"
    return text


# ============================================================
# COMPACT
# ============================================================

def format_compact(result: Optional[ReconciliationResult], max_items: int = 2) -> str:
    if result is None:
        return "No scrub data."
    if result.status == ScrubStatus.ERROR:
        return f"Scrub failed: {result.error}"
    if result.status == ScrubStatus.NO_CALIBRATION_NEEDED:
        return "No ADAS calibrations required for this repair."

    est, rep = result.estimate_count, result.report_count

    if result.status == ScrubStatus.ALIGNED:
        return f"OK - Estimate matches external report ({est} calibrations). Ready to schedule."

    if est == 0:
        return f"External report lists {rep} calibration(s), estimate maps to none. Needs review."

    if rep == 0:
        tail = f" Missing: {_named_list(list(result.missing), max_items)}." if result.missing else ""
        return f"Estimate: {est} ADAS ops, report: 0.{tail} Needs review."

    if result.missing:
        return (
            f"Mismatch - Est: {est}, Report: {rep}. "
            f"Missing: {_named_list(list(result.missing), max_items)}."
        )

    if result.extra:
        return f"Extra ops - Report includes: {_named_list(list(result.extra), max_items)}."

    n_review = len(result.to_review)
    return f"Est: {est}, Report: {rep}. {n_review} calibration(s) need review."


# ============================================================
# PREVIEW
# ============================================================

def format_preview(result: Optional[ReconciliationResult], max_items: int = 2) -> str:
    """
    Example:
        "Estimate: 3 ADAS ops. Report: 2. Missing: Front Camera. Needs review."
    """
    if result is None:
        return "No scrub data."
    if result.status == ScrubStatus.ERROR:
        return f"Scrub failed: {result.error}"

    text = f"Estimate: {result.estimate_count} ADAS ops. Report: {result.report_count}."

    if result.missing:
        text += f" Missing: {_named_list(list(result.missing), max_items, shorten=True)}."
    elif result.extra:
        text += f" Extra: {_named_list(list(result.extra), max_items, shorten=True)}."

    if result.needs_review:
        text += " Needs review."
    elif result.status == ScrubStatus.ALIGNED:
        text += " OK."
    return text


# ============================================================
# FULL
# ============================================================

def _section(title: str) -> str:
    return f"--- {title} ---"


def format_full(result: Optional[ReconciliationResult], max_operations: int = 25) -> str:
    if result is None:
        return "No scrub data available."
    if result.status == ScrubStatus.ERROR:
        return f"Scrub failed: {result.error}"

    lines: List[str] = []

    lines.append(_section("ESTIMATE vs EXTERNAL REPORT"))
    lines.append(f"Estimate Calibrations: {result.estimate_count}")
    if result.report_stated_count is not None and result.report_stated_count != result.report_parsed_count:
        lines.append(f"Report Calibrations: {result.report_count} (stated; {result.report_parsed_count} parsed)")
    else:
        lines.append(f"Report Calibrations: {result.report_count}")
    lines.append(f"MISSING: {', '.join(result.missing) if result.missing else 'None'}")
    if result.extra:
        lines.append(f"EXTRA: {', '.join(result.extra)}")
    lines.append(RULE)
    lines.append("")

    lines.append(_section(f"REQUIRED CALIBRATIONS ({len(result.calibrations)})"))
    if result.calibrations:
        for cal in result.calibrations:
            kind = f" ({cal.calibration_type})" if cal.calibration_type else ""
            lines.append(f"  {cal.name}{kind}")
            lines.append(f"    Confidence: {cal.confidence.value}")
            lines.append(f"    Sources: {', '.join(cal.source_labels) or 'None'}")
            lines.append(f"    {cal.verification_text}")
            if cal.triggered_by:
                lines.append(f"    Triggered by: {cal.triggered_by}")
            if cal.reasoning:
                lines.append(f"    Reasoning: {cal.reasoning}")
    else:
        lines.append("  No calibrations required")
    lines.append("")

    if result.excluded:
        lines.append(_section("EXCLUDED (Non-ADAS)"))
        for item in result.excluded:
            lines.append(f"  x {item.name}: {item.exclude_reason}")
        lines.append("")

    if result.conflicts:
        lines.append(_section("CONFLICTS TO REVIEW"))
        for c in result.conflicts:
            required = ", ".join(SOURCE_LABELS[s] for s in c.required_by) or "None"
            against = SOURCE_LABELS[c.excluded_by] if c.excluded_by else "Unknown"
            lines.append(f"  ! {c.item}")
            lines.append(f"    Required by: {required}; disputed by: {against}")
            if c.reason:
                lines.append(f"    {c.reason}")
        lines.append("")

    ops = list(result.operations)
    lines.append(_section(f"OPERATIONS DETECTED ({len(ops)})"))
    if ops:
        for op in ops[:max_operations]:
            lines.append(f"  - {op.label} [{op.category.value}]")
        if len(ops) > max_operations:
            lines.append(f"  ... +{len(ops) - max_operations} more")
    else:
        lines.append("  None detected")
    lines.append("")

    if result.mentioned_features:
        lines.append(_section("EQUIPMENT NOTED ON ESTIMATE"))
        lines.append("  " + ", ".join(result.mentioned_features))
        lines.append("")

    lines.append(_section("SOURCES"))
    for tag in result.sources_present:
        label = SOURCE_LABELS[tag]
        if tag == SourceTag.KNOWLEDGE_BASE and result.kb_brand:
            label += f" ({result.kb_brand})"
        lines.append(f"  {label}")
    lines.append("")

    lines.append(f"SUMMARY: {result.summary}")
    if result.needs_review:
        lines.append(f"*** STATUS: {result.status.value} ***")
    else:
        lines.append(f"STATUS: {result.status.value}")
    lines.append(result.status_message)
    lines.append(_section("END SCRUB"))
    return "\n".join(lines)


# ============================================================
# VOICE
# ============================================================

def format_voice_summary(result: Optional[ReconciliationResult]) -> str:
    if result is None:
        return "I don't have scrub results for that repair order."
    if result.status == ScrubStatus.ERROR:
        return f"The scrub failed. {result.error}"
    if result.status == ScrubStatus.NO_CALIBRATION_NEEDED:
        return "No ADAS calibrations are needed for this repair."

    n = len(result.calibrations)
    text = f"This repair needs {n} calibration{'s' if n != 1 else ''}."
    if n:
        names = [shorten_name(c.name) for c in result.calibrations[:3]]
        text += f" Including {', '.join(names)}."
    if result.status == ScrubStatus.ALIGNED:
        text += " The estimate and the external report agree."
    else:
        if result.missing:
            text += f" {len(result.missing)} missing from the external report."
        text += " Please review before scheduling."
    return text


# ============================================================
# TABLE RECORDS
# ============================================================

def to_records(result: ReconciliationResult) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for cal in list(result.calibrations) + list(result.excluded):
        rows.append({
            "Calibration": cal.name,
            "Type": cal.calibration_type,
            "Confidence": None if cal.excluded else cal.confidence.value,
            "Sources": ", ".join(cal.source_labels),
            "Verification": cal.verification_text,
            "Excluded": cal.excluded,
            "Exclude_Reason": cal.exclude_reason,
            "Triggered_By": cal.triggered_by,
        })
    return rows
