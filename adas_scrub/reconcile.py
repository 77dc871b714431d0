# adas_scrub/reconcile.py
"""
Multi-source reconciliation.

Union of every source's calibration names keyed by normalized name, then:

Confidence (distinct agreeing sources):
    >=3 -> HIGH    2 -> HIGH    1 -> MEDIUM    0 -> LOW

Status:
    estimate=0, report=0                 -> NO_CALIBRATION_NEEDED (only path)
    exactly one of the two counts is 0   -> NEEDS_REVIEW
    missing non-empty                    -> NEEDS_REVIEW
    any included item below HIGH         -> NEEDS_REVIEW
    otherwise                            -> ALIGNED
    ERROR is only produced by the top-level entry point.

Exclusion-listed items (SRS, TPMS, ...) are never calibrations, however many
sources name them.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .config import ScrubOptions
from .constants import (
    CONFIDENCE_BY_SOURCE_COUNT,
    SOURCE_LABELS,
    SOURCE_ORDER,
    Confidence,
    ScrubStatus,
    SourceTag,
)
from .extractor import CalibrationRequirement, RepairOperationRecord
from .matching import keys_match, normalize_calibration_name
from .sources import SourceSet


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class ReconciledCalibration:
    name: str
    key: str
    sources: frozenset = frozenset()
    confidence: Confidence = Confidence.LOW
    excluded: bool = False
    exclude_reason: Optional[str] = None
    triggered_by: Optional[str] = None
    calibration_type: Optional[str] = None
    reasoning: Optional[str] = None
    verification_text: str = ""

    @property
    def source_labels(self) -> List[str]:
        return [SOURCE_LABELS[s] for s in SOURCE_ORDER if s in self.sources]


@dataclass(frozen=True)
class CalibrationConflict:
    """Sources actively disagree (not mere omission)"""
    item: str
    required_by: Tuple[SourceTag, ...] = ()
    excluded_by: Optional[SourceTag] = None
    reason: str = ""


@dataclass(frozen=True)
class ReconciliationResult:
    status: ScrubStatus
    status_message: str = ""
    summary: str = ""
    calibrations: Tuple[ReconciledCalibration, ...] = ()
    excluded: Tuple[ReconciledCalibration, ...] = ()
    conflicts: Tuple[CalibrationConflict, ...] = ()
    missing: Tuple[str, ...] = ()
    extra: Tuple[str, ...] = ()
    estimate_calibrations: Tuple[str, ...] = ()
    report_calibrations: Tuple[str, ...] = ()
    estimate_count: int = 0
    report_count: int = 0
    report_parsed_count: int = 0
    report_stated_count: Optional[int] = None
    operations: Tuple[RepairOperationRecord, ...] = ()
    mentioned_features: Tuple[str, ...] = ()
    sources_present: Tuple[SourceTag, ...] = ()
    kb_brand: Optional[str] = None
    error: Optional[str] = None

    @property
    def needs_review(self) -> bool:
        return self.status in (ScrubStatus.NEEDS_REVIEW, ScrubStatus.ERROR)

    @property
    def verified(self) -> List[ReconciledCalibration]:
        return [c for c in self.calibrations if c.confidence == Confidence.HIGH]

    @property
    def to_review(self) -> List[ReconciledCalibration]:
        return [c for c in self.calibrations if c.confidence != Confidence.HIGH]

    @classmethod
    def from_error(cls, message: str) -> "ReconciliationResult":
        return cls(
            status=ScrubStatus.ERROR,
            status_message=f"Scrub failed: {message}",
            summary=f"Scrub failed: {message}",
            error=message,
        )


@dataclass
class _Entry:
    name: str
    key: str
    aliases: Set[str] = field(default_factory=set)
    sources: Set[SourceTag] = field(default_factory=set)
    triggered_by: Optional[str] = None
    calibration_type: Optional[str] = None
    reasoning: Optional[str] = None
    excluded_by: Optional[SourceTag] = None
    exclude_reason: Optional[str] = None


# ============================================================
# CONFIDENCE & STATUS TABLES
# ============================================================

def confidence_for_source_count(n: int) -> Confidence:
    top = max(CONFIDENCE_BY_SOURCE_COUNT)
    return CONFIDENCE_BY_SOURCE_COUNT[max(0, min(n, top))]


def verification_text(sources: Set[SourceTag]) -> str:
    labels = [SOURCE_LABELS[s] for s in SOURCE_ORDER if s in sources]
    if len(labels) >= 2:
        return f"✓ Verified by {', '.join(labels)}"
    if len(labels) == 1:
        return f"Found by {labels[0]} only - Review recommended"
    return "No source confirms this item"


def decide_status(
    estimate_count: int,
    report_count: int,
    missing: Sequence[str],
    confidences: Sequence[Confidence],
) -> Tuple[ScrubStatus, str]:
    """
    Returns:
        (status, message). Messages cite ``report_count``, which is the
        stated count whenever one was supplied.
    """
    if estimate_count == 0 and report_count == 0:
        return ScrubStatus.NO_CALIBRATION_NEEDED, "No ADAS calibrations required for this repair."

    if estimate_count == 0:
        return ScrubStatus.NEEDS_REVIEW, (
            f"External report lists {report_count} calibration(s) but estimate operations "
            f"didn't map to any. Review repair operations."
        )

    if report_count == 0:
        return ScrubStatus.NEEDS_REVIEW, (
            f"Estimate suggests {estimate_count} calibration(s) but the external report "
            f"lists none. Verify VIN lookup."
        )

    if missing:
        return ScrubStatus.NEEDS_REVIEW, (
            f"Estimate suggests {estimate_count} calibration(s), external report lists "
            f"{report_count}. {len(missing)} not covered by the report."
        )

    n_low = sum(1 for c in confidences if c != Confidence.HIGH)
    if n_low:
        return ScrubStatus.NEEDS_REVIEW, (
            f"{n_low} calibration(s) confirmed by a single source. Review recommended."
        )

    return ScrubStatus.ALIGNED, (
        f"Estimate ({estimate_count}) and external report ({report_count}) calibrations aligned."
    )


# ============================================================
# RECONCILIATION
# ============================================================

def _ordered_unique(names: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(n for n in names if n))


def _find_entry(entries: Dict[str, _Entry], key: str) -> Optional[_Entry]:
    entry = entries.get(key)
    if entry is None:
        entry = next((e for e in entries.values() if key in e.aliases), None)
    return entry


def _counterpart(entries: Dict[str, _Entry], key: str, tag: SourceTag, strict: bool) -> Optional[_Entry]:
    # another source naming the same calibration less (or more) precisely
    for e in entries.values():
        if tag not in e.sources and keys_match(e.key, key, strict):
            return e
    return None


def _build_entries(reqs: Sequence[CalibrationRequirement], strict: bool = True) -> Dict[str, _Entry]:
    entries: Dict[str, _Entry] = {}
    for req in reqs:
        key = normalize_calibration_name(req.name)
        if not key:
            continue
        entry = _find_entry(entries, key) or _counterpart(entries, key, req.source_tag, strict)
        if entry is None:
            entry = entries[key] = _Entry(name=req.name.strip(), key=key)
        entry.aliases.add(key)
        entry.sources.add(req.source_tag)
        entry.triggered_by = entry.triggered_by or req.triggered_by
        entry.calibration_type = entry.calibration_type or req.calibration_type
        entry.reasoning = entry.reasoning or req.reasoning
    return entries


def _apply_exclusions(
    entries: Dict[str, _Entry],
    sources: SourceSet,
    strict: bool,
) -> None:
    ex_keys = [(normalize_calibration_name(x), x) for x in sources.exclusions]
    ex_keys = [(k, x) for k, x in ex_keys if k]
    list_source = SourceTag.KNOWLEDGE_BASE if sources.exclusions_from_kb else None

    for entry in entries.values():
        for k, label in ex_keys:
            if keys_match(entry.key, k, strict):
                entry.excluded_by = list_source
                if list_source is not None:
                    brand = f" ({sources.kb_brand})" if sources.kb_brand else ""
                    entry.exclude_reason = f"Brand exclusion list{brand}: {label}"
                else:
                    entry.exclude_reason = f"Not an ADAS calibration ({label})"
                break

    for ai_ex in sources.ai_exclusions:
        k = normalize_calibration_name(ai_ex.name)
        if not k:
            continue
        # exact key: an AI exclusion names one calibration
        entry = _find_entry(entries, k)
        if entry is not None:
            if entry.exclude_reason is None:
                entry.excluded_by = SourceTag.AI
                entry.exclude_reason = ai_ex.reason
        else:
            entries[k] = _Entry(
                name=ai_ex.name.strip(), key=k,
                excluded_by=SourceTag.AI, exclude_reason=ai_ex.reason,
            )


def _freeze(entry: _Entry) -> ReconciledCalibration:
    return ReconciledCalibration(
        name=entry.name,
        key=entry.key,
        sources=frozenset(entry.sources),
        confidence=confidence_for_source_count(len(entry.sources)),
        excluded=entry.exclude_reason is not None,
        exclude_reason=entry.exclude_reason,
        triggered_by=entry.triggered_by,
        calibration_type=entry.calibration_type,
        reasoning=entry.reasoning,
        verification_text=verification_text(entry.sources),
    )


def _unmatched(names: Sequence[str], others: Sequence[str], strict: bool) -> List[str]:
    other_keys = [normalize_calibration_name(o) for o in others]
    out = []
    for n in names:
        k = normalize_calibration_name(n)
        if not any(keys_match(k, ok, strict) for ok in other_keys):
            out.append(n)
    return out


def _conflicts(entries: Sequence[_Entry], sources: SourceSet) -> List[CalibrationConflict]:
    out: List[CalibrationConflict] = []
    for e in entries:
        asserting = [s for s in SOURCE_ORDER if s in e.sources and s != e.excluded_by]
        if e.excluded_by is not None and asserting:
            out.append(CalibrationConflict(
                item=e.name,
                required_by=tuple(asserting),
                excluded_by=e.excluded_by,
                reason=e.exclude_reason or "",
            ))
    for d in sources.ai_disagreements:
        parts = []
        if d.report_says:
            parts.append(f"Report says: {d.report_says}")
        if d.ai_says:
            parts.append(f"AI says: {d.ai_says}")
        if d.reason:
            parts.append(d.reason)
        out.append(CalibrationConflict(
            item=d.item,
            required_by=(SourceTag.EXTERNAL_REPORT,),
            excluded_by=SourceTag.AI,
            reason=". ".join(parts),
        ))
    return out


def build_summary(included: Sequence[ReconciledCalibration], excluded: Sequence[ReconciledCalibration]) -> str:
    n_verified = sum(1 for c in included if c.confidence == Confidence.HIGH)
    n_review = len(included) - n_verified
    return (
        f"{len(included)} calibrations identified. {n_verified} verified. "
        f"{n_review} need review. {len(excluded)} excluded (non-ADAS)."
    )


def reconcile(sources: SourceSet, options: Optional[ScrubOptions] = None) -> ReconciliationResult:
    options = options or ScrubOptions()
    strict = options.strict_token_matching

    entries = _build_entries(sources.requirements(), strict)
    _apply_exclusions(entries, sources, strict)

    frozen = [_freeze(e) for e in entries.values()]
    included = [c for c in frozen if not c.excluded]
    excluded = [c for c in frozen if c.excluded]
    excluded_keys = {
        k for e in entries.values() if e.exclude_reason is not None
        for k in e.aliases | {e.key}
    }

    estimate_names = _ordered_unique([r.name for r in sources.estimate])
    report_names = _ordered_unique([r.name for r in sources.external_report])
    est_cmp = [n for n in estimate_names if normalize_calibration_name(n) not in excluded_keys]
    rep_cmp = [n for n in report_names if normalize_calibration_name(n) not in excluded_keys]

    missing = _unmatched(est_cmp, rep_cmp, strict)
    extra = _unmatched(rep_cmp, est_cmp, strict)

    estimate_count = len(estimate_names)
    report_count = sources.report_count
    status, message = decide_status(
        estimate_count, report_count, missing, [c.confidence for c in included],
    )

    return ReconciliationResult(
        status=status,
        status_message=message,
        summary=build_summary(included, excluded),
        calibrations=tuple(included),
        excluded=tuple(excluded),
        conflicts=tuple(_conflicts(list(entries.values()), sources)),
        missing=tuple(missing),
        extra=tuple(extra),
        estimate_calibrations=tuple(estimate_names),
        report_calibrations=tuple(report_names),
        estimate_count=estimate_count,
        report_count=report_count,
        report_parsed_count=sources.report_parsed_count,
        report_stated_count=sources.report_stated_count,
        operations=tuple(sources.operations),
        mentioned_features=tuple(sources.mentioned_features),
        sources_present=tuple(s for s in SOURCE_ORDER if s in sources.present),
        kb_brand=sources.kb_brand,
    )
