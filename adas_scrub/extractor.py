# adas_scrub/extractor.py
"""
Operation extractor: estimate text -> repair operation records -> calibration
requirements.

Per line:
    [Line Classifier] -> [Part Normalizer] -> [Category Mapper (a)]
    [Category Mapper (b)] direct ADAS terminology scan

Records are deduplicated by (category, canonical part). The dedup set is
created per call (or passed in by the caller); nothing is cached between calls.
"""
from __future__ import annotations
import regex as re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from .calibration_rules import calibrations_for_category, is_adas_relevant
from .categories import category_for_part, scan_line_categories
from .cleaning import is_ignored_line, split_lines
from .constants import (
    CategoryTag,
    DETECTED_VERB,
    LINE_CONTEXT_CHARS,
    SourceTag,
)
from .line_classifier import classify_line
from .parts import UNKNOWN_PART, detect_position, detect_side, normalize_part_name


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class RepairOperationRecord:
    """One repair operation found in the estimate"""
    operation_verb: str
    raw_part_text: str
    canonical_part: str
    category: CategoryTag
    source_line_text: str

    @property
    def key(self) -> Tuple[str, str]:
        return (self.category.value, self.canonical_part)

    @property
    def label(self) -> str:
        return f"{self.operation_verb} [{self.canonical_part}]"


@dataclass
class CalibrationRequirement:
    """One source's claim that a calibration is required"""
    name: str
    source_tag: SourceTag
    triggered_by_category: Optional[CategoryTag] = None
    calibration_type: Optional[str] = None  # Static / Dynamic
    triggered_by: Optional[str] = None
    reasoning: Optional[str] = None


@dataclass
class QuickScanResult:
    total_operations: int
    has_adas_relevant_repairs: bool
    categories: List[str] = field(default_factory=list)


def calibration_type_from_name(name: str) -> Optional[str]:
    lower = (name or "").lower()
    if "dynamic" in lower:
        return "Dynamic"
    if "static" in lower:
        return "Static"
    return None


# ============================================================
# EXTRACTION
# ============================================================

def _records_for_line(line: str) -> List[RepairOperationRecord]:
    records: List[RepairOperationRecord] = []
    context = line[:LINE_CONTEXT_CHARS]

    parsed = classify_line(line)
    canonical = normalize_part_name(parsed.raw_part_text) if parsed else UNKNOWN_PART

    # Path (a): verb + part
    if parsed and canonical != UNKNOWN_PART:
        records.append(RepairOperationRecord(
            operation_verb=parsed.operation_verb,
            raw_part_text=parsed.raw_part_text,
            canonical_part=canonical,
            category=category_for_part(canonical),
            source_line_text=context,
        ))

    # Path (b): direct terminology hits
    for category, matched in scan_line_categories(line):
        records.append(RepairOperationRecord(
            operation_verb=parsed.operation_verb if parsed else DETECTED_VERB,
            raw_part_text=parsed.raw_part_text if parsed else matched,
            canonical_part=canonical if canonical != UNKNOWN_PART else category.value,
            category=category,
            source_line_text=context,
        ))

    return records


def extract_operations(
    text: Optional[str],
    seen: Optional[Set[Tuple[str, str]]] = None,
) -> List[RepairOperationRecord]:
    """
    Extract repair operations from a whole estimate.

    Args:
        text: Estimate text (newline-delimited)
        seen: Dedup set of (category, canonical_part) keys. A fresh set is
              used when None; pass one in to dedup across several documents.

    Returns:
        Records in document order, no two sharing a (category, canonical_part) key
    """
    if seen is None:
        seen = set()

    out: List[RepairOperationRecord] = []
    for line in split_lines(text):
        if is_ignored_line(line):
            continue
        for rec in _records_for_line(line):
            if rec.key in seen:
                continue
            seen.add(rec.key)
            out.append(rec)
    return out


def calibrations_for_operations(records: Iterable[RepairOperationRecord]) -> List[str]:
    """Ordered-unique calibration names triggered by the records' categories."""
    names: List[str] = []
    done_categories: Set[CategoryTag] = set()
    for rec in records:
        if rec.category in done_categories:
            continue
        done_categories.add(rec.category)
        for name in calibrations_for_category(rec.category):
            if name not in names:
                names.append(name)
    return names


def requirements_for_operations(
    records: Iterable[RepairOperationRecord],
) -> List[CalibrationRequirement]:
    """Estimate-tagged requirements; each carries the first line that triggered it."""
    reqs: Dict[str, CalibrationRequirement] = {}
    for rec in records:
        for name in calibrations_for_category(rec.category):
            if name in reqs:
                continue
            reqs[name] = CalibrationRequirement(
                name=name,
                source_tag=SourceTag.ESTIMATE,
                triggered_by_category=rec.category,
                calibration_type=calibration_type_from_name(name),
                triggered_by=rec.source_line_text,
            )
    return list(reqs.values())


def extract_estimate_requirements(text: Optional[str]) -> List[CalibrationRequirement]:
    return requirements_for_operations(extract_operations(text))


# ============================================================
# SUMMARIES
# ============================================================

_FEATURE_PATTERNS: List[Tuple[str, str]] = [
    (r"(?:with|w/|has|equipped)\s*(?:surround|360)\s*view", "surround_view"),
    (r"(?:with|w/|has|equipped)\s*(?:blind\s*spot|bsm|blis)", "blind_spot_monitor"),
    (r"(?:with|w/|has|equipped)\s*(?:front|forward)\s*(?:camera|sensing)", "front_camera"),
    (r"(?:with|w/|has|equipped)\s*(?:adaptive\s*cruise|acc\b|radar)", "front_radar"),
    (r"(?:with|w/|has|equipped)\s*(?:lane\s*(?:keep|departure)|lka|ldw)", "lane_assist"),
    (r"(?:with|w/|has|equipped)\s*parking\s*(?:sensor|aid|assist)", "parking_sensors"),
    (r"(?:with|w/|has|equipped)\s*(?:backup|rear|reverse)\s*camera", "rear_camera"),
    (r"eyesight", "eyesight"),
    (r"honda\s*sensing", "honda_sensing"),
    (r"toyota\s*safety\s*sense|\btss\b", "toyota_safety_sense"),
    (r"nissan\s*(?:safety\s*shield|intelligent\s*mobility)", "nissan_safety"),
    (r"lanewatch", "lanewatch"),
    (r"distronic", "distronic"),
    (r"co[\s-]?pilot\s*360", "copilot360"),
]

_FEATURE_RES = [(re.compile(p, re.I), feat) for p, feat in _FEATURE_PATTERNS]


def extract_mentioned_features(text: Optional[str]) -> List[str]:
    """ADAS equipment the estimate mentions (informational only)."""
    if not text or not isinstance(text, str):
        return []
    return [feat for rx, feat in _FEATURE_RES if rx.search(text)]


def summarize_operations(records: Iterable[RepairOperationRecord]) -> Dict[str, Any]:
    """Counts by category, by operation verb and by location."""
    records = list(records)
    by_category = Counter(r.category.value for r in records)
    by_operation = Counter(r.operation_verb for r in records)
    locations = {"front": 0, "rear": 0, "left": 0, "right": 0}

    for r in records:
        line = r.source_line_text.lower()
        pos = detect_position(line)
        side = detect_side(line)
        if pos:
            locations[pos.strip("_")] += 1
        if side:
            locations[side.strip("_")] += 1

    return {
        "total_operations": len(records),
        "by_category": dict(by_category),
        "by_operation": dict(by_operation),
        "locations": locations,
    }


def quick_scan(text: Optional[str]) -> QuickScanResult:
    """Cheap pre-check: does the estimate contain any calibration-triggering repair?"""
    records = extract_operations(text)
    relevant = [r.category.value for r in records if is_adas_relevant(r.category)]
    return QuickScanResult(
        total_operations=len(records),
        has_adas_relevant_repairs=bool(relevant),
        categories=list(dict.fromkeys(relevant)),
    )
