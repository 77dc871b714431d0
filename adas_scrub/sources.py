# adas_scrub/sources.py
"""
Source collector.

Up to four independent opinions on which calibrations a repair needs:
    Estimate        - rule engine over the repair lines (always present)
    ExternalReport  - VIN-decoded report field, ";" / "," / newline delimited
    AI              - pre-structured record from an AI read of the document
    KnowledgeBase   - brand rules: component keyword -> calibration

A malformed AI or knowledge-base record is dropped with a warning; the run
continues on the remaining sources.
"""
from __future__ import annotations
import regex as re
import warnings
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence, Set

from .config import ScrubOptions
from .constants import SourceTag
from .extractor import (
    CalibrationRequirement,
    RepairOperationRecord,
    calibration_type_from_name,
    extract_mentioned_features,
    extract_operations,
    requirements_for_operations,
)

_REPORT_SPLIT_RE = re.compile(r"[;,\n]")


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass
class AICalibration:
    name: str
    type: Optional[str] = None
    triggered_by: Optional[str] = None
    confidence: Optional[str] = None
    in_source: Optional[bool] = None
    reasoning: Optional[str] = None


@dataclass
class AIExclusion:
    name: str
    reason: str = "Excluded by AI analysis"


@dataclass
class AIDisagreement:
    """AI's view that the external report is wrong about an item"""
    item: str
    report_says: str = ""
    ai_says: str = ""
    reason: str = ""


@dataclass
class AIAnalysis:
    calibrations: List[AICalibration] = field(default_factory=list)
    excluded: List[AIExclusion] = field(default_factory=list)
    disagreements: List[AIDisagreement] = field(default_factory=list)


@dataclass
class KBTrigger:
    component_keyword: str
    calibration_name: str
    calibration_type: Optional[str] = None


@dataclass
class KnowledgeBaseRules:
    brand: str = ""
    triggers: List[KBTrigger] = field(default_factory=list)
    exclusions: Optional[List[str]] = None  # None -> default exclusion list


@dataclass
class SourceSet:
    """Everything reconciliation needs for one estimate"""
    operations: List[RepairOperationRecord] = field(default_factory=list)
    estimate: List[CalibrationRequirement] = field(default_factory=list)
    external_report: List[CalibrationRequirement] = field(default_factory=list)
    ai: List[CalibrationRequirement] = field(default_factory=list)
    knowledge_base: List[CalibrationRequirement] = field(default_factory=list)

    report_parsed_count: int = 0
    report_stated_count: Optional[int] = None

    ai_exclusions: List[AIExclusion] = field(default_factory=list)
    ai_disagreements: List[AIDisagreement] = field(default_factory=list)
    exclusions: List[str] = field(default_factory=list)
    exclusions_from_kb: bool = False
    kb_brand: Optional[str] = None

    mentioned_features: List[str] = field(default_factory=list)
    present: Set[SourceTag] = field(default_factory=set)

    @property
    def report_count(self) -> int:
        """Stated count when supplied, otherwise the parsed count"""
        if self.report_stated_count is not None:
            return self.report_stated_count
        return self.report_parsed_count

    def requirements(self) -> List[CalibrationRequirement]:
        return self.estimate + self.external_report + self.ai + self.knowledge_base


# ============================================================
# EXTERNAL REPORT
# ============================================================

def parse_report_calibrations(text: Optional[str]) -> List[CalibrationRequirement]:
    """
    "Front Radar; Front Camera (Static),BSM Left" -> 3 requirements.

    None / empty -> no items. Non-string input raises TypeError.
    """
    if text is None:
        return []
    if not isinstance(text, str):
        raise TypeError(f"external report must be text, got {type(text).__name__}")

    out: List[CalibrationRequirement] = []
    for part in _REPORT_SPLIT_RE.split(text):
        name = part.strip()
        if not name:
            continue
        out.append(CalibrationRequirement(
            name=name,
            source_tag=SourceTag.EXTERNAL_REPORT,
            calibration_type="Dynamic" if "dynamic" in name.lower() else "Static",
        ))
    return out


def coerce_stated_count(value: Any) -> Optional[int]:
    """None / "" -> None; 2, "2", 2.0 -> 2. Anything else raises ValueError."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"invalid stated count: {value!r}")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        n = int(float(value))
    except (TypeError, ValueError):
        raise ValueError(f"invalid stated count: {value!r}")
    if n < 0:
        raise ValueError(f"invalid stated count: {value!r}")
    return n


# ============================================================
# AI ANALYSIS
# ============================================================

def _get(d: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        if k in d and d[k] is not None:
            return d[k]
    return default


def parse_ai_analysis(record: Any) -> Optional[AIAnalysis]:
    """
    Accept an AIAnalysis or a plain mapping (camelCase or snake_case keys).

    Returns:
        AIAnalysis, or None when the record is absent
    """
    if record is None:
        return None
    if isinstance(record, AIAnalysis):
        return record
    if not isinstance(record, Mapping):
        raise TypeError(f"AI analysis must be a mapping, got {type(record).__name__}")

    cals = []
    for c in _get(record, "calibrations", default=[]):
        if isinstance(c, AICalibration):
            cals.append(c)
            continue
        if isinstance(c, str):
            if c.strip():
                cals.append(AICalibration(name=c.strip()))
            continue
        name = str(_get(c, "name", default="")).strip()
        if not name:
            continue
        cals.append(AICalibration(
            name=name,
            type=_get(c, "type"),
            triggered_by=_get(c, "triggered_by", "triggeredBy"),
            confidence=_get(c, "confidence"),
            in_source=_get(c, "in_source", "inSource"),
            reasoning=_get(c, "reasoning"),
        ))

    excluded = []
    for e in _get(record, "excluded", default=[]):
        if isinstance(e, AIExclusion):
            excluded.append(e)
        elif isinstance(e, str):
            excluded.append(AIExclusion(name=e))
        else:
            excluded.append(AIExclusion(
                name=str(_get(e, "name", "item", default="")),
                reason=str(_get(e, "reason", default="Excluded by AI analysis")),
            ))

    disagreements = []
    for d in _get(record, "disagreements", default=[]):
        if isinstance(d, AIDisagreement):
            disagreements.append(d)
            continue
        disagreements.append(AIDisagreement(
            item=str(_get(d, "item", "name", default="")),
            report_says=str(_get(d, "report_says", "reportSays", default="")),
            ai_says=str(_get(d, "ai_says", "aiSays", default="")),
            reason=str(_get(d, "reason", default="")),
        ))

    return AIAnalysis(calibrations=cals, excluded=excluded, disagreements=disagreements)


def ai_requirements(analysis: Optional[AIAnalysis]) -> List[CalibrationRequirement]:
    if analysis is None:
        return []
    return [
        CalibrationRequirement(
            name=c.name,
            source_tag=SourceTag.AI,
            calibration_type=c.type or calibration_type_from_name(c.name),
            triggered_by=c.triggered_by,
            reasoning=c.reasoning,
        )
        for c in analysis.calibrations
        if c.name
    ]


# ============================================================
# KNOWLEDGE BASE
# ============================================================

def parse_kb_rules(record: Any) -> Optional[KnowledgeBaseRules]:
    if record is None:
        return None
    if isinstance(record, KnowledgeBaseRules):
        return record
    if not isinstance(record, Mapping):
        raise TypeError(f"knowledge base must be a mapping, got {type(record).__name__}")

    triggers = []
    for t in _get(record, "triggers", default=[]):
        if isinstance(t, KBTrigger):
            triggers.append(t)
            continue
        keyword = str(_get(t, "component_keyword", "componentKeyword", "component", default="")).strip()
        cal = str(_get(t, "calibration_name", "calibrationName", "calibration", default="")).strip()
        if keyword and cal:
            triggers.append(KBTrigger(
                component_keyword=keyword,
                calibration_name=cal,
                calibration_type=_get(t, "calibration_type", "calibrationType", "type"),
            ))

    exclusions = _get(record, "exclusions")
    return KnowledgeBaseRules(
        brand=str(_get(record, "brand", default="")),
        triggers=triggers,
        exclusions=[str(x) for x in exclusions] if exclusions is not None else None,
    )


def _operation_haystack(rec: RepairOperationRecord) -> str:
    return " ".join([
        rec.raw_part_text.lower(),
        rec.canonical_part.replace("_", " "),
        rec.source_line_text.lower(),
    ])


def kb_requirements(
    rules: Optional[KnowledgeBaseRules],
    operations: Sequence[RepairOperationRecord],
) -> List[CalibrationRequirement]:
    """A trigger fires when its component keyword occurs in any operation."""
    if rules is None:
        return []
    out: List[CalibrationRequirement] = []
    fired: Set[str] = set()
    haystacks = [(rec, _operation_haystack(rec)) for rec in operations]
    for trig in rules.triggers:
        kw = trig.component_keyword.lower()
        for rec, hay in haystacks:
            if kw in hay and trig.calibration_name not in fired:
                fired.add(trig.calibration_name)
                out.append(CalibrationRequirement(
                    name=trig.calibration_name,
                    source_tag=SourceTag.KNOWLEDGE_BASE,
                    triggered_by_category=rec.category,
                    calibration_type=trig.calibration_type,
                    triggered_by=rec.source_line_text,
                    reasoning=f"{rules.brand} rule: {trig.component_keyword}".strip(),
                ))
                break
    return out


# ============================================================
# COLLECTOR
# ============================================================

def collect_sources(
    estimate_text: Optional[str],
    report_text: Optional[str] = None,
    stated_count: Any = None,
    ai: Any = None,
    kb: Any = None,
    options: Optional[ScrubOptions] = None,
) -> SourceSet:
    """
    Build the SourceSet for one estimate.

    Raises:
        TypeError / ValueError for a non-text estimate or report field or an
        unreadable stated count. AI and knowledge-base problems only warn.
    """
    options = options or ScrubOptions()
    if estimate_text is not None and not isinstance(estimate_text, str):
        raise TypeError(f"estimate must be text, got {type(estimate_text).__name__}")

    ss = SourceSet()
    ss.operations = extract_operations(estimate_text)
    ss.estimate = requirements_for_operations(ss.operations)
    ss.mentioned_features = extract_mentioned_features(estimate_text)
    ss.present.add(SourceTag.ESTIMATE)

    ss.external_report = parse_report_calibrations(report_text)
    ss.report_parsed_count = len(ss.external_report)
    ss.report_stated_count = coerce_stated_count(stated_count)
    if report_text is not None or ss.report_stated_count is not None:
        ss.present.add(SourceTag.EXTERNAL_REPORT)

    try:
        analysis = parse_ai_analysis(ai)
    except (TypeError, ValueError, AttributeError) as e:
        warnings.warn(f"AI analysis ignored: {e}")
        analysis = None
    if analysis is not None:
        ss.ai = ai_requirements(analysis)
        ss.ai_exclusions = [x for x in analysis.excluded if x.name]
        ss.ai_disagreements = [d for d in analysis.disagreements if d.item]
        ss.present.add(SourceTag.AI)

    try:
        rules = parse_kb_rules(kb)
    except (TypeError, ValueError, AttributeError) as e:
        warnings.warn(f"Knowledge base ignored: {e}")
        rules = None
    if rules is not None:
        ss.knowledge_base = kb_requirements(rules, ss.operations)
        ss.kb_brand = rules.brand or None
        ss.present.add(SourceTag.KNOWLEDGE_BASE)

    if rules is not None and rules.exclusions is not None:
        ss.exclusions = list(rules.exclusions)
        ss.exclusions_from_kb = True
    else:
        ss.exclusions = list(options.exclusions)

    return ss


def source_set_from_names(
    estimate: Sequence[str] = (),
    report: Sequence[str] = (),
    ai: Optional[Sequence[str]] = None,
    knowledge_base: Optional[Sequence[str]] = None,
    stated_count: Any = None,
    exclusions: Optional[Sequence[str]] = None,
) -> SourceSet:
    """SourceSet from plain calibration-name lists (no estimate text)."""
    def _reqs(names, tag):
        return [CalibrationRequirement(name=n, source_tag=tag) for n in names if n and n.strip()]

    ss = SourceSet(
        estimate=_reqs(estimate, SourceTag.ESTIMATE),
        external_report=_reqs(report, SourceTag.EXTERNAL_REPORT),
        ai=_reqs(ai or [], SourceTag.AI),
        knowledge_base=_reqs(knowledge_base or [], SourceTag.KNOWLEDGE_BASE),
        report_stated_count=coerce_stated_count(stated_count),
        exclusions=list(exclusions) if exclusions is not None else list(ScrubOptions().exclusions),
    )
    ss.report_parsed_count = len(ss.external_report)
    ss.present = {SourceTag.ESTIMATE, SourceTag.EXTERNAL_REPORT}
    if ai is not None:
        ss.present.add(SourceTag.AI)
    if knowledge_base is not None:
        ss.present.add(SourceTag.KNOWLEDGE_BASE)
    return ss
