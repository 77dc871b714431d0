# tests/test_reconcile.py
"""
Unit tests for source collection and multi-source reconciliation.

Run:
    pytest tests/test_reconcile.py -v
"""

import pytest

from adas_scrub.constants import Confidence, ScrubStatus, SourceTag
from adas_scrub.reconcile import (
    confidence_for_source_count,
    decide_status,
    reconcile,
    verification_text,
)
from adas_scrub.sources import (
    AIDisagreement,
    AIExclusion,
    collect_sources,
    coerce_stated_count,
    parse_ai_analysis,
    parse_kb_rules,
    parse_report_calibrations,
    source_set_from_names,
)


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def subaru_kb():
    """Knowledge-base record as it arrives from JSON"""
    return {
        "brand": "Subaru",
        "triggers": [
            {"component_keyword": "windshield", "calibration_name": "EyeSight Calibration"},
        ],
    }


# ============================================================
# TEST: EXTERNAL REPORT PARSING
# ============================================================

def test_parse_report_calibrations():
    reqs = parse_report_calibrations("Front Radar; Front Camera (Static),BSM Left\nDynamic Camera Aim")
    assert [r.name for r in reqs] == ["Front Radar", "Front Camera (Static)", "BSM Left", "Dynamic Camera Aim"]
    assert all(r.source_tag == SourceTag.EXTERNAL_REPORT for r in reqs)
    assert reqs[0].calibration_type == "Static"
    assert reqs[3].calibration_type == "Dynamic"


def test_parse_report_calibrations_empty():
    assert parse_report_calibrations(None) == []
    assert parse_report_calibrations("") == []
    assert parse_report_calibrations(" ; , ") == []


def test_parse_report_calibrations_rejects_non_text():
    with pytest.raises(TypeError):
        parse_report_calibrations(5)


def test_coerce_stated_count():
    assert coerce_stated_count(None) is None
    assert coerce_stated_count("") is None
    assert coerce_stated_count("2") == 2
    assert coerce_stated_count(2.0) == 2

    for bad in ["abc", -1, True]:
        with pytest.raises(ValueError):
            coerce_stated_count(bad)


# ============================================================
# TEST: AI / KNOWLEDGE BASE RECORDS
# ============================================================

def test_parse_ai_analysis_camel_case():
    analysis = parse_ai_analysis({
        "calibrations": [
            {"name": "Front Camera", "triggeredBy": "Windshield", "inSource": True},
            {"name": ""},
        ],
        "excluded": ["SRS Unit"],
        "disagreements": [{"item": "BSM", "reportSays": "required", "aiSays": "not equipped"}],
    })
    assert len(analysis.calibrations) == 1
    assert analysis.calibrations[0].triggered_by == "Windshield"
    assert analysis.calibrations[0].in_source == True
    assert analysis.excluded[0].name == "SRS Unit"
    assert analysis.disagreements[0].ai_says == "not equipped"


def test_parse_ai_analysis_plain_name_strings():
    analysis = parse_ai_analysis({"calibrations": ["Front Camera", "", {"name": "Rear Radar"}]})
    assert [c.name for c in analysis.calibrations] == ["Front Camera", "Rear Radar"]


def test_parse_ai_analysis_rejects_non_mapping():
    assert parse_ai_analysis(None) is None
    with pytest.raises(TypeError):
        parse_ai_analysis("front camera")


def test_parse_kb_rules(subaru_kb):
    rules = parse_kb_rules(subaru_kb)
    assert rules.brand == "Subaru"
    assert rules.triggers[0].calibration_name == "EyeSight Calibration"
    assert rules.exclusions is None


# ============================================================
# TEST: SOURCE COLLECTION
# ============================================================

def test_collect_sources_estimate_only():
    ss = collect_sources("R&R Front Bumper Cover")
    assert ss.present == {SourceTag.ESTIMATE}
    assert len(ss.estimate) == 3
    assert ss.report_count == 0


def test_collect_sources_stated_count_wins():
    ss = collect_sources("", "BSM Left; BSM Right", stated_count=5)
    assert ss.report_parsed_count == 2
    assert ss.report_stated_count == 5
    assert ss.report_count == 5


def test_collect_sources_rejects_non_text_estimate():
    with pytest.raises(TypeError):
        collect_sources(123)


def test_collect_sources_kb_trigger(subaru_kb):
    ss = collect_sources("Replace Windshield", kb=subaru_kb)
    assert [r.name for r in ss.knowledge_base] == ["EyeSight Calibration"]
    assert ss.knowledge_base[0].triggered_by == "Replace Windshield"
    assert ss.kb_brand == "Subaru"
    assert ss.exclusions_from_kb == False


def test_collect_sources_kb_exclusions_override_defaults():
    ss = collect_sources("Replace Windshield", kb={"brand": "Ford", "exclusions": ["Rain Sensor"]})
    assert ss.exclusions == ["Rain Sensor"]
    assert ss.exclusions_from_kb == True


def test_collect_sources_malformed_ai_is_dropped():
    with pytest.warns(UserWarning):
        ss = collect_sources("Replace Windshield", ai="not a record")
    assert SourceTag.AI not in ss.present
    assert ss.ai == []


# ============================================================
# TEST: CONFIDENCE & STATUS TABLES
# ============================================================

def test_confidence_for_source_count():
    assert confidence_for_source_count(0) == Confidence.LOW
    assert confidence_for_source_count(1) == Confidence.MEDIUM
    assert confidence_for_source_count(2) == Confidence.HIGH
    assert confidence_for_source_count(3) == Confidence.HIGH
    assert confidence_for_source_count(7) == Confidence.HIGH


def test_confidence_is_monotonic():
    ranks = [confidence_for_source_count(n).rank for n in range(6)]
    assert ranks == sorted(ranks)


def test_verification_text():
    assert verification_text({SourceTag.ESTIMATE, SourceTag.EXTERNAL_REPORT}) == (
        "✓ Verified by Estimate, External Report"
    )
    assert verification_text({SourceTag.AI}) == "Found by AI Analysis only - Review recommended"
    assert verification_text(set()) == "No source confirms this item"


def test_decide_status_zero_counts():
    """Both zero is the only path to NO_CALIBRATION_NEEDED; one zero needs review"""
    assert decide_status(0, 0, [], [])[0] == ScrubStatus.NO_CALIBRATION_NEEDED
    assert decide_status(0, 3, [], [])[0] == ScrubStatus.NEEDS_REVIEW
    assert decide_status(3, 0, [], [])[0] == ScrubStatus.NEEDS_REVIEW


def test_decide_status_confidence():
    assert decide_status(2, 2, [], [Confidence.HIGH, Confidence.HIGH])[0] == ScrubStatus.ALIGNED
    assert decide_status(2, 2, [], [Confidence.HIGH, Confidence.MEDIUM])[0] == ScrubStatus.NEEDS_REVIEW
    assert decide_status(2, 2, ["Front Camera"], [Confidence.HIGH])[0] == ScrubStatus.NEEDS_REVIEW


# ============================================================
# TEST: RECONCILIATION
# ============================================================

def test_reconcile_millimeter_wave_aligned():
    """Same radar under two names counts as one verified calibration"""
    result = reconcile(source_set_from_names(
        estimate=["Front Radar Calibration"],
        report=["Millimeter Wave Radar"],
    ))
    assert result.status == ScrubStatus.ALIGNED
    assert result.missing == ()
    assert len(result.calibrations) == 1

    cal = result.calibrations[0]
    assert cal.name == "Front Radar Calibration"
    assert cal.confidence == Confidence.HIGH
    assert cal.sources == frozenset({SourceTag.ESTIMATE, SourceTag.EXTERNAL_REPORT})
    assert result.summary == "1 calibrations identified. 1 verified. 0 need review. 0 excluded (non-ADAS)."


def test_reconcile_estimate_empty_cites_report_count():
    result = reconcile(source_set_from_names(report=["BSM Left", "BSM Right"], stated_count=2))
    assert result.status == ScrubStatus.NEEDS_REVIEW
    assert "lists 2 calibration" in result.status_message


def test_reconcile_stated_count_in_message():
    result = reconcile(source_set_from_names(report=["BSM Left", "BSM Right"], stated_count=5))
    assert result.status == ScrubStatus.NEEDS_REVIEW
    assert result.report_count == 5
    assert result.report_parsed_count == 2
    assert "lists 5 calibration" in result.status_message


def test_reconcile_report_empty():
    result = reconcile(source_set_from_names(estimate=["Front Radar Calibration"]))
    assert result.status == ScrubStatus.NEEDS_REVIEW
    assert result.missing == ("Front Radar Calibration",)


def test_reconcile_nothing_needed():
    result = reconcile(source_set_from_names())
    assert result.status == ScrubStatus.NO_CALIBRATION_NEEDED
    assert result.calibrations == ()


def test_reconcile_three_sources_high():
    result = reconcile(source_set_from_names(
        estimate=["Front Camera Calibration"],
        report=["Front Camera"],
        ai=["Front Camera Calibration (Static)"],
    ))
    assert len(result.calibrations) == 1
    cal = result.calibrations[0]
    assert cal.confidence == Confidence.HIGH
    assert cal.verification_text == "✓ Verified by Estimate, External Report, AI Analysis"
    assert result.status == ScrubStatus.ALIGNED


def test_reconcile_single_source_needs_review():
    """An extra AI-only item is MEDIUM and holds the status at NEEDS_REVIEW"""
    result = reconcile(source_set_from_names(
        estimate=["Front Radar Calibration"],
        report=["Front Radar"],
        ai=["Headlamp Aim"],
    ))
    by_name = {c.name: c for c in result.calibrations}
    assert by_name["Headlamp Aim"].confidence == Confidence.MEDIUM
    assert by_name["Front Radar Calibration"].confidence == Confidence.HIGH
    assert result.missing == ()
    assert result.status == ScrubStatus.NEEDS_REVIEW
    assert len(result.to_review) == 1


def test_reconcile_missing_and_extra():
    result = reconcile(source_set_from_names(
        estimate=["Front Radar Calibration", "Rear Radar Calibration"],
        report=["Front Radar", "Parking Sensor"],
    ))
    assert result.missing == ("Rear Radar Calibration",)
    assert result.extra == ("Parking Sensor",)
    assert result.status == ScrubStatus.NEEDS_REVIEW


def test_reconcile_default_exclusion():
    """Default-list items are excluded without raising a conflict"""
    result = reconcile(source_set_from_names(
        estimate=["Front Radar Calibration"],
        report=["Front Radar", "SRS Unit Reset"],
    ))
    assert [c.name for c in result.excluded] == ["SRS Unit Reset"]
    assert result.excluded[0].exclude_reason == "Not an ADAS calibration (SRS Unit)"
    assert "SRS Unit Reset" not in [c.name for c in result.calibrations]
    assert result.extra == ()
    assert result.conflicts == ()


def test_reconcile_kb_exclusion_conflict():
    ss = source_set_from_names(
        estimate=["Front Radar Calibration", "Seat Belt Calibration"],
        report=["Front Radar"],
        knowledge_base=[],
        exclusions=["Seat Belt"],
    )
    ss.exclusions_from_kb = True
    ss.kb_brand = "Toyota"
    result = reconcile(ss)

    assert len(result.conflicts) == 1
    conflict = result.conflicts[0]
    assert conflict.item == "Seat Belt Calibration"
    assert conflict.required_by == (SourceTag.ESTIMATE,)
    assert conflict.excluded_by == SourceTag.KNOWLEDGE_BASE
    assert result.excluded[0].exclude_reason == "Brand exclusion list (Toyota): Seat Belt"
    assert result.missing == ()


def test_reconcile_ai_exclusion_and_disagreement():
    ss = source_set_from_names(estimate=["Front Radar Calibration"], report=["Front Radar"], ai=[])
    ss.ai_exclusions = [AIExclusion(name="Seat Heater Reset", reason="Comfort feature")]
    ss.ai_disagreements = [AIDisagreement(
        item="BSM", report_says="required", ai_says="not equipped", reason="No BSM option code",
    )]
    result = reconcile(ss)

    assert [c.name for c in result.excluded] == ["Seat Heater Reset"]
    assert result.excluded[0].exclude_reason == "Comfort feature"
    assert len(result.conflicts) == 1
    assert result.conflicts[0].reason == "Report says: required. AI says: not equipped. No BSM option code"


def test_reconcile_generic_report_name_aligned():
    """A generic report name is the same calibration as the specific estimate one"""
    result = reconcile(source_set_from_names(
        estimate=["Front Radar Calibration"],
        report=["Radar Sensor"],
    ))
    assert result.missing == ()
    assert result.extra == ()
    assert len(result.calibrations) == 1
    assert result.calibrations[0].confidence == Confidence.HIGH
    assert result.status == ScrubStatus.ALIGNED

    result = reconcile(source_set_from_names(
        estimate=["Rain/Light Sensor Calibration"],
        report=["Rain Sensor"],
    ))
    assert result.missing == ()
    assert result.extra == ()
    assert result.calibrations[0].name == "Rain/Light Sensor Calibration"
    assert result.calibrations[0].sources == frozenset({SourceTag.ESTIMATE, SourceTag.EXTERNAL_REPORT})
    assert result.status == ScrubStatus.ALIGNED


def test_reconcile_same_source_names_stay_separate():
    """Two estimate names are never merged by containment"""
    result = reconcile(source_set_from_names(
        estimate=["Radar Sensor", "Front Radar Calibration"],
        report=["Front Radar"],
    ))
    assert [c.key for c in result.calibrations] == ["radar", "front radar"]


def test_reconcile_vague_ai_exclusion_excludes_only_itself():
    ss = source_set_from_names(
        estimate=["Front Radar Calibration", "Rear Radar Calibration"],
        report=["Front Radar", "Rear Radar"],
        ai=[],
    )
    ss.ai_exclusions = [AIExclusion(name="Radar", reason="Generic item")]
    result = reconcile(ss)

    assert [c.name for c in result.calibrations] == ["Front Radar Calibration", "Rear Radar Calibration"]
    assert [c.name for c in result.excluded] == ["Radar"]
    assert result.conflicts == ()
    assert result.missing == ()
    assert result.status == ScrubStatus.ALIGNED


def test_reconcile_ai_exclusion_exact_key_conflict():
    ss = source_set_from_names(
        estimate=["Front Radar Calibration", "Rear Radar Calibration"],
        report=["Front Radar", "Rear Radar"],
        ai=[],
    )
    ss.ai_exclusions = [AIExclusion(name="Front Radar", reason="Not equipped")]
    result = reconcile(ss)

    assert [c.name for c in result.calibrations] == ["Rear Radar Calibration"]
    assert [c.name for c in result.excluded] == ["Front Radar Calibration"]
    assert len(result.conflicts) == 1
    conflict = result.conflicts[0]
    assert conflict.required_by == (SourceTag.ESTIMATE, SourceTag.EXTERNAL_REPORT)
    assert conflict.excluded_by == SourceTag.AI
    assert conflict.reason == "Not equipped"


def test_reconcile_no_duplicate_keys():
    result = reconcile(source_set_from_names(
        estimate=["Front Radar Calibration", "Millimeter Wave Radar Calibration", "Front Camera Calibration"],
        report=["Front Radar", "Front Camera (Static)", "TPMS Reset"],
        ai=["Forward Radar Sensor"],
    ))
    keys = [c.key for c in result.calibrations + result.excluded]
    assert len(keys) == len(set(keys))


def test_reconcile_from_estimate_text():
    """R&R Front Bumper Cover against a two-item report aligns"""
    result = reconcile(collect_sources("R&R Front Bumper Cover", "Front Radar; Front Camera"))
    assert result.status == ScrubStatus.ALIGNED
    assert result.estimate_count == 3
    assert result.report_count == 2
    assert len(result.calibrations) == 2


def test_reconcile_kb_source(subaru_kb):
    result = reconcile(collect_sources(
        "Replace Windshield",
        "Front Camera Calibration (Static); EyeSight Calibration",
        kb=subaru_kb,
    ))
    by_name = {c.name: c for c in result.calibrations}
    eyesight = by_name["EyeSight Calibration"]
    assert eyesight.sources == frozenset({SourceTag.EXTERNAL_REPORT, SourceTag.KNOWLEDGE_BASE})
    assert eyesight.confidence == Confidence.HIGH
    assert result.missing == ("Rain/Light Sensor Calibration",)
    assert result.status == ScrubStatus.NEEDS_REVIEW
    assert result.kb_brand == "Subaru"


# ============================================================
# RUN TESTS
# ============================================================

if __name__ == "__main__":
    pytest.main([__file__, "-v"])
