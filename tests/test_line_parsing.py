# tests/test_line_parsing.py
"""
Unit tests for estimate line handling: cleaning, line classifier, part
normalizer, category mapper and the calibration rule table.

Run:
    pytest tests/test_line_parsing.py -v
"""

import pytest

from adas_scrub.calibration_rules import (
    CATEGORY_TO_CALIBRATIONS,
    calibrations_for_category,
    is_adas_relevant,
)
from adas_scrub.categories import category_for_part, scan_line_categories
from adas_scrub.cleaning import clean_part_text, is_ignored_line, split_lines
from adas_scrub.constants import CategoryTag
from adas_scrub.line_classifier import classify_line
from adas_scrub.parts import detect_side, normalize_part_name


# ============================================================
# TEST: CLEANING
# ============================================================

def test_split_lines():
    """Blank lines dropped, inner whitespace collapsed"""
    assert split_lines("  R&R   Grille \n\n  Replace Hood ") == ["R&R Grille", "Replace Hood"]
    assert split_lines("") == []
    assert split_lines(None) == []


def test_is_ignored_line():
    """Totals, insurance, scans and short lines are never operations"""
    assert is_ignored_line("Pre-scan vehicle") == True
    assert is_ignored_line("Total 1,250.00") == True
    assert is_ignored_line("Insurance: State Farm") == True
    assert is_ignored_line("ab") == True
    assert is_ignored_line(None) == True
    assert is_ignored_line("R&R Front Bumper Cover") == False


def test_is_ignored_line_metadata_labels_only():
    """Metadata words inside a repair line do not hide it"""
    assert is_ignored_line("Insurer: Geico") == True
    assert is_ignored_line("Repair Order 10422") == True
    assert is_ignored_line("Technician: J. Ortiz") == True
    assert is_ignored_line("R&R Front Bumper Cover (insurer approved)") == False
    assert is_ignored_line("Replace windshield per repair order notes") == False
    assert is_ignored_line("R&R LH Side Mirror - technician to verify") == False


def test_clean_part_text():
    assert clean_part_text("3. Front Bumper Cover 412.50") == "Front Bumper Cover"
    assert clean_part_text("Grille - labor") == "Grille"
    assert clean_part_text("  Hood   Panel ") == "Hood Panel"


# ============================================================
# TEST: LINE CLASSIFIER
# ============================================================

def test_classify_line_verbs():
    """Leading verb is recognised, most specific phrasing first"""
    p = classify_line("R&R Front Bumper Cover")
    assert p.operation_verb == "r&r"
    assert p.raw_part_text == "Front Bumper Cover"

    assert classify_line("Remove & Install LH Mirror").operation_verb == "r&i"
    assert classify_line("Remove and Replace Grille").operation_verb == "r&r"
    assert classify_line("Replace Windshield").operation_verb == "replace"
    assert classify_line("Aim Headlamps").operation_verb == "aim"


def test_classify_line_rejects():
    """No leading verb, too short or not text -> None"""
    assert classify_line("Front bumper cover") is None
    assert classify_line("Replacement parts ordered") is None
    assert classify_line("R&R") is None
    assert classify_line("ab") is None
    assert classify_line(None) is None
    assert classify_line(42) is None


# ============================================================
# TEST: PART NORMALIZER
# ============================================================

def test_normalize_part_name():
    assert normalize_part_name("Front Bumper Cover") == "front_bumper"
    assert normalize_part_name("Rear Bumper Reinforcement") == "rear_bumper_reinforcement"
    assert normalize_part_name("LH Side Mirror Assy") == "mirror_left"
    assert normalize_part_name("Front Radar Sensor") == "front_radar"
    assert normalize_part_name("Windshield") == "windshield"
    assert normalize_part_name("RH Fender Liner") == "fender_liner_right"


def test_normalize_part_name_fallback():
    """Unknown parts fall back to a cleaned identifier"""
    assert normalize_part_name("Trim Panel") == "trim_panel"
    assert normalize_part_name("") == "unknown"
    assert normalize_part_name(None) == "unknown"


def test_detect_side():
    assert detect_side("lh mirror") == "_left"
    assert detect_side("passenger door") == "_right"
    assert detect_side("hood") == ""


# ============================================================
# TEST: CATEGORY MAPPER
# ============================================================

def test_category_for_part():
    assert category_for_part("front_bumper") == CategoryTag.FRONT_BUMPER
    assert category_for_part("rear_bumper_reinforcement") == CategoryTag.REAR_BUMPER
    assert category_for_part("mirror_left") == CategoryTag.SIDE_MIRROR
    assert category_for_part("fender_liner_right") == CategoryTag.FENDER
    assert category_for_part("trim_panel") == CategoryTag.UNKNOWN
    assert category_for_part("") == CategoryTag.UNKNOWN


def test_scan_line_categories():
    """Direct terminology hits, independent of the line classifier"""
    cats = [c for c, _ in scan_line_categories("Millimeter Wave Radar Calibration")]
    assert CategoryTag.FRONT_RADAR in cats

    cats = [c for c, _ in scan_line_categories("Vehicle has blind spot monitor")]
    assert cats == [CategoryTag.BLIND_SPOT]

    assert scan_line_categories("Adjust sash trim") == []
    assert scan_line_categories(None) == []


def test_scan_line_categories_one_entry_per_category():
    hits = scan_line_categories("Front radar sensor and radar unit")
    cats = [c for c, _ in hits]
    assert cats.count(CategoryTag.FRONT_RADAR) == 1


# ============================================================
# TEST: CALIBRATION RULES
# ============================================================

def test_calibration_rules_front_bumper():
    assert calibrations_for_category(CategoryTag.FRONT_BUMPER) == (
        "Front Radar Calibration",
        "Front Camera Calibration",
        "Millimeter Wave Radar Calibration",
    )


def test_calibration_rules_cover_every_category():
    for cat in CategoryTag:
        assert cat in CATEGORY_TO_CALIBRATIONS


def test_is_adas_relevant():
    assert is_adas_relevant(CategoryTag.WINDSHIELD) == True
    assert is_adas_relevant(CategoryTag.FENDER) == False
    assert is_adas_relevant(CategoryTag.UNKNOWN) == False


# ============================================================
# RUN TESTS
# ============================================================

if __name__ == "__main__":
    pytest.main([__file__, "-v"])
