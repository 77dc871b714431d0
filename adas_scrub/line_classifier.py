# adas_scrub/line_classifier.py
"""
Repair line classifier.

A line is a repair operation only when it starts with a recognised operation
verb. Verb patterns are tested in order, most specific phrasing first, so
"Remove & Install" is never read as a bare "remove".
"""
from __future__ import annotations
import regex as re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .cleaning import clean_part_text, normalize_whitespace
from .constants import MIN_LINE_LENGTH


# ============================================================================
# LEADING VERB PATTERNS (order matters)
# ============================================================================
VERB_PATTERNS: List[Tuple[str, str]] = [
    (r"(?:remove\s*(?:&|and)\s*install|r\s*[&/]\s*i)", "r&i"),
    (r"(?:remove\s*(?:&|and)\s*replace|r\s*[&/]\s*r)", "r&r"),
    (r"replace", "replace"),
    (r"refinish", "refinish"),
    (r"repair", "repair"),
    (r"remove", "remove"),
    (r"install", "install"),
    (r"overhaul", "overhaul"),
    (r"blend", "blend"),
    (r"aim", "aim"),
    (r"align", "align"),
    (r"calibrate", "calibrate"),
    (r"program", "program"),
]

_VERB_RES = [(re.compile(rf"^{p}\s+", re.I), verb) for p, verb in VERB_PATTERNS]


@dataclass(frozen=True)
class LineParse:
    """Verb + part text read from one estimate line."""
    operation_verb: str
    raw_part_text: str
    line: str


def match_verb(line: str) -> Optional[Tuple[str, str]]:
    """Return (verb, remainder) for the first leading verb pattern that matches."""
    for rx, verb in _VERB_RES:
        m = rx.match(line)
        if m:
            return verb, line[m.end():].strip()
    return None


def classify_line(line) -> Optional[LineParse]:
    """
    Classify one estimate line.

    Examples:
        "R&R Front Bumper Cover"       -> r&r, "Front Bumper Cover"
        "Remove & Install LH Mirror"   -> r&i, "LH Mirror"
        "Front bumper cover"           -> None (no leading verb)

    Returns:
        LineParse or None when the line is not a repair operation
    """
    if not line or not isinstance(line, str):
        return None

    trimmed = normalize_whitespace(line)
    if len(trimmed) < MIN_LINE_LENGTH:
        return None

    hit = match_verb(trimmed)
    if hit is None:
        return None

    verb, remainder = hit
    return LineParse(
        operation_verb=verb,
        raw_part_text=clean_part_text(remainder),
        line=trimmed,
    )
