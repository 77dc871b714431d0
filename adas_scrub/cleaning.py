# adas_scrub/cleaning.py
"""
Estimate text cleaning:
1. Line splitting with whitespace normalization
2. Administrative/boilerplate line detection (totals, insurance, notes, scans)
3. Part-text cleanup (line numbers, prices, labor/parts suffixes)
"""
from __future__ import annotations
import regex as re
from typing import List, Optional

from .constants import MIN_LINE_LENGTH

# ============================================================================
# IGNORED LINES (never repair operations)
# ============================================================================
_IGNORE_PATTERNS = [
    # Diagnostic/scan lines
    r"(?:pre|post)[\s-]?scan",
    r"diagnostic\s*(?:scan|check|test)",
    r"scan\s*(?:tool|system)",
    r"dtc\s*(?:check|clear|read)",
    r"health\s*check",

    # Labor-only lines
    r"labor\s*(?:only|charge)",
    r"misc(?:ellaneous)?\s*(?:labor|charge)",

    # Notes/disclaimers
    r"^note[:\s]",
    r"^disclaimer",
    r"^caution",
    r"^warning",
    r"^customer\s*(?:states|says)",

    # Estimate metadata (line labels only)
    r"^estimate\s*(?:date|total|subtotal)",
    r"^repair\s*order",
    r"^claim\s*(?:number|#)",
    r"^insur(?:ance|er)\b",
    r"^deductible",

    # Shop info
    r"^body\s*shop",
    r"^shop\s*(?:name|address)",
    r"^technician",

    # Totals
    r"^total",
    r"^subtotal",
    r"^parts\s*total",
    r"^labor\s*total",
]

_ignore_re = re.compile("|".join(f"(?:{p})" for p in _IGNORE_PATTERNS), re.I)

# ============================================================================
# PART TEXT NOISE
# ============================================================================
_ws_re = re.compile(r"\s+")
_leading_num_re = re.compile(r"^\d+\.?\s*")
_trailing_price_re = re.compile(r"\s*\d+\.\d{2}\s*$")
_trailing_labor_re = re.compile(r"\s*-?\s*labor\s*$", re.I)
_trailing_parts_re = re.compile(r"\s*-?\s*parts?\s*$", re.I)


def normalize_whitespace(s: Optional[str]) -> str:
    if not s:
        return ""
    return _ws_re.sub(" ", str(s)).strip()


def split_lines(text: Optional[str]) -> List[str]:
    """Split a document into trimmed, non-empty lines."""
    if not text or not isinstance(text, str):
        return []
    out = []
    for raw in text.splitlines():
        line = normalize_whitespace(raw)
        if line:
            out.append(line)
    return out


def is_ignored_line(line: Optional[str]) -> bool:
    """
    True for lines that can never describe a repair operation:
    too short, estimate totals, insurance/claim metadata, notes, scan lines.
    """
    if not line or len(line.strip()) < MIN_LINE_LENGTH:
        return True
    return bool(_ignore_re.search(line.strip()))


def clean_part_text(s: Optional[str]) -> str:
    """
    Strip estimate-line noise around a part description:
    - "3. Front Bumper Cover 412.50" -> "Front Bumper Cover"
    - "Grille - labor" -> "Grille"
    """
    s = normalize_whitespace(s)
    s = _leading_num_re.sub("", s)
    s = _trailing_price_re.sub("", s)
    s = _trailing_labor_re.sub("", s)
    s = _trailing_parts_re.sub("", s)
    return s.strip()


__all__ = [
    "normalize_whitespace",
    "split_lines",
    "is_ignored_line",
    "clean_part_text",
]
