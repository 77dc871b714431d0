# adas_scrub/matching.py
"""
Calibration name normalization and cross-source matching.

Sources name the same calibration differently:
    "Front Radar Calibration" / "Millimeter Wave Radar" / "Forward Radar Sensor"
all normalize to "front radar". Keys are for comparison only, never displayed.
"""
from __future__ import annotations
import regex as re
from typing import Iterable, List, Optional, Sequence

# Synonyms applied before qualifier stripping. A match replaces the whole key.
_WHOLE_KEY_SYNONYMS = [
    (re.compile(r"millimeter\s*wave|\bmm\s*wave"), "front radar"),
]
_WORD_SYNONYMS = [
    (re.compile(r"\bforward\b"), "front"),
    (re.compile(r"\bbsm\b"), "blind spot monitor"),
    (re.compile(r"\bsas\b"), "steering angle sensor"),
]

_PAREN_RE = re.compile(r"\([^)]*\)")
_CALIBRATION_RE = re.compile(r"\bcalibrations?\b")
_TRAILING_NOUN_RE = re.compile(r"\s+(?:sensor|camera)$")
_WS_RE = re.compile(r"\s+")
# Stripping the noun must not leave only a position or side word
_BARE_QUALIFIERS = {"front", "rear", "left", "right", "side"}
_TOKEN_RE = re.compile(r"[a-z0-9]+")


def _normalize_once(s: str) -> str:
    s = s.lower()
    for rx, repl in _WHOLE_KEY_SYNONYMS:
        if rx.search(s):
            return repl
    for rx, repl in _WORD_SYNONYMS:
        s = rx.sub(repl, s)
    s = _PAREN_RE.sub(" ", s)
    s = _CALIBRATION_RE.sub(" ", s)
    s = _WS_RE.sub(" ", s).strip()
    # "radar sensor" -> "radar", but "front camera" keeps its noun
    stripped = _TRAILING_NOUN_RE.sub("", s)
    if stripped not in _BARE_QUALIFIERS:
        s = stripped
    return s


def normalize_calibration_name(name: Optional[str]) -> str:
    """
    Examples:
        "Front Camera Calibration (Static)" -> "front camera"
        "Millimeter Wave Radar Sensor"      -> "front radar"
        "BSM Left"                          -> "blind spot monitor left"
        "Rain Sensor"                       -> "rain"
        ""                                  -> ""
    """
    if not name or not isinstance(name, str):
        return ""
    s = name
    for _ in range(8):
        nxt = _normalize_once(s)
        if nxt == s:
            break
        s = nxt
    return s


def key_tokens(key: str) -> List[str]:
    return _TOKEN_RE.findall(key or "")


def _contains_tokens(haystack: Sequence[str], needle: Sequence[str]) -> bool:
    n = len(needle)
    if n == 0 or n > len(haystack):
        return False
    return any(list(haystack[i:i + n]) == list(needle) for i in range(len(haystack) - n + 1))


def keys_match(a: str, b: str, strict: bool = True) -> bool:
    """
    Containment match on normalized keys, in either direction.

    strict=True only accepts containment on whole tokens ("radar" matches
    "front radar", "ada" does not match "adas").
    """
    if not a or not b:
        return False
    if a == b:
        return True
    if not strict:
        return a in b or b in a
    ta, tb = key_tokens(a), key_tokens(b)
    return _contains_tokens(ta, tb) or _contains_tokens(tb, ta)


def calibrations_match(a: Optional[str], b: Optional[str], strict: bool = True) -> bool:
    return keys_match(normalize_calibration_name(a), normalize_calibration_name(b), strict)


def find_match(name: str, candidates: Iterable[str], strict: bool = True) -> Optional[str]:
    """First candidate matching ``name``, or None."""
    key = normalize_calibration_name(name)
    for cand in candidates:
        if keys_match(key, normalize_calibration_name(cand), strict):
            return cand
    return None
