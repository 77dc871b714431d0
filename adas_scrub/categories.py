# adas_scrub/categories.py
"""
Category mapping. Two independent paths:

(a) canonical part id -> CategoryTag via ordered part-name fragments
(b) direct scan of a raw line against ADAS terminology, whether or not the
    line parsed as a repair operation (brand system names, bare mentions
    of "blind spot", "millimeter wave radar", module acronyms)
"""
from __future__ import annotations
import regex as re
from typing import List, Tuple

from .constants import CategoryTag as C


# ============================================================================
# (a) PART FRAGMENT -> CATEGORY (substring, first match wins)
# ============================================================================
PART_CATEGORY_RULES: List[Tuple[Tuple[str, ...], C]] = [
    (("front_bumper",), C.FRONT_BUMPER),
    (("rear_bumper",), C.REAR_BUMPER),
    (("windshield",), C.WINDSHIELD),
    (("front_camera",), C.FRONT_CAMERA),
    (("rear_camera",), C.REAR_CAMERA),
    (("front_radar",), C.FRONT_RADAR),
    (("rear_radar", "parking"), C.REAR_RADAR),
    (("blind_spot", "side_radar"), C.BLIND_SPOT),
    (("mirror",), C.SIDE_MIRROR),
    (("grille",), C.GRILLE),
    (("hood",), C.HOOD),
    (("quarter_panel",), C.QUARTER_PANEL),
    (("tail_lamp", "rear_lamp"), C.TAIL_LAMP),
    (("headlamp",), C.HEADLAMP),
    (("fender",), C.FENDER),
    (("door",), C.DOOR),
    (("roof",), C.ROOF),
    (("trunk", "liftgate"), C.LIFTGATE),
    (("strut", "control_arm", "suspension"), C.SUSPENSION),
    (("alignment", "wheel_align"), C.ALIGNMENT),
    (("abs_module",), C.MODULE_ABS),
    (("bcm",), C.MODULE_BCM),
    (("ecm", "pcm"), C.MODULE_ECM),
    (("steering_angle",), C.MODULE_SAS),
    (("eps_module",), C.MODULE_EPS),
    (("wiring", "harness"), C.WIRING),
]


def category_for_part(canonical_part: str) -> C:
    if not canonical_part:
        return C.UNKNOWN
    lower = canonical_part.lower()
    for fragments, category in PART_CATEGORY_RULES:
        if any(f in lower for f in fragments):
            return category
    return C.UNKNOWN


# ============================================================================
# (b) DIRECT LINE PATTERNS
# ============================================================================
LINE_PATTERNS: List[Tuple[str, C]] = [
    # Front bumper
    (r"r\s*[&/]\s*[ir]\s+(?:front\s+)?bumper\s*(?:cover|fascia)?", C.FRONT_BUMPER),
    (r"(?:remove|replace|install)\s+(?:front\s+)?bumper", C.FRONT_BUMPER),
    (r"front\s+bumper\s+(?:cover|fascia|assembly)", C.FRONT_BUMPER),

    # Rear bumper
    (r"r\s*[&/]\s*[ir]\s+rear\s+bumper", C.REAR_BUMPER),
    (r"(?:remove|replace|install)\s+rear\s+bumper", C.REAR_BUMPER),
    (r"rear\s+bumper\s+(?:cover|fascia|assembly)", C.REAR_BUMPER),

    # Windshield
    (r"windshield\s+(?:replace|r\s*[&/]\s*r|install|remove)", C.WINDSHIELD),
    (r"(?:replace|r\s*[&/]\s*r|install|remove)\s+windshield", C.WINDSHIELD),
    (r"front\s+glass\s+(?:replace|install)", C.WINDSHIELD),
    (r"laminated\s+glass", C.WINDSHIELD),

    # Front camera
    (r"(?:front|forward|fwd)\s+camera", C.FRONT_CAMERA),
    (r"camera\s+(?:bracket|mount|assembly)", C.FRONT_CAMERA),
    (r"lane\s+(?:departure|keeping)\s+camera", C.FRONT_CAMERA),
    (r"eyesight\s+camera", C.FRONT_CAMERA),
    (r"adas\s+camera", C.FRONT_CAMERA),

    # Rear camera
    (r"(?:rear\s*view|backup|reverse)\s+camera", C.REAR_CAMERA),

    # Front radar
    (r"(?:front|forward|fwd)\s+radar", C.FRONT_RADAR),
    (r"radar\s+(?:sensor|unit|module|bracket)", C.FRONT_RADAR),
    (r"\bacc\s+(?:radar|sensor)", C.FRONT_RADAR),
    (r"adaptive\s+cruise\s+(?:control|radar)", C.FRONT_RADAR),
    (r"distance\s+sensor", C.FRONT_RADAR),
    (r"millimeter\s*wave\s*radar", C.FRONT_RADAR),
    (r"\bmm\s*wave\s*radar", C.FRONT_RADAR),
    (r"pre[\s-]?collision\s+(?:sensor|radar|system)", C.FRONT_RADAR),
    (r"toyota\s+safety\s+sense", C.FRONT_RADAR),
    (r"\btss\s+(?:sensor|radar|system)", C.FRONT_RADAR),

    # Rear radar / parking sensors
    (r"rear\s+(?:radar|sensor)", C.REAR_RADAR),
    (r"parking\s+(?:sensor|aid|assist)", C.REAR_RADAR),
    (r"ultrasonic\s+sensor", C.REAR_RADAR),
    (r"backup\s+sensor", C.REAR_RADAR),

    # Side mirror
    (r"(?:side|door)\s+mirror", C.SIDE_MIRROR),
    (r"mirror\s+(?:assembly|housing|glass)", C.SIDE_MIRROR),
    (r"\b(?:left|right|lh|rh)\s+mirror", C.SIDE_MIRROR),

    # Blind spot
    (r"blind\s*spot", C.BLIND_SPOT),
    (r"\bbsm\s+(?:sensor|module)", C.BLIND_SPOT),
    (r"lane\s+change\s+(?:assist|warning)", C.BLIND_SPOT),
    (r"side\s+radar", C.BLIND_SPOT),

    # Quarter panel
    (r"quarter\s+panel", C.QUARTER_PANEL),
    (r"rear\s+(?:fender|quarter)", C.QUARTER_PANEL),

    # Tail lamp
    (r"tail\s*(?:lamp|light)", C.TAIL_LAMP),
    (r"rear\s+(?:lamp|light)", C.TAIL_LAMP),

    # Grille
    (r"grille", C.GRILLE),

    # Hood
    (r"hood\s+(?:assembly|panel)", C.HOOD),
    (r"(?:replace|r\s*[&/]\s*r)\s+hood", C.HOOD),

    # Wiring
    (r"wiring\s+(?:harness|repair)", C.WIRING),
    (r"electrical\s+(?:harness|connector)", C.WIRING),

    # Suspension / alignment
    (r"(?:suspension|strut|shock)\s+(?:replace|r\s*[&/]\s*r)", C.SUSPENSION),
    (r"wheel\s+alignment", C.ALIGNMENT),
    (r"4[\s-]?wheel\s+align", C.ALIGNMENT),

    # Modules
    (r"\babs\s+(?:module|control|unit)", C.MODULE_ABS),
    (r"(?:replace|r\s*[&/]\s*r)\s+abs\b", C.MODULE_ABS),
    (r"\bbcm\b|body\s+control\s+module", C.MODULE_BCM),
    (r"\becm\b|engine\s+control\s+module", C.MODULE_ECM),
    (r"\bpcm\b|powertrain\s+control", C.MODULE_ECM),
    (r"\bsas\b|steering\s+angle\s+sensor", C.MODULE_SAS),
    (r"\beps\b|electric\s+power\s+steering", C.MODULE_EPS),
    (r"hvac\s+(?:module|control)", C.MODULE_HVAC),
    (r"\bipma\b|image\s+processing", C.MODULE_IPMA),
    (r"adas\s+(?:module|control|ecu)", C.MODULE_ADAS),

    # Programming
    (r"(?:module|ecu)\s+programming", C.PROGRAMMING),
    (r"flash\s+(?:program|reprogram)", C.PROGRAMMING),
    (r"software\s+update", C.PROGRAMMING),

    # Calibration mentions
    (r"(?:camera|radar|sensor)\s+calibration", C.CALIBRATION),
    (r"adas\s+calibration", C.CALIBRATION),
    (r"(?:static|dynamic)\s+calibration", C.CALIBRATION),

    # Headlamp / AFS
    (r"headl(?:amp|ight)\s+(?:assembly|aim|replace)", C.HEADLAMP),
    (r"adaptive\s+(?:headl|front\s+light)", C.HEADLAMP),
    (r"\bafs\s+(?:module|sensor|aim)", C.HEADLAMP),

    # Lane assist
    (r"lane\s+(?:keep|departure|assist)", C.LANE_ASSIST),
    (r"\b(?:lkas|ldw)\b", C.LANE_ASSIST),
]

_LINE_RES: List[Tuple[re.Pattern, C]] = [
    (re.compile(p, re.I), cat) for p, cat in LINE_PATTERNS
]


def scan_line_categories(line: str) -> List[Tuple[C, str]]:
    """
    All categories whose direct patterns hit ``line``.

    Returns:
        [(category, matched_text)] with one entry per category, in table order
    """
    if not line or not isinstance(line, str):
        return []
    hits: List[Tuple[C, str]] = []
    seen = set()
    for rx, cat in _LINE_RES:
        if cat in seen:
            continue
        m = rx.search(line)
        if m:
            seen.add(cat)
            hits.append((cat, m.group(0).strip()))
    return hits
