# adas_scrub/parts.py
"""
Part name normalizer: raw estimate part text -> canonical part id.

    "Front Bumper Cover"      -> front_bumper
    "LH Side Mirror Assy"     -> mirror_left
    "Front Radar Sensor"      -> front_radar        (position already in base)
    "Rear Bumper Reinforcement" -> rear_bumper_reinforcement

The rule table is ordered: multi-word patterns come before the generic word
they contain ("bumper reinforcement" before "bumper").
"""
from __future__ import annotations
import regex as re
from typing import List, Optional, Tuple

UNKNOWN_PART = "unknown"

_SIDE_LEFT = re.compile(r"\b(?:lh|left|l/h|driver)\b", re.I)
_SIDE_RIGHT = re.compile(r"\b(?:rh|right|r/h|passenger)\b", re.I)
_POS_FRONT = re.compile(r"\bfront\b", re.I)
_POS_REAR = re.compile(r"\brear\b", re.I)

# ============================================================================
# PART RULES: (patterns, base id), first match wins
# ============================================================================
PART_RULES: List[Tuple[List[str], str]] = [
    # Bumper components
    ([r"bumper\s*cover", r"bumper\s*fascia", r"fascia"], "bumper"),
    ([r"bumper\s*absorber", r"absorber"], "bumper_absorber"),
    ([r"bumper\s*reinforcement", r"rebar", r"reinforcement"], "bumper_reinforcement"),
    ([r"bumper"], "bumper"),

    # Lighting
    ([r"headl(?:amp|ight)"], "headlamp"),
    ([r"tail\s*l(?:amp|ight)", r"rear\s*l(?:amp|ight)"], "tail_lamp"),
    ([r"fog\s*l(?:amp|ight)"], "fog_lamp"),
    ([r"turn\s*signal", r"marker\s*l(?:amp|ight)"], "signal_lamp"),

    # Glass
    ([r"windshield", r"front\s*glass", r"laminated\s*glass"], "windshield"),
    ([r"back\s*glass", r"rear\s*window", r"backlight"], "rear_glass"),
    ([r"door\s*glass", r"side\s*glass", r"quarter\s*glass"], "door_glass"),

    # Mirrors
    ([r"(?:side|door|exterior)\s*mirror", r"mirror\s*(?:assy|assembly)"], "mirror"),
    ([r"mirror\s*glass"], "mirror_glass"),
    ([r"mirror\s*(?:cover|cap)"], "mirror_cover"),

    # Body panels
    ([r"fender\s*liner", r"inner\s*fender", r"splash\s*(?:shield|guard)"], "fender_liner"),
    ([r"fender"], "fender"),
    ([r"quarter\s*panel", r"rear\s*quarter"], "quarter_panel"),
    ([r"rocker"], "rocker"),
    ([r"door"], "door"),
    ([r"hood"], "hood"),
    ([r"trunk", r"deck\s*lid"], "trunk"),
    ([r"liftgate", r"tailgate", r"hatch"], "liftgate"),
    ([r"roof"], "roof"),

    # Grille and front end
    ([r"grille?"], "grille"),
    ([r"header\s*panel", r"radiator\s*support"], "header_panel"),
    ([r"valance"], "valance"),

    # ADAS components
    ([r"(?:front|forward)\s*(?:radar|sensor)", r"\bacc\s*sensor", r"cruise\s*sensor",
      r"millimeter\s*wave", r"\bmm\s*wave"], "front_radar"),
    ([r"rear\s*(?:radar|sensor)", r"parking\s*sensor", r"ultrasonic"], "rear_radar"),
    ([r"(?:front|forward)\s*camera", r"windshield\s*camera",
      r"lane\s*(?:departure|keeping)\s*camera"], "front_camera"),
    ([r"(?:rear|backup)\s*camera"], "rear_camera"),
    ([r"blind\s*spot", r"\bbsm\s*sensor", r"side\s*radar"], "blind_spot_sensor"),
    ([r"surround\s*view", r"360\s*camera"], "surround_camera"),

    # Suspension / steering
    ([r"strut", r"shock\s*absorber"], "strut"),
    ([r"control\s*arm", r"\ba[\s-]?arm\b"], "control_arm"),
    ([r"tie\s*rod"], "tie_rod"),
    ([r"wheel\s*align"], "wheel_alignment"),
    ([r"knuckle", r"spindle"], "knuckle"),

    # Modules / electrical
    ([r"\babs\s*(?:module|control|unit)"], "abs_module"),
    ([r"airbag\s*(?:module|sensor)", r"\bsrs\s*(?:module|unit)"], "airbag_module"),
    ([r"\bbcm\b", r"body\s*control"], "bcm"),
    ([r"\b[ep]cm\b", r"engine\s*control", r"powertrain"], "ecm"),
    ([r"steering\s*angle", r"\bsas\b"], "steering_angle_sensor"),
    ([r"\beps\b", r"power\s*steering\s*(?:module|motor)"], "eps_module"),

    # Wiring
    ([r"wiring\s*(?:harness|assy)", r"wire\s*harness"], "wiring_harness"),
    ([r"connector", r"pigtail"], "connector"),
]

_PART_RES: List[Tuple[re.Pattern, str]] = [
    (re.compile("|".join(f"(?:{p})" for p in patterns), re.I), base)
    for patterns, base in PART_RULES
]

# Fallback cleanup
_ASSY_RE = re.compile(r"\b(?:assy|assembly|asm)\b", re.I)
_SIDE_WORDS_RE = re.compile(r"\b(?:lh|rh|left|right|l/h|r/h|driver|passenger)\b", re.I)
_POS_WORDS_RE = re.compile(r"\b(?:front|rear|frt|rr)\b", re.I)
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def detect_side(text: str) -> str:
    if _SIDE_LEFT.search(text):
        return "_left"
    if _SIDE_RIGHT.search(text):
        return "_right"
    return ""


def detect_position(text: str) -> str:
    if _POS_FRONT.search(text):
        return "front_"
    if _POS_REAR.search(text):
        return "rear_"
    return ""


def match_part_base(text: str) -> Optional[str]:
    """First base id in PART_RULES whose patterns occur in ``text``."""
    for rx, base in _PART_RES:
        if rx.search(text):
            return base
    return None


def _fallback_part(lower: str) -> str:
    s = _ASSY_RE.sub(" ", lower)
    s = _SIDE_WORDS_RE.sub(" ", s)
    s = _POS_WORDS_RE.sub(" ", s)
    s = _NON_ALNUM_RE.sub("_", s).strip("_")
    return s or UNKNOWN_PART


def normalize_part_name(raw_part_text: Optional[str]) -> str:
    if not raw_part_text or not isinstance(raw_part_text, str):
        return UNKNOWN_PART

    lower = raw_part_text.lower()
    side = detect_side(lower)
    position = detect_position(lower)

    base = match_part_base(lower)
    if base is None:
        return _fallback_part(lower)

    # Base ids like front_radar already carry their position.
    if base.startswith(("front_", "rear_")):
        return base + side
    return position + base + side
