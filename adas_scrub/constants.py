# adas_scrub/constants.py
from __future__ import annotations
from enum import Enum
from typing import Dict, List, Tuple


class CategoryTag(str, Enum):
    FRONT_BUMPER = "front_bumper"
    REAR_BUMPER = "rear_bumper"
    WINDSHIELD = "windshield"
    FRONT_CAMERA = "front_camera"
    REAR_CAMERA = "rear_camera"
    FRONT_RADAR = "front_radar"
    REAR_RADAR = "rear_radar"
    SIDE_MIRROR = "side_mirror"
    BLIND_SPOT = "blind_spot"
    QUARTER_PANEL = "quarter_panel"
    TAIL_LAMP = "tail_lamp"
    GRILLE = "grille"
    HOOD = "hood"
    FENDER = "fender"
    DOOR = "door"
    ROOF = "roof"
    LIFTGATE = "liftgate"
    WIRING = "wiring"
    SUSPENSION = "suspension"
    MODULE_ABS = "module_abs"
    MODULE_BCM = "module_bcm"
    MODULE_ECM = "module_ecm"
    MODULE_SAS = "module_sas"
    MODULE_EPS = "module_eps"
    MODULE_HVAC = "module_hvac"
    MODULE_IPMA = "module_ipma"
    MODULE_ADAS = "module_adas"
    PROGRAMMING = "programming"
    CALIBRATION = "calibration"
    ALIGNMENT = "alignment"
    HEADLAMP = "headlamp"
    LANE_ASSIST = "lane_assist"
    UNKNOWN = "unknown"


class SourceTag(str, Enum):
    ESTIMATE = "Estimate"
    EXTERNAL_REPORT = "ExternalReport"
    AI = "AI"
    KNOWLEDGE_BASE = "KnowledgeBase"


class Confidence(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        return CONFIDENCE_RANK[self]


class ScrubStatus(str, Enum):
    ALIGNED = "ALIGNED"
    NEEDS_REVIEW = "NEEDS_REVIEW"
    NO_CALIBRATION_NEEDED = "NO_CALIBRATION_NEEDED"
    ERROR = "ERROR"


# Display/priority order of sources. The first source to name a calibration
# provides its display name.
SOURCE_ORDER: Tuple[SourceTag, ...] = (
    SourceTag.ESTIMATE,
    SourceTag.EXTERNAL_REPORT,
    SourceTag.AI,
    SourceTag.KNOWLEDGE_BASE,
)

SOURCE_LABELS: Dict[SourceTag, str] = {
    SourceTag.ESTIMATE: "Estimate",
    SourceTag.EXTERNAL_REPORT: "External Report",
    SourceTag.AI: "AI Analysis",
    SourceTag.KNOWLEDGE_BASE: "Knowledge Base",
}

CONFIDENCE_RANK: Dict[Confidence, int] = {
    Confidence.LOW: 0,
    Confidence.MEDIUM: 1,
    Confidence.HIGH: 2,
}

# Distinct agreeing sources -> confidence tier. Counts above the largest key
# use the largest key's tier.
CONFIDENCE_BY_SOURCE_COUNT: Dict[int, Confidence] = {
    0: Confidence.LOW,
    1: Confidence.MEDIUM,
    2: Confidence.HIGH,
    3: Confidence.HIGH,
}

OPERATION_VERBS: Tuple[str, ...] = (
    "r&i", "r&r", "replace", "refinish", "repair", "remove", "install",
    "overhaul", "blend", "aim", "align", "calibrate", "program",
)
DETECTED_VERB = "detected"

# Items that are never ADAS calibrations, whatever a source claims.
DEFAULT_EXCLUSIONS: List[str] = [
    "SRS Unit",
    "Seat Weight Sensor",
    "TPMS",
    "Tire Pressure Monitoring",
    "Battery Registration",
    "Occupant Classification",
]

MIN_LINE_LENGTH = 3
LINE_CONTEXT_CHARS = 100
