# adas_scrub/calibration_rules.py
# Which repair category triggers which calibration. One row per category;
# edit rows here, never add branching.
# "Millimeter Wave Radar" is Toyota's name for the front radar.
from __future__ import annotations
from typing import Dict, Tuple

from .constants import CategoryTag as C

CATEGORY_TO_CALIBRATIONS: Dict[C, Tuple[str, ...]] = {
    C.FRONT_BUMPER: ("Front Radar Calibration", "Front Camera Calibration", "Millimeter Wave Radar Calibration"),
    C.REAR_BUMPER: ("Rear Radar Calibration", "Parking Sensor Calibration"),
    C.WINDSHIELD: ("Front Camera Calibration (Static)", "Rain/Light Sensor Calibration"),
    C.FRONT_CAMERA: ("Front Camera Calibration (Static)",),
    C.REAR_CAMERA: ("Rear Camera Calibration",),
    C.FRONT_RADAR: ("Front Radar Calibration", "Millimeter Wave Radar Calibration"),
    C.REAR_RADAR: ("Rear Radar Calibration", "Parking Sensor Calibration"),
    C.SIDE_MIRROR: ("Blind Spot Monitor Calibration",),
    C.BLIND_SPOT: ("Blind Spot Monitor Calibration",),
    C.QUARTER_PANEL: ("Blind Spot Monitor Calibration", "Rear Radar Calibration"),
    C.TAIL_LAMP: ("Blind Spot Monitor Calibration",),
    C.GRILLE: ("Front Radar Calibration", "Millimeter Wave Radar Calibration"),
    C.HOOD: ("Front Camera Calibration",),
    C.FENDER: (),
    C.DOOR: (),
    C.ROOF: (),
    C.LIFTGATE: (),
    C.WIRING: ("ADAS System Check",),
    C.SUSPENSION: ("Wheel Alignment", "ADAS Calibration Check"),
    C.ALIGNMENT: ("ADAS Calibration Check",),
    C.MODULE_ABS: ("ABS Module Initialization", "Steering Angle Sensor Reset"),
    C.MODULE_BCM: ("BCM Programming", "ADAS System Reset"),
    C.MODULE_ECM: ("ECM Programming",),
    C.MODULE_SAS: ("Steering Angle Sensor Calibration",),
    C.MODULE_EPS: ("EPS Calibration", "Steering Angle Sensor Reset"),
    C.MODULE_HVAC: ("Climate Control Reset",),
    C.MODULE_IPMA: ("Front Camera Calibration", "IPMA Module Setup"),
    C.MODULE_ADAS: ("ADAS Module Programming", "Full ADAS Calibration"),
    C.PROGRAMMING: ("Module Programming",),
    C.CALIBRATION: ("ADAS Calibration",),
    C.HEADLAMP: ("Headlamp Aim", "AFS Calibration"),
    C.LANE_ASSIST: ("Lane Departure Warning Calibration", "Front Camera Calibration"),
    C.UNKNOWN: (),
}


def calibrations_for_category(category: C) -> Tuple[str, ...]:
    return CATEGORY_TO_CALIBRATIONS.get(category, ())


def is_adas_relevant(category: C) -> bool:
    return bool(calibrations_for_category(category))
