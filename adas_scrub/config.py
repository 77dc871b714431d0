# adas_scrub/config.py
"""
Options for one scrub run.

Defaults are safe for library use; ``ScrubOptions.from_env()`` lets the
Streamlit app and the batch CLI pick up overrides from the environment.
"""
from __future__ import annotations
import os
from dataclasses import dataclass, field
from typing import List, Optional

from .constants import DEFAULT_EXCLUSIONS


def _env_flag(name: str, default: bool = False) -> bool:
    val = os.environ.get(name)
    if val is None:
        return default
    return val.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    val = os.environ.get(name)
    if not val:
        return default
    try:
        return int(val)
    except ValueError:
        return default


@dataclass
class ScrubOptions:
    """
    Args:
        exclusions: Non-ADAS items used when no knowledge base supplies its own list
        preview_max_items: Discrepancies named in the preview text before "+N"
        full_max_operations: Detected operations listed in the full report
        strict_token_matching: Containment must fall on word boundaries
        verbose: Print progress messages
    """
    exclusions: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUSIONS))
    preview_max_items: int = 2
    full_max_operations: int = 25
    strict_token_matching: bool = True
    verbose: bool = False

    @classmethod
    def from_env(cls, base: Optional["ScrubOptions"] = None) -> "ScrubOptions":
        base = base or cls()
        return cls(
            exclusions=list(base.exclusions),
            preview_max_items=_env_int("SCRUB_PREVIEW_MAX_ITEMS", base.preview_max_items),
            full_max_operations=_env_int("SCRUB_FULL_MAX_OPERATIONS", base.full_max_operations),
            strict_token_matching=_env_flag("SCRUB_STRICT_MATCHING", base.strict_token_matching),
            verbose=_env_flag("SCRUB_VERBOSE", base.verbose),
        )
