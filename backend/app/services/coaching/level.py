"""
Profile / Level Classifier

Derives a coarse skill tier and depth bucket from profile fields. Both are
total functions: malformed input falls back to "beginner" / "10m".
"""

import math
import re
from typing import Any, Literal, Mapping

UserLevel = Literal["expert", "beginner"]

EXPERT_PB_THRESHOLD = 80.0

PB_KEYS = ("pb", "personalBestDepth", "personal_best")
INSTRUCTOR_KEYS = ("isInstructor", "instructor", "is_instructor")

_NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")


def parse_depth(value: Any) -> float | None:
    """Parse a depth like 85, "85", "85m" or "85.5 meters"; None if unusable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        depth = float(value)
    elif isinstance(value, str):
        match = _NUMBER_PATTERN.search(value)
        if not match:
            return None
        depth = float(match.group(0))
    else:
        return None
    return None if math.isnan(depth) else depth


def _parse_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "y")
    return bool(value)


def _first(profile: Mapping, keys: tuple[str, ...]) -> Any:
    for key in keys:
        if profile.get(key) is not None:
            return profile[key]
    return None


def classify_level(profile: Mapping | None) -> UserLevel:
    """Return "expert" for instructors or a personal best deeper than 80m."""
    try:
        if not profile:
            return "beginner"
        if _parse_flag(_first(profile, INSTRUCTOR_KEYS)):
            return "expert"
        pb = parse_depth(_first(profile, PB_KEYS))
        return "expert" if pb is not None and pb > EXPERT_PB_THRESHOLD else "beginner"
    except (AttributeError, TypeError, ValueError):
        return "beginner"


def depth_range(depth: Any) -> str:
    """Round a depth down to its 10m bucket, clamped to 10m..100m."""
    value = parse_depth(depth)
    if value is None or value <= 0:
        return "10m"
    if value > 100:
        return "100m"
    bucket = int(value // 10) * 10
    return f"{max(bucket, 10)}m"


def profile_depth(profile: Mapping | None) -> Any:
    """Depth used for the depth bucket: personal best, then current depth, then 10m."""
    if not profile:
        return 10
    return _first(profile, PB_KEYS) or profile.get("currentDepth") or 10


def merge_profile(stored: Mapping | None, supplied: Mapping | None) -> dict:
    """Request-supplied profile fields override stored ones for this turn only."""
    merged = dict(stored or {})
    merged.update(supplied or {})
    return merged
