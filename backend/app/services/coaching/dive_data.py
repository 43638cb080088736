"""
Dive Data Safety Check

Pulls dive figures out of a free-text chat message and rejects unrealistic
data before it reaches the coach, so the model never coaches a progression
built on impossible numbers.
"""

import re

from pydantic import BaseModel, Field

MAX_DEPTH_M = 300
MIN_DIVE_SECONDS = 30
MAX_DIVE_SECONDS = 15 * 60
MAX_OVERSHOOT_M = 10

VALID_DISCIPLINES = ("CWT", "CNF", "FIM", "STA", "DYN", "DYNB", "VWT", "NLT")

# Longer names first so "dynb" wins over "dyn"
DISCIPLINE_ALIASES = [
    ("constant weight", "CWT"),
    ("free immersion", "FIM"),
    ("static", "STA"),
    ("dynb", "DYNB"),
    ("cwt", "CWT"),
    ("cnf", "CNF"),
    ("fim", "FIM"),
    ("sta", "STA"),
    ("dyn", "DYN"),
    ("vwt", "VWT"),
    ("nlt", "NLT"),
]

DEPTH_PATTERN = re.compile(r"\b(\d+(?:\.\d+)?)\s*(?:m|meters?|metres?)\b")
TIME_PATTERN = re.compile(
    r"\b(\d+):([0-5]\d)\b|\b(\d+)\s*(min|mins|minutes?|sec|secs|seconds?)\b"
)

ISSUE_KEYWORDS = [
    (("squeeze",), "squeeze"),
    (("equalization", "equalizing"), "equalization"),
    (("narcosis",), "narcosis"),
    (("blackout", "lmc"), "blackout_risk"),
    (("turn", "bottom"), "turn_technique"),
]


class DiveData(BaseModel):
    discipline: str | None = None
    depth: float | None = None
    target_depth: float | None = None
    reached_depth: float | None = None
    total_time_seconds: int | None = None
    issues: list[str] = Field(default_factory=list)


def _has_word(text: str, word: str) -> bool:
    return re.search(rf"\b{re.escape(word)}\b", text) is not None


def _extract_discipline(msg: str) -> str | None:
    for alias, code in DISCIPLINE_ALIASES:
        if _has_word(msg, alias):
            return code
    return None


def _extract_time_seconds(msg: str) -> int | None:
    match = TIME_PATTERN.search(msg)
    if not match:
        return None
    if match.group(1) is not None:
        return int(match.group(1)) * 60 + int(match.group(2))
    amount = int(match.group(3))
    return amount * 60 if match.group(4).startswith("min") else amount


def extract_dive_data(message: str) -> DiveData | None:
    """
    Extract discipline, depths, total time and issues from a message.

    Returns None when no discipline, depth or time is mentioned.
    """
    msg = (message or "").lower()
    data = DiveData(discipline=_extract_discipline(msg))

    depths = [float(d) for d in DEPTH_PATTERN.findall(msg)]
    if depths:
        data.depth = max(depths)
        if "target" in msg or "planned" in msg:
            data.target_depth = depths[0]
        if "reached" in msg or "achieved" in msg or _has_word(msg, "hit"):
            data.reached_depth = depths[-1]

    data.total_time_seconds = _extract_time_seconds(msg)

    for keywords, issue in ISSUE_KEYWORDS:
        if any(_has_word(msg, k) for k in keywords):
            data.issues.append(issue)

    if data.discipline is None and data.depth is None and data.total_time_seconds is None:
        return None
    return data


def validate_dive_data(data: DiveData) -> list[str]:
    """Return a list of human-readable problems; empty means the data is plausible."""
    errors = []

    for label, value in (
        ("Depth", data.depth),
        ("Target depth", data.target_depth),
        ("Reached depth", data.reached_depth),
    ):
        if value is not None and not 0 <= value <= MAX_DEPTH_M:
            errors.append(f"{label} must be between 0-{MAX_DEPTH_M}m")

    # A bare duration ("wait 5 minutes") says nothing about a dive
    describes_dive = data.depth is not None or data.discipline is not None
    if describes_dive and data.total_time_seconds is not None:
        if not MIN_DIVE_SECONDS <= data.total_time_seconds <= MAX_DIVE_SECONDS:
            errors.append("Total dive time must be between 30 seconds and 15 minutes")

    if data.discipline is not None and data.discipline not in VALID_DISCIPLINES:
        errors.append(
            f"Invalid discipline. Must be one of: {', '.join(VALID_DISCIPLINES)}"
        )

    if (
        data.reached_depth is not None
        and data.target_depth is not None
        and data.reached_depth > data.target_depth + MAX_OVERSHOOT_M
    ):
        errors.append("Reached depth significantly exceeds target - safety concern")

    return errors


def format_safety_alert(errors: list[str]) -> str:
    return (
        f"⚠️ SAFETY ALERT: {', '.join(errors)}\n\n"
        "Please provide realistic dive data for accurate coaching analysis.\n\n"
        "⚠️ SAFETY DISCLAIMER: This is coaching advice only. Always dive with proper "
        "supervision and consult medical professionals for health concerns. Never dive alone."
    )
