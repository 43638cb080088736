"""
Coaching logic: level classification, prompt assembly, dive data safety
checks and the E.N.C.L.O.S.E. diagnostic.
"""

from app.services.coaching.level import classify_level, depth_range, merge_profile
from app.services.coaching.prompts import assemble_messages
from app.services.coaching.dive_data import extract_dive_data, validate_dive_data
from app.services.coaching.enclose import diagnose

__all__ = [
    "classify_level",
    "depth_range",
    "merge_profile",
    "assemble_messages",
    "extract_dive_data",
    "validate_dive_data",
    "diagnose",
]
