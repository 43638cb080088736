from app.models.memory import UserMemory
from app.models.dive_log import DiveLog

__all__ = [
    "UserMemory",
    "DiveLog",
]
