"""
Shared result model for chat completions.
"""

from pydantic import BaseModel


class ChatReply(BaseModel):
    content: str
    # True when content is one of the fallback strings, never persisted to memory
    failed: bool = False
    error_kind: str | None = None  # "auth", "rate_limit", "error"
