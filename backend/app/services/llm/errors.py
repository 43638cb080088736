class ChatError(Exception):
    """Base error for a failed chat completion."""


class ChatAuthError(ChatError):
    """The LLM service rejected our credentials."""


class ChatRateLimitError(ChatError):
    """The LLM service throttled the request or the quota is exhausted."""


class EmptyCompletionError(ChatError):
    """The LLM service answered without any text."""
