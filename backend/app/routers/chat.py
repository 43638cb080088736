"""
Chat Router

POST /chat runs one coaching turn. Invalid input is rejected with 400 before
anything downstream is called; every other outcome, including LLM failures
and unexpected errors, is a 200 with a chat-shaped payload.
"""

import logging
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from app.core.config import Settings
from app.dependencies import get_app_settings, get_chat_pipeline, get_memory_store
from app.services.chat_pipeline import ChatPipeline
from app.services.memory_store import MemoryStore

logger = logging.getLogger(__name__)

router = APIRouter()

APOLOGY_MESSAGE = (
    "I'm sorry, something went wrong while preparing your coaching response. "
    "Please try again in a moment."
)


# Schemas
class ChatRequest(BaseModel):
    message: str | None = None
    userId: str | None = None
    profile: dict | None = None
    embedMode: bool = False


class AssistantMessage(BaseModel):
    role: Literal["assistant"] = "assistant"
    content: str


class ChatMetadata(BaseModel):
    userLevel: str
    depthRange: str
    contextChunks: int = 0
    processingTime: int = 0
    embedMode: bool = False
    diveLogsUsed: int = 0
    memoryUsed: bool = False
    outcome: str


class ChatResponse(BaseModel):
    assistantMessage: AssistantMessage
    metadata: ChatMetadata


class MemoryEntryResponse(BaseModel):
    userMessage: str
    assistantReply: str
    timestamp: str


class MemoryResponse(BaseModel):
    userId: str
    entries: list[MemoryEntryResponse]
    profile: dict
    entryCount: int


# Dependencies
Pipeline = Annotated[ChatPipeline, Depends(get_chat_pipeline)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Memory = Annotated[MemoryStore, Depends(get_memory_store)]


def validate_message(message: str | None, max_length: int) -> str:
    """Return the message unchanged or raise 400."""
    if message is None or not message.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Message is required",
        )
    if len(message) > max_length:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Message too long (max {max_length} characters)",
        )
    return message


@router.post("", response_model=ChatResponse)
async def chat(request: ChatRequest, pipeline: Pipeline, settings: AppSettings):
    """Answer a coaching question grounded in the knowledge base."""
    message = validate_message(request.message, settings.max_message_length)

    try:
        result = await pipeline.run(
            message,
            user_id=request.userId,
            profile=request.profile,
            embed_mode=request.embedMode,
        )
        if result.memory_task is not None and settings.memory_await_writes:
            await result.memory_task
    except Exception:
        logger.exception("[Chat] Unexpected error")
        return ChatResponse(
            assistantMessage=AssistantMessage(content=APOLOGY_MESSAGE),
            metadata=ChatMetadata(
                userLevel="beginner",
                depthRange="10m",
                embedMode=request.embedMode,
                outcome="error",
            ),
        )

    return ChatResponse(
        assistantMessage=AssistantMessage(content=result.content),
        metadata=ChatMetadata(**result.metadata()),
    )


@router.get("/memory/{user_id}", response_model=MemoryResponse)
async def get_memory(user_id: str, memory: Memory):
    """Remembered exchanges for a user, most recent first."""
    snapshot = await memory.fetch(user_id)
    entries = [MemoryEntryResponse(**e.model_dump()) for e in reversed(snapshot.entries)]
    return MemoryResponse(
        userId=user_id,
        entries=entries,
        profile=snapshot.profile,
        entryCount=len(entries),
    )
