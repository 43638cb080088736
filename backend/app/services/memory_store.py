"""
Memory Store

Per-user record of past chat exchanges and the last merged profile, reused
as context in later turns. Reads and writes are best-effort: failures are
logged and never abort the in-flight chat response.

Writes can run as explicit asyncio tasks (schedule_save) whose boolean
result tells the caller whether persistence succeeded.
"""

import asyncio
import logging
from datetime import datetime, timezone

from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.memory import UserMemory

logger = logging.getLogger(__name__)

MAX_USER_MESSAGE_CHARS = 500
MAX_ASSISTANT_REPLY_CHARS = 1000


class MemoryEntry(BaseModel):
    userMessage: str
    assistantReply: str
    timestamp: str


class MemorySnapshot(BaseModel):
    user_id: str | None = None
    entries: list[MemoryEntry] = Field(default_factory=list)  # oldest first
    profile: dict = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.entries and not self.profile


def make_entry(user_message: str, assistant_reply: str) -> MemoryEntry:
    return MemoryEntry(
        userMessage=user_message[:MAX_USER_MESSAGE_CHARS],
        assistantReply=assistant_reply[:MAX_ASSISTANT_REPLY_CHARS],
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


class MemoryStore:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        max_entries: int = 20,
    ):
        self._session_factory = session_factory
        self.max_entries = max_entries
        self._pending: set[asyncio.Task] = set()

    async def fetch(self, user_id: str) -> MemorySnapshot:
        """Return the stored snapshot, or an empty one if none exists or the read fails."""
        try:
            async with self._session_factory() as session:
                record = await session.get(UserMemory, user_id)
        except Exception as e:
            logger.warning("[Memory] Fetch failed for %s: %s", user_id, e)
            return MemorySnapshot(user_id=user_id)

        if record is None:
            return MemorySnapshot(user_id=user_id)

        entries = []
        for raw in record.entries or []:
            try:
                entries.append(MemoryEntry(**raw))
            except (TypeError, ValueError):
                logger.warning("[Memory] Skipping malformed entry for %s", user_id)
        return MemorySnapshot(user_id=user_id, entries=entries, profile=record.profile or {})

    async def save(
        self,
        user_id: str,
        entries: list[MemoryEntry],
        profile: dict,
    ) -> bool:
        """
        Append entries and replace the profile snapshot.

        Only the newest max_entries entries are kept. Concurrent saves for
        the same user are last-writer-wins.

        Returns:
            True if the write committed, False if it failed (already logged)
        """
        try:
            async with self._session_factory() as session:
                record = await session.get(UserMemory, user_id)
                new_entries = [e.model_dump() for e in entries]
                if record is None:
                    record = UserMemory(user_id=user_id, entries=[], profile={})
                    session.add(record)

                # Assign new objects so the JSON columns are flagged dirty
                record.entries = (list(record.entries or []) + new_entries)[-self.max_entries:]
                record.profile = dict(profile)
                await session.commit()
        except Exception as e:
            logger.warning("[Memory] Save failed for %s: %s", user_id, e)
            return False

        logger.info("[Memory] Saved %d entries for %s", len(entries), user_id)
        return True

    def schedule_save(
        self,
        user_id: str,
        entries: list[MemoryEntry],
        profile: dict,
    ) -> asyncio.Task:
        """Run save() as a task; await it for the result or leave it detached."""
        task = asyncio.create_task(self.save(user_id, entries, profile))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for detached writes to finish (called at shutdown)."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
