"""
Dive Log Reader

Read-only access to the member's dive logs for prompt context and the
ENCLOSE diagnostic. The dive log app owns the table; nothing here writes.
"""

import hashlib
import logging
import uuid
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.dive_log import DiveLog

logger = logging.getLogger(__name__)


def to_storage_user_id(user_id: str) -> str:
    """
    Map an app user identifier to the UUID used in dive_logs.user_id.

    UUIDs pass through; anything else (e.g. a Wix member id or email) becomes
    a deterministic UUID built from the MD5 of the identifier.
    """
    try:
        return str(uuid.UUID(user_id))
    except ValueError:
        digest = hashlib.md5(user_id.encode("utf-8")).hexdigest()
        return str(uuid.UUID(hex=digest))


def is_guest(user_id: str | None) -> bool:
    return not user_id or user_id.startswith("guest")


class DiveLogReader:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def recent(self, user_id: str | None, limit: int = 5) -> list[DiveLog]:
        """Most recent dive logs for a user, newest first. Empty on error."""
        if is_guest(user_id) or limit <= 0:
            return []

        storage_id = to_storage_user_id(user_id)
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(DiveLog)
                    .where(DiveLog.user_id == storage_id)
                    .order_by(DiveLog.dive_date.desc(), DiveLog.created_at.desc())
                    .limit(limit)
                )
                logs = list(result.scalars().all())
        except Exception as e:
            logger.warning("[DiveLogs] Query failed for %s: %s", user_id, e)
            return []

        logger.info("[DiveLogs] Loaded %d dive logs for %s", len(logs), user_id)
        return logs

    async def since(self, user_id: str | None, start: date) -> list[DiveLog]:
        """All dive logs dated on or after start, oldest first. Empty on error."""
        if is_guest(user_id):
            return []

        storage_id = to_storage_user_id(user_id)
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(DiveLog)
                    .where(DiveLog.user_id == storage_id, DiveLog.dive_date >= start)
                    .order_by(DiveLog.dive_date.asc(), DiveLog.created_at.asc())
                )
                return list(result.scalars().all())
        except Exception as e:
            logger.warning("[DiveLogs] Range query failed for %s: %s", user_id, e)
            return []

    async def get(self, dive_log_id: str) -> DiveLog | None:
        """A single dive log by id, or None if missing, malformed or unreadable."""
        try:
            key = str(uuid.UUID(dive_log_id))
        except (TypeError, ValueError):
            return None

        try:
            async with self._session_factory() as session:
                return await session.get(DiveLog, key)
        except Exception as e:
            logger.warning("[DiveLogs] Lookup failed for %s: %s", dive_log_id, e)
            return None
