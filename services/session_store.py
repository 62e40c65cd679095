"""
Session Store
=============
Per-chat conversation state on top of a CacheAdapter backend
(in-memory by default, Redis when configured).
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, Optional

from pydantic import ValidationError

from app.conversation.models import SessionData
from app.infrastructure.cache import CacheAdapter

logger = logging.getLogger(__name__)

KEY_PREFIX = "session:"


@dataclass
class _ChatLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class SessionStore:
    """
    Loads and saves SessionData by chat id.

    Events of one chat must be applied one at a time; session() takes a
    per-chat lock around load → handle → save so concurrent webhook
    requests for the same chat cannot interleave.
    """

    def __init__(self, cache: CacheAdapter, ttl_seconds: int):
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self._locks: Dict[int, _ChatLock] = {}

    @staticmethod
    def _key(chat_id: int) -> str:
        return f"{KEY_PREFIX}{chat_id}"

    async def get(self, chat_id: int) -> SessionData:
        """Stored session, or a fresh default one (not persisted)."""
        raw = await self.cache.get(self._key(chat_id))
        if not raw:
            logger.debug(f"No session for chat {chat_id}, starting fresh")
            return SessionData()

        try:
            return SessionData.from_dict(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.warning(f"Discarding unreadable session for chat {chat_id}: {e}")
            return SessionData()

    async def put(self, chat_id: int, session: SessionData) -> bool:
        payload = json.dumps(session.to_dict(), ensure_ascii=False)
        saved = await self.cache.set(self._key(chat_id), payload, ttl=self.ttl_seconds)
        if saved:
            logger.debug(f"Session saved for chat {chat_id}: {payload}")
        else:
            logger.error(f"Session write failed for chat {chat_id}")
        return saved

    async def delete(self, chat_id: int) -> bool:
        return await self.cache.delete(self._key(chat_id))

    @asynccontextmanager
    async def session(self, chat_id: int) -> AsyncIterator[SessionData]:
        """
        Lock the chat, yield its session and persist it afterwards.

        The session is saved even if the body raised, keeping whatever
        progress was made before the failure.
        """
        entry = self._locks.setdefault(chat_id, _ChatLock())
        entry.users += 1
        try:
            async with entry.lock:
                data = await self.get(chat_id)
                try:
                    yield data
                finally:
                    await self.put(chat_id, data)
        finally:
            entry.users -= 1
            if entry.users == 0:
                self._locks.pop(chat_id, None)

    def is_locked(self, chat_id: int) -> bool:
        entry: Optional[_ChatLock] = self._locks.get(chat_id)
        return entry is not None and entry.lock.locked()
