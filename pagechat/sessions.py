from __future__ import annotations

import logging

from cachetools import TTLCache

from pagechat.assistants_client import AssistantBackend
from pagechat.models import MAX_CONTENT_CHARS, ConversationSession, Message, WebpageDocument, utcnow
from pagechat.prompts import seed_message

logger = logging.getLogger(__name__)


class SessionStore:
    """
    One ConversationSession per analyzed page.
    The remote thread holds the durable message log; this store only keeps local bookkeeping.
    """

    def __init__(self, backend: AssistantBackend, *, maxsize: int = 10_000, ttl_seconds: int = 60 * 60) -> None:
        self.backend = backend
        self._cache: TTLCache[str, ConversationSession] = TTLCache(maxsize=maxsize, ttl=ttl_seconds)

    async def create(self, document: WebpageDocument) -> ConversationSession:
        seed = seed_message(document.title, document.url, document.cleaned_text[:MAX_CONTENT_CHARS])
        session_id = await self.backend.create_thread(seed)

        session = ConversationSession(session_id=session_id, source_document=document, created_at=utcnow())
        self._cache[session_id] = session
        logger.info("Created session %s for %s", session_id, document.url)
        return session

    def get(self, session_id: str) -> ConversationSession | None:
        return self._cache.get(session_id)

    async def get_history(self, session_id: str) -> list[Message]:
        # Remote lists newest first.
        messages = await self.backend.list_messages(session_id)
        return list(reversed(messages))
