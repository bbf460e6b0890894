from __future__ import annotations

import asyncio
import logging
import time
import weakref
from typing import Awaitable, Callable, Protocol

from pagechat.assistants_client import AssistantBackend
from pagechat.errors import RunError, RunTimeoutError, SynthesisError
from pagechat.models import COMPLETED, AnswerArtifact

logger = logging.getLogger(__name__)


class Synthesizer(Protocol):
    async def synthesize(self, text: str) -> bytes: ...


class RunOrchestrator:
    """
    Drives one question through append -> start run -> poll until terminal -> read answer.

    Runs on the same session are serialized: a second question waits for the first run to finish,
    so question/answer pairs land in the thread in call order.
    """

    def __init__(
        self,
        backend: AssistantBackend,
        assistant_id: str,
        *,
        synthesizer: Synthesizer | None = None,
        poll_interval: float = 1.0,
        max_wait_seconds: float = 120.0,
        max_polls: int = 120,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.backend = backend
        self.assistant_id = assistant_id
        self.synthesizer = synthesizer
        self.poll_interval = poll_interval
        self.max_wait_seconds = max_wait_seconds
        self.max_polls = max_polls
        self._sleep = sleep
        self._clock = clock
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    async def ask(self, session_id: str, question: str, *, speak: bool = True) -> AnswerArtifact:
        lock = self._lock_for(session_id)
        async with lock:
            text = await self._resolve(session_id, question)

        audio = await self._speak(text) if speak else None
        return AnswerArtifact(text=text, audio=audio)

    async def _resolve(self, session_id: str, question: str) -> str:
        await self.backend.add_message(session_id, question)

        run = await self.backend.create_run(session_id, self.assistant_id)
        started = self._clock()
        logger.info("Started run %s on session %s", run.run_id, session_id)

        run = await self.backend.retrieve_run(session_id, run.run_id)
        polls = 1
        while run.is_pending:
            elapsed = self._clock() - started
            if polls >= self.max_polls or elapsed >= self.max_wait_seconds:
                logger.error("Run %s still %s after %d polls / %.1fs", run.run_id, run.status, polls, elapsed)
                raise RunTimeoutError(run.run_id, run.status, elapsed)
            await self._sleep(self.poll_interval)
            run = await self.backend.retrieve_run(session_id, run.run_id)
            polls += 1

        if run.status != COMPLETED:
            logger.error("Run %s ended with status %s", run.run_id, run.status)
            raise RunError(run.status, run_id=run.run_id)

        message = await self.backend.latest_message(session_id)
        if message is None or not message.content:
            raise RunError("completed_without_reply", run_id=run.run_id)
        logger.info("Run %s completed after %d polls", run.run_id, polls)
        return message.content

    async def _speak(self, text: str) -> bytes | None:
        if self.synthesizer is None:
            return None
        try:
            return await self.synthesizer.synthesize(text)
        except SynthesisError as e:
            logger.warning("Speech synthesis failed, returning text only: %s", e)
            return None
