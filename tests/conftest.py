from __future__ import annotations

from datetime import datetime, timezone

import pytest

from pagechat.config import Settings
from pagechat.models import Message, Run


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        openai_api_key="sk-test",
        google_api_key="g-test",
        elevenlabs_api_key="el-test",
        openai_base_url="https://assistants.test/v1",
    )


class FakeBackend:
    """In-memory stand-in for the remote thread/run service."""

    def __init__(self, statuses: list[str] | None = None, reply: str = "The answer.") -> None:
        self.statuses = list(statuses or ["completed"])
        self.reply = reply
        self.calls: list[tuple] = []
        self.status_reads = 0
        self.message_reads = 0
        self.threads: dict[str, list[Message]] = {}
        self._clock = 1_700_000_000

    def _tick(self) -> int:
        self._clock += 1
        return self._clock

    async def create_assistant(self, *, name: str, instructions: str, model: str) -> str:
        self.calls.append(("create_assistant", model))
        return "asst_1"

    async def create_thread(self, seed_message: str) -> str:
        thread_id = f"thread_{len(self.threads) + 1}"
        self.threads[thread_id] = [Message(role="user", content=seed_message, timestamp=self._tick())]
        self.calls.append(("create_thread", thread_id))
        return thread_id

    async def add_message(self, thread_id: str, content: str) -> None:
        self.calls.append(("add_message", thread_id, content))
        self.threads.setdefault(thread_id, []).append(Message(role="user", content=content, timestamp=self._tick()))

    async def create_run(self, thread_id: str, assistant_id: str) -> Run:
        self.calls.append(("create_run", thread_id, assistant_id))
        return Run(run_id="run_1", session_id=thread_id, status="queued", started_at=datetime.now(timezone.utc))

    async def retrieve_run(self, thread_id: str, run_id: str) -> Run:
        self.status_reads += 1
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if status == "completed":
            thread = self.threads.setdefault(thread_id, [])
            if not thread or thread[-1].role != "assistant":
                thread.append(Message(role="assistant", content=self.reply, timestamp=self._tick()))
        return Run(run_id=run_id, session_id=thread_id, status=status, started_at=datetime.now(timezone.utc))

    async def latest_message(self, thread_id: str) -> Message | None:
        self.message_reads += 1
        thread = self.threads.get(thread_id) or []
        return thread[-1] if thread else None

    async def list_messages(self, thread_id: str) -> list[Message]:
        self.message_reads += 1
        return list(reversed(self.threads.get(thread_id) or []))

