from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Protocol

import httpx

from pagechat.config import Settings
from pagechat.errors import UpstreamError
from pagechat.models import Message, Run, utcnow

logger = logging.getLogger(__name__)


class AssistantBackend(Protocol):
    async def create_assistant(self, *, name: str, instructions: str, model: str) -> str: ...

    async def create_thread(self, seed_message: str) -> str: ...

    async def add_message(self, thread_id: str, content: str) -> None: ...

    async def create_run(self, thread_id: str, assistant_id: str) -> Run: ...

    async def retrieve_run(self, thread_id: str, run_id: str) -> Run: ...

    async def latest_message(self, thread_id: str) -> Message | None: ...

    async def list_messages(self, thread_id: str) -> list[Message]: ...


def _message_text(content: list[dict[str, Any]] | None) -> str:
    parts: list[str] = []
    for part in content or []:
        if part.get("type") == "text":
            value = (part.get("text") or {}).get("value") or ""
            parts.append(value)
    return "\n".join(parts).strip()


def _to_message(data: dict[str, Any]) -> Message:
    return Message(
        role=data.get("role") or "assistant",
        content=_message_text(data.get("content")),
        timestamp=int(data.get("created_at") or 0),
    )


def _to_run(data: dict[str, Any], thread_id: str) -> Run:
    created = data.get("created_at")
    started_at = datetime.fromtimestamp(created, tz=timezone.utc) if created else utcnow()
    return Run(
        run_id=data["id"],
        session_id=data.get("thread_id") or thread_id,
        status=data.get("status") or "unknown",
        started_at=started_at,
    )


class OpenAIAssistantsClient:
    """
    Thin REST client for the OpenAI Assistants v2 thread/run/message API.
    A thread is the remote half of a ConversationSession; a run is one asynchronous answering job.
    """

    PAGE_SIZE = 100

    def __init__(
        self,
        settings: Settings,
        *,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = settings.openai_base_url
        self.timeout = timeout
        self.transport = transport
        self._headers = {
            "Authorization": f"Bearer {settings.openai_api_key}",
            "Content-Type": "application/json",
            "OpenAI-Beta": "assistants=v2",
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, headers=self._headers, transport=self.transport) as client:
                r = await client.request(method, url, json=json, params=params)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Assistants API unreachable ({method} {path}): {e}") from e

        if r.status_code >= 400:
            logger.error("Assistants API %s %s failed: %s %s", method, path, r.status_code, r.text[:500])
            raise UpstreamError(
                f"Assistants API error: {r.status_code} {r.reason_phrase}",
                upstream_status=r.status_code,
                body=r.text,
            )
        return r.json()

    async def create_assistant(self, *, name: str, instructions: str, model: str) -> str:
        data = await self._request(
            "POST",
            "/assistants",
            json={"name": name, "instructions": instructions, "model": model, "tools": []},
        )
        return data["id"]

    async def create_thread(self, seed_message: str) -> str:
        data = await self._request(
            "POST",
            "/threads",
            json={"messages": [{"role": "user", "content": seed_message}]},
        )
        return data["id"]

    async def add_message(self, thread_id: str, content: str) -> None:
        await self._request("POST", f"/threads/{thread_id}/messages", json={"role": "user", "content": content})

    async def create_run(self, thread_id: str, assistant_id: str) -> Run:
        data = await self._request("POST", f"/threads/{thread_id}/runs", json={"assistant_id": assistant_id})
        return _to_run(data, thread_id)

    async def retrieve_run(self, thread_id: str, run_id: str) -> Run:
        data = await self._request("GET", f"/threads/{thread_id}/runs/{run_id}")
        return _to_run(data, thread_id)

    async def latest_message(self, thread_id: str) -> Message | None:
        data = await self._request("GET", f"/threads/{thread_id}/messages", params={"order": "desc", "limit": 1})
        items = data.get("data") or []
        return _to_message(items[0]) if items else None

    async def list_messages(self, thread_id: str) -> list[Message]:
        """Every message of the thread, newest first (the API's native order)."""
        messages: list[Message] = []
        params: dict[str, Any] = {"order": "desc", "limit": self.PAGE_SIZE}
        while True:
            data = await self._request("GET", f"/threads/{thread_id}/messages", params=params)
            items = data.get("data") or []
            messages.extend(_to_message(it) for it in items)
            if not data.get("has_more") or not items:
                return messages
            params = {**params, "after": data.get("last_id") or items[-1]["id"]}
