from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

MAX_CONTENT_CHARS = 15_000

PENDING_RUN_STATUSES = frozenset({"queued", "in_progress"})
COMPLETED = "completed"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class WebpageDocument:
    url: str
    title: str
    cleaned_text: str
    extracted_at: datetime


@dataclass(frozen=True)
class ArticleSection:
    id: int
    title: str
    content: str


@dataclass(frozen=True)
class ConversationSession:
    session_id: str
    source_document: WebpageDocument
    created_at: datetime


@dataclass(frozen=True)
class Message:
    role: str  # "user" | "assistant"
    content: str
    timestamp: int  # unix seconds, as reported by the remote service


@dataclass
class Run:
    run_id: str
    session_id: str
    status: str
    started_at: datetime

    @property
    def is_pending(self) -> bool:
        return self.status in PENDING_RUN_STATUSES


@dataclass(frozen=True)
class AnswerArtifact:
    text: str
    audio: bytes | None = None
