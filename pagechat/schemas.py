from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class StartConversationRequest(BaseModel):
    url: str = Field(..., min_length=1, description="Public URL to fetch and discuss")


class StartConversationResponse(BaseModel):
    sessionId: str
    title: str
    url: str


class AskQuestionRequest(BaseModel):
    sessionId: str = Field(..., min_length=1)
    question: str = Field(..., min_length=1)


class AskQuestionResponse(BaseModel):
    answer: str
    audio: str | None = Field(None, description="Base64-encoded MP3 of the answer, when synthesis succeeded")
    sessionId: str


class MessageOut(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    timestamp: int


class ConversationResponse(BaseModel):
    messages: list[MessageOut]


class ProcessArticleRequest(BaseModel):
    url: str | None = None
    sessionId: str | None = None
    context: str | None = None
    question: str | None = None


class Section(BaseModel):
    id: int
    title: str
    content: str


class ProcessArticleSectionsResponse(BaseModel):
    sections: list[Section]


class ProcessArticleAnswerResponse(BaseModel):
    answer: str


class ErrorResponse(BaseModel):
    error: str
    status: str | None = None
