from __future__ import annotations

import base64
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pagechat.companion import PageCompanion
from pagechat.config import Settings, cors_origins_from_env
from pagechat.errors import AppError, RunError, RunTimeoutError
from pagechat.logging_config import configure_logging
from pagechat.schemas import (
    AskQuestionRequest,
    AskQuestionResponse,
    ConversationResponse,
    ErrorResponse,
    MessageOut,
    ProcessArticleAnswerResponse,
    ProcessArticleRequest,
    ProcessArticleSectionsResponse,
    Section,
    StartConversationRequest,
    StartConversationResponse,
)

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, companion: PageCompanion | None = None) -> FastAPI:
    """
    Builds the API. Without an injected companion, settings are resolved from the environment
    at startup and a missing credential aborts the boot.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.companion is None:
            resolved = settings or Settings.from_env()
            configure_logging(resolved.log_level)
            app.state.companion = await PageCompanion.from_settings(resolved)
        yield

    app = FastAPI(title="Webpage Conversation API", version="0.3.0", lifespan=lifespan)
    app.state.companion = companion

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list if settings else cors_origins_from_env(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError) -> JSONResponse:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        status = exc.status if isinstance(exc, (RunError, RunTimeoutError)) else None
        body = ErrorResponse(error=exc.message, status=status)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))

    errors = {500: {"model": ErrorResponse}}

    def _companion(request: Request) -> PageCompanion:
        return request.app.state.companion

    @app.get("/health")
    def health() -> dict:
        return {"ok": True}

    @app.post("/api/start-conversation", response_model=StartConversationResponse, responses=errors)
    async def start_conversation(req: StartConversationRequest, request: Request) -> StartConversationResponse:
        session = await _companion(request).start_conversation(req.url)
        doc = session.source_document
        return StartConversationResponse(sessionId=session.session_id, title=doc.title, url=doc.url)

    @app.post(
        "/api/ask-question", response_model=AskQuestionResponse, response_model_exclude_none=True, responses=errors
    )
    async def ask_question(req: AskQuestionRequest, request: Request) -> AskQuestionResponse:
        artifact = await _companion(request).ask(req.sessionId, req.question)
        audio = base64.b64encode(artifact.audio).decode("ascii") if artifact.audio else None
        return AskQuestionResponse(answer=artifact.text, audio=audio, sessionId=req.sessionId)

    @app.get("/api/conversation/{session_id}", response_model=ConversationResponse, responses=errors)
    async def conversation(session_id: str, request: Request) -> ConversationResponse:
        messages = await _companion(request).history(session_id)
        return ConversationResponse(
            messages=[MessageOut(role=m.role, content=m.content, timestamp=m.timestamp) for m in messages]
        )

    @app.post(
        "/api/process-article",
        response_model=ProcessArticleSectionsResponse | ProcessArticleAnswerResponse,
        responses={400: {"model": ErrorResponse}, **errors},
    )
    async def process_article(req: ProcessArticleRequest, request: Request):
        companion = _companion(request)
        if req.url:
            sections = await companion.process_article(req.url)
            return ProcessArticleSectionsResponse(
                sections=[Section(id=s.id, title=s.title, content=s.content) for s in sections]
            )

        if req.question and req.sessionId:
            artifact = await companion.ask(req.sessionId, req.question, speak=False)
            return ProcessArticleAnswerResponse(answer=artifact.text)

        if req.question and req.context:
            answer = await companion.answer_from_context(req.context, req.question)
            return ProcessArticleAnswerResponse(answer=answer)

        raise AppError("URL or context is required", status_code=400)

    return app


app = create_app()
