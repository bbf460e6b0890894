from __future__ import annotations

import logging

from pagechat.assistants_client import AssistantBackend, OpenAIAssistantsClient
from pagechat.config import Settings
from pagechat.gemini_client import GeminiClient
from pagechat.models import AnswerArtifact, ArticleSection, ConversationSession, Message
from pagechat.orchestrator import RunOrchestrator
from pagechat.prompts import ASSISTANT_INSTRUCTIONS, ASSISTANT_NAME, CONTEXT_ANSWER_SYSTEM, context_question
from pagechat.segmenter import Segmenter
from pagechat.sessions import SessionStore
from pagechat.speech import ElevenLabsSynthesizer
from pagechat.url_extract import extract

logger = logging.getLogger(__name__)


async def resolve_assistant_id(settings: Settings, backend: AssistantBackend) -> str:
    """Uses ASSISTANT_ID when configured, otherwise creates one assistant for this process."""
    if settings.assistant_id:
        return settings.assistant_id
    assistant_id = await backend.create_assistant(
        name=ASSISTANT_NAME,
        instructions=ASSISTANT_INSTRUCTIONS,
        model=settings.assistant_model,
    )
    logger.info("Assistant created: %s", assistant_id)
    return assistant_id


class PageCompanion:
    def __init__(
        self,
        *,
        sessions: SessionStore,
        orchestrator: RunOrchestrator,
        segmenter: Segmenter,
        gemini: GeminiClient,
    ) -> None:
        self.sessions = sessions
        self.orchestrator = orchestrator
        self.segmenter = segmenter
        self.gemini = gemini

    @classmethod
    async def from_settings(cls, settings: Settings) -> "PageCompanion":
        backend = OpenAIAssistantsClient(settings)
        assistant_id = await resolve_assistant_id(settings, backend)
        gemini = GeminiClient(settings)

        synthesizer = ElevenLabsSynthesizer.from_settings(settings)
        if synthesizer is None:
            logger.info("ELEVENLABS_API_KEY not set; answers will be text only")

        return cls(
            sessions=SessionStore(backend, ttl_seconds=settings.session_ttl_seconds),
            orchestrator=RunOrchestrator(
                backend,
                assistant_id,
                synthesizer=synthesizer,
                poll_interval=settings.run_poll_interval,
                max_wait_seconds=settings.run_max_wait_seconds,
                max_polls=settings.run_max_polls,
            ),
            segmenter=Segmenter(gemini),
            gemini=gemini,
        )

    async def start_conversation(self, url: str) -> ConversationSession:
        document = await extract(url)
        return await self.sessions.create(document)

    async def process_article(self, url: str) -> list[ArticleSection]:
        document = await extract(url)
        return await self.segmenter.segment(document.cleaned_text)

    async def ask(self, session_id: str, question: str, *, speak: bool = True) -> AnswerArtifact:
        session = self.sessions.get(session_id)
        if session is None:
            logger.info("Question on session %s, which this process did not create", session_id)
        else:
            logger.info("Question on session %s about %s", session_id, session.source_document.url)
        return await self.orchestrator.ask(session_id, question, speak=speak)

    async def history(self, session_id: str) -> list[Message]:
        return await self.sessions.get_history(session_id)

    async def answer_from_context(self, context: str, question: str) -> str:
        return await self.gemini.generate_text(
            system=CONTEXT_ANSWER_SYSTEM,
            user=context_question(context, question),
            temperature=0.4,
        )
