from __future__ import annotations

import logging

import httpx

from pagechat.config import Settings
from pagechat.errors import SynthesisError

logger = logging.getLogger(__name__)

ELEVENLABS_TTS_URL = "https://api.elevenlabs.io/v1/text-to-speech/{voice_id}"


class ElevenLabsSynthesizer:
    output_format = "mp3_44100_128"

    def __init__(
        self,
        *,
        api_key: str,
        voice_id: str,
        model_id: str,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.voice_id = voice_id
        self.model_id = model_id
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "ElevenLabsSynthesizer | None":
        if not settings.speech_enabled:
            return None
        return cls(
            api_key=settings.elevenlabs_api_key,
            voice_id=settings.elevenlabs_voice_id,
            model_id=settings.elevenlabs_model_id,
        )

    async def synthesize(self, text: str) -> bytes:
        """Returns MP3 bytes for the given text."""
        if not text.strip():
            raise SynthesisError("Nothing to synthesize")

        url = ELEVENLABS_TTS_URL.format(voice_id=self.voice_id)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                r = await client.post(
                    url,
                    params={"output_format": self.output_format},
                    headers={"xi-api-key": self.api_key, "Content-Type": "application/json", "Accept": "audio/mpeg"},
                    json={"text": text, "model_id": self.model_id},
                )
        except httpx.HTTPError as e:
            raise SynthesisError(f"ElevenLabs text-to-speech error: {e}") from e

        if r.status_code >= 400:
            raise SynthesisError(f"ElevenLabs text-to-speech failed: {r.status_code} {r.text[:500]}")
        if not r.content:
            raise SynthesisError("ElevenLabs returned no audio")
        return r.content
