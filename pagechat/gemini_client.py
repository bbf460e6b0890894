from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from pagechat.config import Settings
from pagechat.errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)


def _is_model_not_found(err: Exception) -> bool:
    msg = str(err)
    return (
        "NOT_FOUND" in msg
        and ("was not found" in msg or "not found" in msg or "is not found" in msg)
        and ("Publisher Model" in msg or "models/" in msg or "Call ListModels" in msg)
    )


def _error_body(err: genai_errors.APIError) -> str:
    details = getattr(err, "details", None)
    if details is None:
        return str(err)
    try:
        return json.dumps(details)
    except (TypeError, ValueError):
        return str(details)


class GeminiClient:
    """
    Supports two modes:
    - Vertex AI mode (recommended on Cloud Run): GOOGLE_CLOUD_PROJECT + GOOGLE_CLOUD_LOCATION
    - API key mode (local/dev): GOOGLE_API_KEY
    """

    FALLBACK_MODELS = ["gemini-2.0-flash", "gemini-1.5-flash", "gemini-1.5-pro"]

    def __init__(self, settings: Settings, *, client: Any = None) -> None:
        self.model = settings.gemini_model

        if client is not None:
            self.client = client
        elif settings.google_api_key:
            self.client = genai.Client(api_key=settings.google_api_key)
        elif settings.google_cloud_project:
            # Uses ADC (service account) on Cloud Run
            self.client = genai.Client(
                vertexai=True,
                project=settings.google_cloud_project,
                location=settings.google_cloud_location,
            )
        else:
            raise ConfigurationError(
                "Missing config: set GOOGLE_API_KEY (local) or GOOGLE_CLOUD_PROJECT (+ optional GOOGLE_CLOUD_LOCATION) (Vertex/Cloud Run)."
            )

    async def generate_text(self, *, system: str, user: str, temperature: float = 0.7, max_tokens: int = 2000) -> str:
        """
        One completion call. Falls through the candidate list only when a model is unknown to the project.
        Raises UpstreamError with the raw upstream error body attached.
        """
        candidates = [self.model] + [m for m in self.FALLBACK_MODELS if m != self.model]

        last_err: Exception | None = None
        resp = None
        for m in candidates:
            try:
                resp = await self.client.aio.models.generate_content(
                    model=m,
                    contents=[
                        types.Content(role="user", parts=[types.Part(text=user)]),
                    ],
                    config=types.GenerateContentConfig(
                        system_instruction=system,
                        temperature=temperature,
                        max_output_tokens=max_tokens,
                    ),
                )
                break
            except genai_errors.APIError as e:
                last_err = e
                if _is_model_not_found(e):
                    logger.warning("Gemini model %s unavailable, trying next candidate", m)
                    continue
                raise UpstreamError(
                    f"Gemini completion failed: {e}", upstream_status=getattr(e, "code", None), body=_error_body(e)
                ) from e
            except httpx.HTTPError as e:
                raise UpstreamError(f"Gemini completion failed: {e}", body=str(e)) from e

        if resp is None:
            raise UpstreamError(f"All model candidates failed. Last error: {last_err}", body=str(last_err))

        text = (resp.text or "").strip()
        if not text:
            raise UpstreamError("Gemini returned an empty completion", body=repr(resp))
        return text
