from __future__ import annotations

import os
from dataclasses import dataclass

from pagechat.errors import ConfigurationError


def _env(name: str, default: str | None = None) -> str | None:
    val = os.environ.get(name)
    if val is None or val.strip() == "":
        return default
    return val.strip()


def parse_cors_origins(raw: str) -> list[str]:
    if raw.strip() == "*":
        return ["*"]
    return [x.strip() for x in raw.split(",") if x.strip()]


def cors_origins_from_env() -> list[str]:
    """CORS_ORIGINS without the credential checks of Settings.from_env()."""
    return parse_cors_origins(_env("CORS_ORIGINS", "*"))


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    openai_api_key: str
    google_api_key: str | None = None
    google_cloud_project: str | None = None
    google_cloud_location: str = "us-central1"
    openai_base_url: str = "https://api.openai.com/v1"
    assistant_model: str = "gpt-4o-mini"
    assistant_id: str | None = None
    gemini_model: str = "gemini-2.0-flash"
    elevenlabs_api_key: str | None = None
    elevenlabs_voice_id: str = "21m00Tcm4TlvDq8ikWAM"
    elevenlabs_model_id: str = "eleven_multilingual_v2"
    run_poll_interval: float = 1.0
    run_max_wait_seconds: float = 120.0
    run_max_polls: int = 120
    session_ttl_seconds: int = 60 * 60
    cors_origins: str = "*"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Resolves the whole configuration once at startup.
        Raises ConfigurationError when credentials are missing so the process fails fast.
        """
        openai_api_key = _env("OPENAI_API_KEY")
        if not openai_api_key:
            raise ConfigurationError("Missing config: set OPENAI_API_KEY for the assistant thread/run API.")

        google_api_key = _env("GOOGLE_API_KEY")
        google_cloud_project = _env("GOOGLE_CLOUD_PROJECT")
        if not google_api_key and not google_cloud_project:
            raise ConfigurationError(
                "Missing config: set GOOGLE_API_KEY (local) or GOOGLE_CLOUD_PROJECT (+ optional GOOGLE_CLOUD_LOCATION) (Vertex/Cloud Run)."
            )

        return cls(
            openai_api_key=openai_api_key,
            google_api_key=google_api_key,
            google_cloud_project=google_cloud_project,
            google_cloud_location=_env("GOOGLE_CLOUD_LOCATION", "us-central1"),
            openai_base_url=_env("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/"),
            assistant_model=_env("ASSISTANT_MODEL", "gpt-4o-mini"),
            assistant_id=_env("ASSISTANT_ID"),
            gemini_model=_env("GEMINI_MODEL", "gemini-2.0-flash"),
            elevenlabs_api_key=_env("ELEVENLABS_API_KEY"),
            elevenlabs_voice_id=_env("ELEVENLABS_VOICE_ID", "21m00Tcm4TlvDq8ikWAM"),
            elevenlabs_model_id=_env("ELEVENLABS_MODEL_ID", "eleven_multilingual_v2"),
            run_poll_interval=_env_float("RUN_POLL_INTERVAL", 1.0),
            run_max_wait_seconds=_env_float("RUN_MAX_WAIT_SECONDS", 120.0),
            run_max_polls=_env_int("RUN_MAX_POLLS", 120),
            session_ttl_seconds=_env_int("SESSION_TTL_SECONDS", 60 * 60),
            cors_origins=_env("CORS_ORIGINS", "*"),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def cors_origins_list(self) -> list[str]:
        return parse_cors_origins(self.cors_origins)

    @property
    def speech_enabled(self) -> bool:
        return bool(self.elevenlabs_api_key)
