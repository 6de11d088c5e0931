"""Environment-driven configuration for the orchestration service.

All values are read once at startup (see `main.lifespan`) into a frozen
`Settings` instance that is attached to `app.state.settings`. A `.env` file in
the working directory is honoured through python-dotenv.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_MODEL = "llama3.2-vision:11b"
DEFAULT_MAX_BODY_BYTES = 50 * 1024 * 1024

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _optional_float(env: Mapping[str, str], name: str) -> Optional[float]:
    raw = (env.get(name) or "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} is not a number") from exc
    if value <= 0:
        raise RuntimeError(f"{name} must be positive, got {raw!r}")
    return value


def _optional_int(env: Mapping[str, str], name: str) -> Optional[int]:
    raw = (env.get(name) or "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} is not an integer") from exc
    if value <= 0:
        raise RuntimeError(f"{name} must be positive, got {raw!r}")
    return value


def _flag(env: Mapping[str, str], name: str, default: bool = False) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise RuntimeError(f"{name}={raw!r} is not a boolean flag")


def _timezone(env: Mapping[str, str], name: str, default: str) -> str:
    value = (env.get(name) or default).strip()
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise RuntimeError(f"{name}={value!r} is not a known IANA timezone") from exc
    return value


def _choice(env: Mapping[str, str], name: str, default: str, allowed: tuple) -> str:
    value = (env.get(name) or default).strip().lower()
    if value not in allowed:
        raise RuntimeError(f"{name}={value!r} must be one of: {', '.join(allowed)}")
    return value


@dataclass(frozen=True)
class Settings:
    """Runtime configuration.

    Attributes:
        ollama_base_url: Root URL of the local Ollama server.
        default_model: Model used for chat, CSV and PDF work.
        multimodal_model: Model used whenever images are attached.
        inference_backend: ``ollama`` (native API) or ``openai`` (OpenAI-compatible API).
        openai_base_url: Base URL for the OpenAI-compatible backend.
        openai_api_key: API key for the OpenAI-compatible backend.
        inference_timeout: Seconds to wait for the model; ``None`` waits indefinitely.
        session_backend: ``memory`` or ``sqlite``.
        database_dir: Directory holding ``sessions.db`` for the SQLite backend.
        session_ttl_seconds: Evict sessions idle for longer than this; ``None`` disables.
        max_sessions: Keep at most this many sessions (LRU); ``None`` disables.
        reprime_on_task_switch: Push a fresh system message when a session changes task.
        max_body_bytes: Largest accepted request body.
        cors_allowed_origins: Origins allowed by the CORS middleware.
        facts_location: Default location used by the real-time fact provider.
        facts_timezone: IANA timezone used for date/time facts.
        log_level: Root logger level.
        public_dir: Directory serving the static UI.
    """

    ollama_base_url: str = "http://localhost:11434"
    default_model: str = DEFAULT_MODEL
    multimodal_model: str = DEFAULT_MODEL
    inference_backend: str = "ollama"
    openai_base_url: str = "http://localhost:11434/v1"
    openai_api_key: str = "ollama"
    inference_timeout: Optional[float] = None
    session_backend: str = "memory"
    database_dir: Optional[Path] = None
    session_ttl_seconds: Optional[float] = None
    max_sessions: Optional[int] = None
    reprime_on_task_switch: bool = False
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    cors_allowed_origins: List[str] = field(default_factory=lambda: ["*"])
    facts_location: str = "Adimali, Kerala, India"
    facts_timezone: str = "Asia/Kolkata"
    log_level: str = "INFO"
    public_dir: Path = Path(__file__).resolve().parent.parent / "public"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables.

        Raises:
            RuntimeError: If a variable holds an invalid value.
        """
        env = os.environ if env is None else env
        defaults = cls()

        session_backend = _choice(env, "SESSION_BACKEND", "memory", ("memory", "sqlite"))
        database_dir: Optional[Path] = None
        raw_db_dir = (env.get("DATABASE_DIR") or "").strip()
        if raw_db_dir:
            database_dir = Path(raw_db_dir).expanduser()
        elif session_backend == "sqlite":
            raise RuntimeError(
                "DATABASE_DIR environment variable must be set when SESSION_BACKEND=sqlite."
            )

        max_body_bytes = _optional_int(env, "MAX_BODY_BYTES") or defaults.max_body_bytes
        origins_raw = env.get("CORS_ALLOWED_ORIGINS", "*")
        origins = [origin.strip() for origin in origins_raw.split(",") if origin.strip()] or ["*"]

        public_dir_raw = (env.get("PUBLIC_DIR") or "").strip()

        return cls(
            ollama_base_url=(env.get("OLLAMA_BASE_URL") or defaults.ollama_base_url).rstrip("/"),
            default_model=env.get("OLLAMA_DEFAULT_MODEL") or defaults.default_model,
            multimodal_model=env.get("OLLAMA_MULTIMODAL_MODEL") or defaults.multimodal_model,
            inference_backend=_choice(env, "INFERENCE_BACKEND", "ollama", ("ollama", "openai")),
            openai_base_url=env.get("OPENAI_BASE_URL") or defaults.openai_base_url,
            openai_api_key=env.get("OPENAI_API_KEY") or defaults.openai_api_key,
            inference_timeout=_optional_float(env, "INFERENCE_TIMEOUT"),
            session_backend=session_backend,
            database_dir=database_dir,
            session_ttl_seconds=_optional_float(env, "SESSION_TTL_SECONDS"),
            max_sessions=_optional_int(env, "MAX_SESSIONS"),
            reprime_on_task_switch=_flag(env, "REPRIME_ON_TASK_SWITCH"),
            max_body_bytes=max_body_bytes,
            cors_allowed_origins=origins,
            facts_location=env.get("FACTS_LOCATION") or defaults.facts_location,
            facts_timezone=_timezone(env, "FACTS_TIMEZONE", defaults.facts_timezone),
            log_level=(env.get("LOG_LEVEL") or defaults.log_level).upper(),
            public_dir=Path(public_dir_raw).expanduser() if public_dir_raw else defaults.public_dir,
        )
