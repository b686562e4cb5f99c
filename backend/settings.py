"""
Runtime settings read from the environment (and `.env` via python-dotenv).

Settings are built once and passed into the components that need them;
nothing below reads os.environ after load_settings() returns.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BACKEND_DIR)
DEFAULT_DATA_PATH = os.path.join(PROJECT_ROOT, "data")

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash-preview-09-2025"
DEFAULT_GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_PROGRAM_BASE_URL = "https://www.mdc.edu/"

SUPPORTED_PROVIDERS = {"gemini", "openai"}


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, float(raw))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, int(raw))
    except (TypeError, ValueError):
        return default


def _env_str(name: str, default: str | None = None) -> str | None:
    raw = os.environ.get(name, "")
    raw = raw.strip() if isinstance(raw, str) else ""
    return raw or default


@dataclass(frozen=True)
class Settings:
    llm_provider: str = "gemini"
    gemini_api_key: str | None = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_api_base: str = DEFAULT_GEMINI_API_BASE
    openai_api_key: str | None = None
    openai_model: str = DEFAULT_OPENAI_MODEL
    openai_api_base: str | None = None
    llm_timeout_seconds: float = 45.0
    data_path: str = DEFAULT_DATA_PATH
    program_base_url: str = DEFAULT_PROGRAM_BASE_URL
    slow_request_log_ms: float = 750.0
    request_cache_size: int = 128
    rate_limit_max: int = 10
    rate_limit_window_seconds: int = 60

    @property
    def model_configured(self) -> bool:
        if self.llm_provider == "openai":
            return bool(self.openai_api_key)
        return bool(self.gemini_api_key)


def _resolve_data_path(raw: str | None) -> str:
    if not raw:
        return DEFAULT_DATA_PATH
    if not os.path.isabs(raw):
        return os.path.join(PROJECT_ROOT, raw)
    return raw


def load_settings(dotenv: bool = True) -> Settings:
    """Build Settings from the process environment."""
    if dotenv:
        load_dotenv()

    provider = (_env_str("LLM_PROVIDER", "gemini") or "gemini").lower()
    if provider not in SUPPORTED_PROVIDERS:
        provider = "gemini"

    base_url = _env_str("PROGRAM_BASE_URL", DEFAULT_PROGRAM_BASE_URL)
    if not base_url.endswith("/"):
        base_url += "/"

    return Settings(
        llm_provider=provider,
        gemini_api_key=_env_str("GEMINI_API_KEY"),
        gemini_model=_env_str("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
        gemini_api_base=_env_str("GEMINI_API_BASE", DEFAULT_GEMINI_API_BASE).rstrip("/"),
        openai_api_key=_env_str("OPENAI_API_KEY"),
        openai_model=_env_str("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
        openai_api_base=_env_str("OPENAI_API_BASE"),
        llm_timeout_seconds=_env_float("LLM_TIMEOUT_SECONDS", 45.0, minimum=1.0),
        data_path=_resolve_data_path(_env_str("DATA_PATH")),
        program_base_url=base_url,
        slow_request_log_ms=_env_float("SLOW_REQUEST_LOG_MS", 750.0, minimum=0.0),
        request_cache_size=_env_int("REQUEST_CACHE_SIZE", 128, minimum=1),
        rate_limit_max=_env_int("RATE_LIMIT_MAX", 10, minimum=1),
        rate_limit_window_seconds=_env_int("RATE_LIMIT_WINDOW_SECONDS", 60, minimum=1),
    )
