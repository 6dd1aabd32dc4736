# healthchat/config.py
"""
Runtime settings, read from the process environment.

A `.env` file in the working directory is loaded first, so local
development can keep credentials out of the shell profile.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import load_dotenv


load_dotenv()

DEFAULT_AZURE_API_VERSION = "2024-08-01-preview"
DEFAULT_ANTHROPIC_MODEL = "claude-3-5-sonnet-20240620"


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if not raw:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """Application settings. Credentials are not validated here; a
    missing key surfaces as a failed model call."""

    llm_provider: str = "azure"  # "azure" | "anthropic"

    azure_api_key: Optional[str] = None
    instance_name: Optional[str] = None
    azure_deployment: Optional[str] = None
    azure_api_version: str = DEFAULT_AZURE_API_VERSION

    anthropic_api_key: Optional[str] = None
    anthropic_model: str = DEFAULT_ANTHROPIC_MODEL

    temperature: float = 1.0
    max_tokens: int = 4096
    provider_timeout_seconds: float = 60.0

    reject_empty_message: bool = False
    cors_allow_origins: Tuple[str, ...] = ("*",)
    log_level: str = "INFO"
    port: int = 3001

    @property
    def azure_endpoint(self) -> Optional[str]:
        # https://<INSTANCE_NAME>.openai.azure.com/
        if not self.instance_name:
            return None
        return f"https://{self.instance_name}.openai.azure.com/"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            llm_provider=os.getenv("LLM_PROVIDER", "azure").strip().lower(),
            azure_api_key=os.getenv("AZURE_OPENAI_API_KEY"),
            instance_name=os.getenv("INSTANCE_NAME"),
            azure_deployment=os.getenv("AZUREAI_MODEL"),
            azure_api_version=os.getenv("AZURE_OPENAI_API_VERSION", DEFAULT_AZURE_API_VERSION),
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
            anthropic_model=os.getenv("ANTHROPIC_MODEL", DEFAULT_ANTHROPIC_MODEL),
            temperature=float(os.getenv("MODEL_TEMPERATURE", "1")),
            max_tokens=int(os.getenv("MODEL_MAX_TOKENS", "4096")),
            provider_timeout_seconds=float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "60")),
            reject_empty_message=_env_flag("REJECT_EMPTY_MESSAGE"),
            cors_allow_origins=_env_list("CORS_ALLOW_ORIGINS", ("*",)),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            port=int(os.getenv("PORT", "3001")),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
