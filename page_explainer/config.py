from dataclasses import dataclass
from typing import Optional
import os
from dotenv import load_dotenv

from page_explainer.constants import (
    PROVIDER_CLAUDE,
    PROVIDER_GEMINI,
    PROVIDER_OPENAI,
    PROVIDERS,
    SPEECH_LANGUAGE,
    SPEECH_RATE,
    SPEECH_RATE_MAX,
    SPEECH_RATE_MIN,
)

_PROVIDER_KEY_VARS = {
    PROVIDER_GEMINI: "GEMINI_API_KEY",
    PROVIDER_CLAUDE: "ANTHROPIC_API_KEY",
    PROVIDER_OPENAI: "OPENAI_API_KEY",
}


@dataclass(frozen=True)
class Config:
    vision_provider: str
    gemini_api_key: Optional[str]
    anthropic_api_key: Optional[str]
    openai_api_key: Optional[str]
    vision_model: Optional[str]
    log_level: str
    speech_language: str
    speech_rate: float

    @property
    def api_key(self) -> str:
        """Key for the selected provider — guaranteed set after validation."""
        keys = {
            PROVIDER_GEMINI: self.gemini_api_key,
            PROVIDER_CLAUDE: self.anthropic_api_key,
            PROVIDER_OPENAI: self.openai_api_key,
        }
        return keys.get(self.vision_provider) or ""

    @classmethod
    def from_env(cls, provider: Optional[str] = None) -> "Config":
        load_dotenv()

        gemini_api_key = os.getenv("GEMINI_API_KEY") or None
        anthropic_api_key = os.getenv("ANTHROPIC_API_KEY") or None
        openai_api_key = os.getenv("OPENAI_API_KEY") or None
        raw_provider = provider or os.getenv("VISION_PROVIDER") or None
        vision_model = os.getenv("VISION_MODEL") or None
        log_level = os.getenv("LOG_LEVEL", "INFO")
        speech_language = os.getenv("SPEECH_LANGUAGE", SPEECH_LANGUAGE)
        speech_rate = os.getenv("SPEECH_RATE", str(SPEECH_RATE))

        keys = {
            PROVIDER_GEMINI: gemini_api_key,
            PROVIDER_CLAUDE: anthropic_api_key,
            PROVIDER_OPENAI: openai_api_key,
        }
        chosen = raw_provider.strip().lower() if raw_provider else next(
            (name for name in PROVIDERS if keys[name]), None
        )

        return cls._validate(
            vision_provider=chosen,
            gemini_api_key=gemini_api_key,
            anthropic_api_key=anthropic_api_key,
            openai_api_key=openai_api_key,
            vision_model=vision_model,
            log_level=log_level,
            speech_language=speech_language,
            speech_rate=float(speech_rate),
        )

    @staticmethod
    def _validate(
        vision_provider: Optional[str],
        gemini_api_key: Optional[str],
        anthropic_api_key: Optional[str],
        openai_api_key: Optional[str],
        vision_model: Optional[str],
        log_level: str,
        speech_language: str,
        speech_rate: float,
    ) -> "Config":
        keys = {
            PROVIDER_GEMINI: gemini_api_key,
            PROVIDER_CLAUDE: anthropic_api_key,
            PROVIDER_OPENAI: openai_api_key,
        }
        match vision_provider:
            case None | "":
                raise ValueError(
                    "One of GEMINI_API_KEY, ANTHROPIC_API_KEY or OPENAI_API_KEY must be set in .env"
                )
            case p if p not in PROVIDERS:
                raise ValueError(f"VISION_PROVIDER must be one of {', '.join(PROVIDERS)}")
            case p if not keys[p]:
                raise ValueError(f"{_PROVIDER_KEY_VARS[p]} must be set in .env")
            case _:
                pass

        match speech_rate:
            case r if SPEECH_RATE_MIN <= r <= SPEECH_RATE_MAX:
                pass
            case _:
                raise ValueError(
                    f"SPEECH_RATE must be between {SPEECH_RATE_MIN} and {SPEECH_RATE_MAX}"
                )

        return Config(
            vision_provider=vision_provider,
            gemini_api_key=gemini_api_key,
            anthropic_api_key=anthropic_api_key,
            openai_api_key=openai_api_key,
            vision_model=vision_model,
            log_level=log_level,
            speech_language=speech_language,
            speech_rate=speech_rate,
        )
