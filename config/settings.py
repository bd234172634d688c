"""Configuration settings loaded from .env file."""

from pathlib import Path

from pydantic import ValidationError as PydanticValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from config.exceptions import InvalidConfigError


class Settings(BaseSettings):
    """Application settings, loaded from .env (prefix ``CHAPTERSMITH_``).

    The generation backend owns models and persistence; the client only
    needs to know where it lives and how long to wait for it.
    """

    # Backend
    backend_url: str = "http://localhost:8000"
    request_timeout: float = 30.0
    generation_timeout: float = 300.0  # Generation requests run a full model call

    # Word-count conformance band (inclusive)
    word_count_min: int = 1400
    word_count_max: int = 1800

    # Clipboard
    clipboard_enabled: bool = True

    # Logging
    log_dir: Path = Path("./data/logs")

    model_config = SettingsConfigDict(
        env_prefix="CHAPTERSMITH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("backend_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("backend_url must not be empty")
        return v.rstrip("/")

    @field_validator("request_timeout", "generation_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @field_validator("word_count_min", "word_count_max")
    @classmethod
    def validate_word_counts(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Word count must be non-negative")
        return v

    @model_validator(mode="after")
    def validate_word_range(self) -> "Settings":
        if self.word_count_min >= self.word_count_max:
            raise ValueError(
                f"word_count_min ({self.word_count_min}) must be less than "
                f"word_count_max ({self.word_count_max})"
            )
        return self


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance.

    Raises:
        InvalidConfigError: If the environment or .env holds invalid values.
    """
    global _settings_instance
    if _settings_instance is None:
        try:
            _settings_instance = Settings()
        except PydanticValidationError as e:
            problems = []
            for err in e.errors():
                field = ".".join(str(p) for p in err["loc"]) or "settings"
                problems.append(f"{field}: {err['msg']}")
            raise InvalidConfigError("Invalid configuration: " + "; ".join(problems)) from e
    return _settings_instance
