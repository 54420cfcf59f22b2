"""Application configuration with comprehensive validation."""
from typing import Literal, List
from functools import lru_cache
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# SCAT5 DEFAULT CONTENT
# =============================================================================
# Standard 5-word immediate memory list (list A) and the 10-word alternative.
# Digit sequences for digits backwards, shortest first.
# =============================================================================

DEFAULT_WORD_LIST: List[str] = ["Elbow", "Apple", "Carpet", "Saddle", "Bubble"]

DEFAULT_DIGIT_SEQUENCES: List[List[int]] = [
    [7, 2, 4],
    [3, 8, 1, 6],
    [5, 2, 9, 4, 1],
    [2, 9, 6, 8, 3, 7],
]


class Settings(BaseSettings):
    """Engine settings with validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "SCAT5 Assessment Engine"
    APP_VERSION: str = "1.0.0"
    APP_ENV: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    # Display handshake
    DISPLAY_TIMEOUT_SECONDS: float = Field(default=5.0, ge=0.1, le=60.0)
    DISPLAY_RETRY_ATTEMPTS: int = Field(default=1, ge=0, le=5)

    # Concentration
    DIGIT_SPAN_MAX_CONSECUTIVE_FAILS: int = Field(default=2, ge=1, le=5)
    DIGIT_SEQUENCES: List[List[int]] = Field(default_factory=lambda: [list(s) for s in DEFAULT_DIGIT_SEQUENCES])

    # Memory
    MEMORY_WORD_LIST: List[str] = Field(default_factory=lambda: list(DEFAULT_WORD_LIST))
    MEMORY_TRIAL_COUNT: int = Field(default=3, ge=3, le=3)

    # Balance
    BALANCE_TRIAL_SECONDS: int = Field(default=20, ge=1, le=120)
    BALANCE_MAX_ERRORS_PER_TRIAL: int = Field(default=10, ge=1, le=50)

    # Voice commands
    COMMAND_FUZZY_MATCH_THRESHOLD: float = Field(default=85.0, ge=50.0, le=100.0)
    HELP_AUTO_HIDE_SECONDS: float = Field(default=8.0, ge=0.0, le=60.0)

    @field_validator("MEMORY_WORD_LIST")
    @classmethod
    def validate_word_list(cls, v: List[str]) -> List[str]:
        if len(v) not in (5, 10):
            raise ValueError(f"MEMORY_WORD_LIST must hold 5 or 10 words, got {len(v)}")
        if len({w.strip().lower() for w in v}) != len(v):
            raise ValueError("MEMORY_WORD_LIST must not contain duplicate words")
        return v

    @field_validator("DIGIT_SEQUENCES")
    @classmethod
    def validate_digit_sequences(cls, v: List[List[int]]) -> List[List[int]]:
        for seq in v:
            if not seq or any(d < 0 or d > 9 for d in seq):
                raise ValueError(f"Digit sequences must be non-empty lists of 0-9, got {seq}")
        return v

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Ensure production never runs with fatal-in-development assertions."""
        if self.APP_ENV == "production" and self.DEBUG:
            raise ValueError("DEBUG must be False in production")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
