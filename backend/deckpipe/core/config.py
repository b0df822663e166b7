from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class ModeEnum(str, Enum):
    development = "development"
    production = "production"
    testing = "testing"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── App ───────────────────────────────────────────────────
    MODE: ModeEnum = ModeEnum.development
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "DECKPIPE"
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # ── OpenAI / text generation ──────────────────────────────
    OPENAI_API_KEY: str = ""
    OUTLINE_MODEL: str = "openai:gpt-4o"
    CONTENT_MODEL: str = "openai:gpt-4o-mini"
    SVG_MODEL: str = "openai:gpt-4o"

    # ── Image generation backend ──────────────────────────────
    IMAGE_API_BASE: str = "https://api.openai.com/v1"
    IMAGE_MODEL: str = "dall-e-3"
    IMAGE_SIZE: str = "1024x1024"
    IMAGE_REQUEST_TIMEOUT_SECONDS: float = 60.0
    IMAGE_POLL_MAX_ATTEMPTS: int = 10
    IMAGE_POLL_INTERVAL_SECONDS: float = 3.0

    # ── Visual resolution (pipeline side) ─────────────────────
    VISUAL_POLL_MAX_ATTEMPTS: int = 10
    VISUAL_POLL_INTERVAL_SECONDS: float = 3.0
    VISUAL_MAX_RETRIES: int = 3
    DEFAULT_VISUAL_KIND: Literal["image", "svg"] = "svg"
    FALLBACK_IMAGE_URL: str = (
        "https://upload.wikimedia.org/wikipedia/commons/4/4f/"
        "Black_hole_-_Messier_87_crop_max_res.jpg"
    )

    # ── Deck assembly ─────────────────────────────────────────
    SLIDE_DELAY_SECONDS: float = 0.5
    AGENDA_MAX_ITEMS: int = 5
    DECK_BYLINE: str = "Generated by Deckpipe"

    # ── Job store ─────────────────────────────────────────────
    JOB_TTL_SECONDS: float = 900.0
    JOB_SWEEP_INTERVAL_SECONDS: float = 60.0

    # ── Saved decks ───────────────────────────────────────────
    SAVED_DECKS_DIR: Path = Path("data") / "saved_decks"

    @property
    def IMAGE_WORKER_BUDGET_SECONDS(self) -> float:
        """Worst case for one image job: the create call plus every status poll."""
        return self.IMAGE_REQUEST_TIMEOUT_SECONDS + self.IMAGE_POLL_MAX_ATTEMPTS * self.IMAGE_POLL_INTERVAL_SECONDS


settings = Settings()
