# walrus/settings.py
from __future__ import annotations

from pydantic import BaseModel
import os


class Settings(BaseModel):
    APP_NAME: str = "business-walrus-server"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3001

    # Dev
    LOG_LEVEL: str = "INFO"

    # CORS (comma-separated)
    CORS_ALLOWED_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173"

    # Rooms
    ROOM_CAPACITY: int = 8
    MIN_PLAYERS: int = 3
    ROOM_IDLE_SEC: int = 600
    SWEEP_INTERVAL_SEC: int = 60
    EVENT_FEED_MAX: int = 200

    # Timers (defaults for new games; host may change them in the lobby)
    ASK_TIMER_SEC: int = 30
    PITCH_TIMER_SEC: int = 120

    # Scoring
    WIN_THRESHOLD: float = 5
    BASE_POINTS: float = 1
    SURPRISE_MULTIPLIER: float = 2
    MUST_HAVE_BONUS: float = 0.25
    CHALLENGE_PENALTY: float = 1
    AI_PITCH_COST: float = 0.5

    # Pitch generation backend (OpenAI-compatible chat completions)
    LLM_API_URL: str = "https://api.openai.com/v1/chat/completions"
    LLM_API_KEY: str = ""
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_TIMEOUT_SEC: float = 15.0


def get_settings() -> Settings:
    return Settings(
        APP_NAME=os.getenv("APP_NAME", "business-walrus-server"),
        HOST=os.getenv("HOST", "0.0.0.0"),
        PORT=int(os.getenv("PORT", "3001")),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),

        CORS_ALLOWED_ORIGINS=os.getenv(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ),

        ROOM_CAPACITY=int(os.getenv("ROOM_CAPACITY", "8")),
        MIN_PLAYERS=int(os.getenv("MIN_PLAYERS", "3")),
        ROOM_IDLE_SEC=int(os.getenv("ROOM_IDLE_SEC", "600")),
        SWEEP_INTERVAL_SEC=int(os.getenv("SWEEP_INTERVAL_SEC", "60")),
        EVENT_FEED_MAX=int(os.getenv("EVENT_FEED_MAX", "200")),

        ASK_TIMER_SEC=int(os.getenv("ASK_TIMER_SEC", "30")),
        PITCH_TIMER_SEC=int(os.getenv("PITCH_TIMER_SEC", "120")),

        WIN_THRESHOLD=float(os.getenv("WIN_THRESHOLD", "5")),
        BASE_POINTS=float(os.getenv("BASE_POINTS", "1")),
        SURPRISE_MULTIPLIER=float(os.getenv("SURPRISE_MULTIPLIER", "2")),
        MUST_HAVE_BONUS=float(os.getenv("MUST_HAVE_BONUS", "0.25")),
        CHALLENGE_PENALTY=float(os.getenv("CHALLENGE_PENALTY", "1")),
        AI_PITCH_COST=float(os.getenv("AI_PITCH_COST", "0.5")),

        LLM_API_URL=os.getenv("LLM_API_URL", "https://api.openai.com/v1/chat/completions"),
        LLM_API_KEY=os.getenv("LLM_API_KEY", ""),
        LLM_MODEL=os.getenv("LLM_MODEL", "gpt-4o-mini"),
        LLM_TIMEOUT_SEC=float(os.getenv("LLM_TIMEOUT_SEC", "15")),
    )
