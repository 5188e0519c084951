"""
app/config.py — Pydantic BaseSettings configuration
Credentials for Gemini and Supabase, rate-limit policies, logging level.
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ────────────────────────────────────────────────────────────
    environment: str = "development"
    log_level: str = "INFO"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000"]

    # ── Google Gemini (recipe writer) ─────────────────────────────────────────
    gemini_api_key: str = ""
    gemini_recipe_model: str = "gemini-2.5-flash"
    recipe_max_output_tokens: int = 1500

    # ── Supabase ──────────────────────────────────────────────────────────────
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # ── Rate limiting ─────────────────────────────────────────────────────────
    # Fixed-window policies for the protected operations. LLM calls get the
    # tightest budget.
    rate_limits: dict[str, dict[str, int]] = {
        "generate": {"window_ms": 60 * 60 * 1000, "max_requests": 30},
        "saveRecipe": {"window_ms": 60 * 60 * 1000, "max_requests": 60},
        "getRecipe": {"window_ms": 60 * 1000, "max_requests": 60},
        "listRecipes": {"window_ms": 60 * 1000, "max_requests": 60},
        "feedback": {"window_ms": 60 * 60 * 1000, "max_requests": 100},
    }
    # Expired-entry sweep interval for the in-memory store
    rate_limit_sweep_seconds: float = 60.0
    # slowapi limit string for the catalogue read endpoints
    catalog_rate_limit: str = "30/minute"

    # ── Gemini pricing (USD per token) ────────────────────────────────────────
    gemini_pricing: dict[str, dict[str, float]] = {
        "gemini-2.0-flash-lite": {
            "input": 0.075 / 1_000_000,
            "output": 0.30 / 1_000_000,
        },
        "gemini-2.5-flash": {
            "input": 0.30 / 1_000_000,
            "output": 2.50 / 1_000_000,
        },
    }

    @field_validator("environment")
    @classmethod
    def validate_env(cls, v: str) -> str:
        allowed = {"development", "production", "testing"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)


@lru_cache()
def get_settings() -> Settings:
    """Return cached Settings instance. Use this everywhere."""
    return Settings()
