"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Dice engine settings loaded from DICE_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Capacities
    # ==========================================================================
    cache_size: int = Field(default=100, ge=1)  # Parsed expressions kept
    history_size: int = Field(default=1000, ge=1)  # Roll history ring buffer

    # ==========================================================================
    # Termination Caps
    # ==========================================================================
    explosion_cap: int = Field(default=100, ge=0)  # Extra draws per exploding die
    max_reroll_attempts: int = Field(default=100, ge=1)
    max_expression_length: int = Field(default=1000, ge=1)
    max_terms: int = Field(default=100, ge=1)

    # ==========================================================================
    # Behaviour
    # ==========================================================================
    # "kept" = only d20s surviving drop/keep count as natural rolls
    # "any"  = any d20 rolled counts
    natural_policy: Literal["kept", "any"] = "kept"
    batch_budget_ms: float = Field(default=10.0, gt=0)

    # Random source: "auto" prefers the OS CSPRNG, "pseudo" is seeded/reproducible
    rng: Literal["auto", "crypto", "pseudo"] = "auto"
    rng_seed: int | None = None

    # Debug
    debug: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
