"""
Centralized configuration.

Loads environment variables and defines global settings.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# config.py -> keymail/ -> src/ -> project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Supabase
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_key: str = Field(..., description="Supabase anon key")
    supabase_service_key: Optional[str] = Field(
        None, description="Service role key for admin operations"
    )

    # LLM Provider
    llm_provider: str = Field(
        "groq",
        description="LLM provider to use: 'gemini' or 'groq'"
    )

    # Gemini
    gemini_api_key: Optional[str] = Field(None, description="Google Gemini API key")
    gemini_model: str = Field("gemini-2.0-flash", description="Gemini model")

    # Groq
    groq_api_key: Optional[str] = Field(None, description="Groq API key")
    groq_model: str = Field(
        "llama-3.3-70b-versatile",
        description="Groq model (llama-3.1-8b-instant, llama-3.3-70b-versatile)"
    )

    # Email generation
    email_temperature: float = Field(
        0.7, ge=0.0, le=1.0, description="Sampling temperature for email drafts"
    )
    email_max_tokens: int = Field(1000, ge=1, description="Max tokens per email draft")

    # Matching
    match_min_score: float = Field(
        0.3, ge=0.0, le=1.0, description="Matches must score strictly above this"
    )
    default_max_matches: int = Field(
        5, ge=1, description="Matches saved per client when not requested"
    )

    # Outreach
    follow_up_days_ago: int = Field(
        1, ge=0, description="Look-back window for showing follow-ups (days)"
    )

    # Logging
    log_level: str = Field("INFO", description="Logging level")


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings."""
    return Settings()


# System constants
PROPERTY_TYPES = [
    "single_family",
    "condo",
    "townhouse",
    "multi_family",
    "land",
]

# Closed vocabularies, enforced by the models
ListingStatus = Literal["active", "sold", "pending", "withdrawn"]

EmailStatus = Literal["draft", "pending", "approved", "sent", "failed"]

ShowingStatus = Literal["scheduled", "completed", "cancelled", "no_show"]

MilestoneType = Literal["home_anniversary", "birthday", "personal_event", "closing"]

# Milestones that repeat every year on the same date
RECURRING_MILESTONE_TYPES = ["home_anniversary", "birthday", "closing"]

RelationshipLevel = Literal["new", "established", "close"]
