"""
Configuration management using pydantic-settings and python-dotenv
"""
from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///offline.db",
        description="Async database connection URL",
        alias="DATABASE_URL"
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL queries for debugging",
        alias="DATABASE_ECHO"
    )

    # Generation API
    openai_api_key: Optional[str] = Field(
        default=None,
        description="OpenAI API key used for idea generation",
        alias="OPENAI_API_KEY"
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="Chat model used for idea generation",
        alias="OPENAI_MODEL"
    )
    generation_max_tokens: int = Field(
        default=1500,
        description="Upper bound on completion tokens per generation",
        alias="GENERATION_MAX_TOKENS"
    )
    generation_temperature: float = Field(
        default=0.7,
        description="Sampling temperature for idea generation",
        alias="GENERATION_TEMPERATURE"
    )
    generation_deadline: float = Field(
        default=30.0,
        description="Seconds allowed for market research plus generation",
        alias="GENERATION_DEADLINE"
    )

    # Market research (search) API
    search_api_key: Optional[str] = Field(
        default=None,
        description="Search API key; when missing the static fallback is used",
        alias="SEARCH_API_KEY"
    )
    search_api_url: str = Field(
        default="https://api.exa.ai/search",
        description="Search API endpoint",
        alias="SEARCH_API_URL"
    )
    search_timeout: float = Field(
        default=8.0,
        description="Hard timeout in seconds for one search call",
        alias="SEARCH_TIMEOUT"
    )
    search_deadline: float = Field(
        default=10.0,
        description="Caller-side deadline in seconds for market research",
        alias="SEARCH_DEADLINE"
    )

    # Session tokens
    auth_jwt_secret: Optional[str] = Field(
        default=None,
        description="Secret used to verify session JWTs",
        alias="AUTH_JWT_SECRET"
    )
    auth_jwt_algorithm: str = Field(
        default="HS256",
        description="Session JWT signing algorithm",
        alias="AUTH_JWT_ALGORITHM"
    )
    auth_jwt_audience: Optional[str] = Field(
        default="authenticated",
        description="Expected audience claim of session JWTs",
        alias="AUTH_JWT_AUDIENCE"
    )

    # Quotas and rate limits
    hourly_idea_limit: int = Field(
        default=12,
        description="Ideas a free user may generate per trailing hour",
        alias="HOURLY_IDEA_LIMIT"
    )
    daily_idea_limit: int = Field(
        default=24,
        description="Ideas a free user may generate per calendar day",
        alias="DAILY_IDEA_LIMIT"
    )
    generation_rate_limit: int = Field(
        default=20,
        description="Generation requests per minute per user",
        alias="GENERATION_RATE_LIMIT"
    )
    email_submission_rate_limit: int = Field(
        default=5,
        description="Waitlist submissions per minute per email",
        alias="EMAIL_SUBMISSION_RATE_LIMIT"
    )
    view_cache_ttl: int = Field(
        default=60,
        description="Seconds a cached library or dashboard view stays fresh",
        alias="VIEW_CACHE_TTL"
    )

    # Billing
    allowed_price_ids: List[str] = Field(
        default_factory=list,
        description="Billing price identifiers accepted at checkout",
        alias="ALLOWED_PRICE_IDS"
    )
    billing_webhook_secret: Optional[str] = Field(
        default=None,
        description="Signing secret for billing provider webhooks",
        alias="BILLING_WEBHOOK_SECRET"
    )

    # Application
    environment: str = Field(
        default="development",
        description="Application environment",
        alias="ENVIRONMENT"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
        alias="LOG_LEVEL"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        populate_by_name = True
        extra = "allow"  # Allow extra fields from environment variables


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Global settings instance
settings = get_settings()
