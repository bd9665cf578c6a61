"""Settings configuration"""
import json
from functools import lru_cache
from typing import Annotated, Dict, List, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _default_priority_bonus() -> Dict[str, float]:
    return {"gemini": 50.0, "groq": -20.0, "openai": -30.0}


def _default_complexity_bonus() -> Dict[str, Dict[str, float]]:
    return {
        "gemini": {"high": 15.0, "medium": 10.0},
        "groq": {"low": 2.0},
    }


class Settings(BaseSettings):
    """Application settings with complete configuration"""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", case_sensitive=False,
        validate_assignment=True, populate_by_name=True
    )

    # Application
    app_name: str = Field(default="ESG Intelligence Service", validation_alias="APP_NAME")
    version: str = "1.0.0"
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    debug: bool = Field(default=False, validation_alias="DEBUG")

    # Server
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=3001, validation_alias="PORT", ge=1, le=65535)

    # Providers
    provider_order: Annotated[List[str], NoDecode] = Field(
        default=["gemini", "groq", "openai"], validation_alias="PROVIDER_ORDER"
    )
    use_mock_providers: bool = Field(default=False, validation_alias="USE_MOCK_PROVIDERS")

    gemini_api_key: Optional[SecretStr] = Field(default=None, validation_alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-1.5-flash-latest", validation_alias="GEMINI_MODEL")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        validation_alias="GEMINI_BASE_URL",
    )
    gemini_rate_limit: int = Field(default=900, validation_alias="GEMINI_RATE_LIMIT", ge=1)

    groq_api_key: Optional[SecretStr] = Field(default=None, validation_alias="GROQ_API_KEY")
    groq_model: str = Field(default="llama3-8b-8192", validation_alias="GROQ_MODEL")
    groq_base_url: str = Field(
        default="https://api.groq.com/openai/v1", validation_alias="GROQ_BASE_URL"
    )
    groq_rate_limit: int = Field(default=100, validation_alias="GROQ_RATE_LIMIT", ge=1)

    openai_api_key: Optional[SecretStr] = Field(default=None, validation_alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-3.5-turbo", validation_alias="OPENAI_MODEL")
    openai_rate_limit: int = Field(default=50, validation_alias="OPENAI_RATE_LIMIT", ge=1)

    # Request execution
    max_retries: int = Field(default=3, validation_alias="MAX_RETRIES", ge=1)
    provider_timeout_seconds: float = Field(
        default=15.0, validation_alias="PROVIDER_TIMEOUT_SECONDS", gt=0
    )
    generation_temperature: float = Field(
        default=0.3, validation_alias="GENERATION_TEMPERATURE", ge=0, le=2
    )
    max_output_tokens: int = Field(default=4000, validation_alias="MAX_OUTPUT_TOKENS", ge=1)

    # Circuit breaker / rate limit prediction
    circuit_failure_threshold: int = Field(
        default=5, validation_alias="CIRCUIT_FAILURE_THRESHOLD", ge=1
    )
    circuit_open_seconds: float = Field(default=60.0, validation_alias="CIRCUIT_OPEN_SECONDS", gt=0)
    rate_limit_window_seconds: float = Field(
        default=60.0, validation_alias="RATE_LIMIT_WINDOW_SECONDS", gt=0
    )
    rate_limit_safety_margin: float = Field(
        default=0.8, validation_alias="RATE_LIMIT_SAFETY_MARGIN", gt=0, le=1
    )

    # Provider selection
    provider_priority_bonus: Dict[str, float] = Field(
        default_factory=_default_priority_bonus, validation_alias="PROVIDER_PRIORITY_BONUS"
    )
    provider_complexity_bonus: Dict[str, Dict[str, float]] = Field(
        default_factory=_default_complexity_bonus, validation_alias="PROVIDER_COMPLEXITY_BONUS"
    )

    # Cache
    database_url: str = Field(
        default="sqlite+aiosqlite:///./esg_intelligence.db", validation_alias="DATABASE_URL"
    )
    cache_ttl_hours: float = Field(default=24.0, validation_alias="CACHE_TTL_HOURS", gt=0)
    cache_sweep_interval_seconds: int = Field(
        default=3600, validation_alias="CACHE_SWEEP_INTERVAL_SECONDS", ge=0
    )

    # Health monitoring
    health_check_interval_seconds: int = Field(
        default=30, validation_alias="HEALTH_CHECK_INTERVAL_SECONDS", ge=0
    )

    # Queries
    max_query_length: int = Field(default=1000, validation_alias="MAX_QUERY_LENGTH", ge=1)

    # Rate Limiting
    rate_limit_enabled: bool = Field(default=True, validation_alias="RATE_LIMIT_ENABLED")
    rate_limit_requests: int = Field(default=100, validation_alias="RATE_LIMIT_REQUESTS")

    # Security
    cors_origins: Annotated[List[str], NoDecode] = Field(
        default=["http://localhost:3000", "http://localhost:5173"], validation_alias="CORS_ORIGINS"
    )
    cors_allow_credentials: bool = Field(default=True, validation_alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: Annotated[List[str], NoDecode] = Field(
        default=["*"], validation_alias="CORS_ALLOW_METHODS"
    )
    cors_allow_headers: Annotated[List[str], NoDecode] = Field(
        default=["*"], validation_alias="CORS_ALLOW_HEADERS"
    )

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="console", validation_alias="LOG_FORMAT")

    @field_validator(
        "cors_origins", "cors_allow_methods", "cors_allow_headers", "provider_order",
        mode="before",
    )
    @classmethod
    def parse_list(cls, v):
        if isinstance(v, str):
            # Handle JSON array format
            if v.startswith("["):
                try:
                    return json.loads(v)
                except (json.JSONDecodeError, ValueError):
                    pass
            if v == "*":
                return ["*"]
            # Handle comma-separated format
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "console"):
            raise ValueError("LOG_FORMAT must be 'json' or 'console'")
        return v

    # Properties
    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_hours * 3600

    def rate_limit_for(self, provider: str) -> int:
        limits = {
            "gemini": self.gemini_rate_limit,
            "groq": self.groq_rate_limit,
            "openai": self.openai_rate_limit,
        }
        return limits.get(provider, 100)

    def api_key_for(self, provider: str) -> Optional[str]:
        keys = {
            "gemini": self.gemini_api_key,
            "groq": self.groq_api_key,
            "openai": self.openai_api_key,
        }
        key = keys.get(provider)
        return key.get_secret_value() if key else None


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
