"""
Application configuration with Pydantic Settings for validation and type safety.
Supports environment-specific configurations and .env file loading.
"""

from enum import Enum
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


class Environment(str, Enum):
    """Application environment types"""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """
    Application settings with validation.
    Settings are loaded from environment variables or .env file.
    """

    # Application settings
    app_name: str = Field(default="NutriFlow", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT, description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode")

    # Server settings
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")

    # Database settings
    database_url: str = Field(
        default="postgresql+psycopg2://postgres@localhost:5432/nutriflow",
        description="SQLAlchemy database URL",
    )
    db_echo: bool = Field(default=False, description="SQLAlchemy echo SQL statements")
    db_init_attempts: int = Field(
        default=8, ge=1, description="Database initialization retry attempts"
    )
    db_init_delay_sec: float = Field(
        default=2.0, ge=0, description="Delay between DB init attempts"
    )

    # Hosted auth / storage (Supabase)
    supabase_url: Optional[str] = Field(default=None, description="Supabase project URL")
    supabase_service_role_key: Optional[str] = Field(
        default=None, description="Supabase service role key (storage access)"
    )
    supabase_jwt_secret: str = Field(
        default="", description="Secret used to verify dietitian access tokens"
    )
    supabase_jwt_audience: str = Field(
        default="authenticated", description="Expected audience of dietitian tokens"
    )
    storage_bucket: str = Field(default="documents", description="Storage bucket")
    dietitian_session_cookie: str = Field(
        default="sb-access-token", description="Cookie carrying the dietitian token"
    )

    # Client portal
    client_auth_secret: str = Field(
        default="", description="HMAC secret for client portal tokens"
    )
    client_token_ttl_hours: int = Field(default=24, ge=1)
    client_session_cookie: str = Field(default="client-session")

    # Stripe
    stripe_secret_key: Optional[str] = Field(default=None)
    stripe_webhook_secret: Optional[str] = Field(default=None)
    stripe_payments_webhook_secret: Optional[str] = Field(
        default=None, description="Falls back to stripe_webhook_secret"
    )
    trial_days: int = Field(default=14, ge=0)
    app_base_url: str = Field(
        default="http://localhost:3000", description="Frontend base URL"
    )

    # Groq (AI meal plans)
    groq_api_key: Optional[str] = Field(default=None)
    groq_model: str = Field(default="llama-3.1-8b-instant")
    groq_timeout_sec: float = Field(default=30.0, gt=0)
    ai_max_attempts: int = Field(default=3, ge=1)

    # Rate limiting
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_storage_uri: str = Field(default="memory://")
    rate_limit_default: str = Field(default="100/minute")
    rate_limit_login: str = Field(default="5 per 15 minutes")
    rate_limit_session: str = Field(default="100/minute")
    rate_limit_data: str = Field(default="30/minute")
    rate_limit_documents: str = Field(default="20/minute")
    rate_limit_messages: str = Field(default="10/minute")
    rate_limit_gdpr: str = Field(default="5/minute")
    rate_limit_ai: str = Field(default="20/hour")
    rate_limit_security: str = Field(default="20/minute")
    trust_proxy: bool = Field(
        default=False, description="Trust X-Forwarded-For / X-Real-IP headers"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="%(asctime)s %(levelname)s %(name)s: %(message)s",
        description="Log format string",
    )

    # CORS settings
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins",
    )
    cors_allow_credentials: bool = Field(
        default=True, description="Allow CORS credentials"
    )
    cors_allow_methods: list[str] = Field(
        default=["*"], description="Allowed HTTP methods"
    )
    cors_allow_headers: list[str] = Field(
        default=["*"], description="Allowed HTTP headers"
    )

    # API settings
    api_prefix: str = Field(default="/api", description="API route prefix")
    api_title: str = Field(
        default="NutriFlow API", description="API documentation title"
    )
    api_description: str = Field(
        default="Practice management for dietitians with a client portal",
        description="API documentation description",
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v):
        """Validate and normalize environment value"""
        if isinstance(v, str):
            return Environment(v.lower())
        return v

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.environment == Environment.PRODUCTION

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.environment == Environment.DEVELOPMENT

    def is_testing(self) -> bool:
        """Check if running in testing environment"""
        return self.environment == Environment.TESTING

    @property
    def payments_webhook_secret(self) -> Optional[str]:
        return self.stripe_payments_webhook_secret or self.stripe_webhook_secret


# Global settings instance
settings = Settings()
