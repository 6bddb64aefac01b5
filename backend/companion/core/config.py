from pydantic_settings import BaseSettings
from typing import Optional, List
from enum import Enum


class Environment(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    # Environment
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True

    # Database (the hosted Postgres behind Supabase in production)
    database_url: str
    database_pool_size: int = 10
    database_max_overflow: int = 20
    database_pool_timeout: int = 30

    # Supabase: object storage and identity provider
    supabase_url: Optional[str] = None
    supabase_service_role_key: Optional[str] = None
    storage_bucket: str = "images"
    storage_cache_control: str = "3600"

    # OpenAI
    openai_api_key: str
    openai_model: str = "gpt-4.1"
    openai_temperature: float = 0.7
    openai_max_tokens: Optional[int] = None
    openai_timeout: int = 60
    openai_image_model: str = "dall-e-3"
    openai_image_size: str = "1024x1024"

    # Stripe (checkout session lookup)
    stripe_secret_key: Optional[str] = None

    # Rate Limiting
    rate_limit_enabled: bool = True
    redis_url: Optional[str] = "redis://localhost:6379"
    ai_rate_limit: str = "20/minute"
    # Sliding-window limits per client, requests per minute
    password_requests_per_minute: int = 5
    ai_requests_per_minute: int = 30
    requests_per_minute: int = 100

    # CORS
    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = ["*"]
    cors_allow_headers: List[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_format: Optional[str] = None  # json or console; unset follows the terminal

    # Monitoring
    metrics_enabled: bool = True

    # Application
    app_name: str = "Companion API"
    app_version: str = "0.3.0"
    app_description: str = "AI companion backend: workspaces, personas, chats and image uploads"

    # Image uploads
    max_image_size: int = 10 * 1024 * 1024  # 10MB
    allowed_image_extensions: List[str] = ["png", "jpeg", "jpg", "webp", "gif", "bmp", "svg"]
    image_download_timeout: float = 30.0

    # Chat settings
    chat_title_length: int = 50
    chat_title_max_length: int = 255
    max_message_length: int = 8000

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def get_cors_config(self) -> dict:
        """Get CORS configuration"""
        return {
            "allow_origins": self.cors_origins,
            "allow_credentials": self.cors_allow_credentials,
            "allow_methods": self.cors_allow_methods,
            "allow_headers": self.cors_allow_headers,
        }

    def get_openai_config(self) -> dict:
        """Get OpenAI configuration"""
        return {
            "api_key": self.openai_api_key,
            "model": self.openai_model,
            "temperature": self.openai_temperature,
            "max_tokens": self.openai_max_tokens,
            "timeout": self.openai_timeout,
        }

    def get_supabase_config(self) -> dict:
        """Get Supabase configuration"""
        return {
            "url": self.supabase_url,
            "key": self.supabase_service_role_key,
            "bucket": self.storage_bucket,
        }


# Global settings instance
settings = Settings()


# Environment-specific configurations
def get_environment_config():
    """Get environment-specific configuration overrides"""
    if settings.is_production:
        return {
            "debug": False,
            "log_level": "WARNING",
            "rate_limit_enabled": True,
            "metrics_enabled": True,
        }
    elif settings.is_testing:
        return {
            "debug": False,
            "log_level": "DEBUG",
            "rate_limit_enabled": False,
        }
    else:  # development
        return {
            "debug": True,
            "log_level": "DEBUG",
            "rate_limit_enabled": False,
        }


# Apply environment-specific settings
env_config = get_environment_config()
for key, value in env_config.items():
    if hasattr(settings, key):
        setattr(settings, key, value)
