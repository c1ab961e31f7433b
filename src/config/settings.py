"""
Configuration Settings

Centralized configuration management using environment variables.
"""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    environment: str = Field(default="dev", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Bot Channel Configuration
    bot_channel_url: Optional[str] = Field(
        default=None,
        alias="BOT_CHANNEL_URL",
        description="Webhook URL of the bot channel that receives outbound messages"
    )
    bot_channel_secret_name: Optional[str] = Field(
        default=None,
        alias="BOT_CHANNEL_SECRET_NAME",
        description="AWS Secrets Manager secret name for the channel secret key"
    )
    webhook_signature_header: str = Field(
        default="X-Webhook-Signature",
        alias="WEBHOOK_SIGNATURE_HEADER",
        description="Header carrying the sha256=<hex> message signature"
    )

    # Operational Settings
    request_timeout: int = Field(
        default=60,
        alias="REQUEST_TIMEOUT",
        description="HTTP request timeout in seconds"
    )
    max_redirects: int = Field(
        default=10,
        alias="MAX_REDIRECTS",
        description="Maximum number of redirects followed per delivery"
    )
    delivery_workers: int = Field(
        default=4,
        alias="DELIVERY_WORKERS",
        description="Thread pool size for asynchronous message delivery"
    )

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


def get_settings() -> Settings:
    """
    Get application settings instance.

    Returns:
        Settings instance with values loaded from environment
    """
    return Settings()
