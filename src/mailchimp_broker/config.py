"""Application configuration."""

import os

from pydantic import PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    mailchimp_client_id: str
    mailchimp_client_secret: str
    mailchimp_redirect_uri: str = "http://127.0.0.1:3001/oauth-callback"
    mailchimp_authorize_url: str = "https://login.mailchimp.com/oauth2/authorize"
    mailchimp_token_url: str = "https://login.mailchimp.com/oauth2/token"
    mailchimp_metadata_url: str = "https://login.mailchimp.com/oauth2/metadata"
    mailchimp_api_domain: str = "api.mailchimp.com"
    frontend_url: str = "http://localhost:8090"
    session_ttl_seconds: PositiveInt | None = None
    http_timeout_seconds: float = 15.0
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def frontend_callback_url(self) -> str:
        """Frontend page that receives the OAuth redirect outcome."""
        return f"{self.frontend_url.rstrip('/')}/oauth-callback"
