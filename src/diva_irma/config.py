"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    irma_api_server_url: str
    irma_api_server_public_key: str
    api_key: str
    verification_endpoint: str = "/api/v2/verification"
    signature_endpoint: str = "/api/v2/signature"
    issue_endpoint: str = "/api/v2/issue"
    jwt_algorithm: str = "RS256"
    jwt_issuer: str = "diva"
    disclosure_request_subject: str = "verification_request"
    signature_request_subject: str = "signature_request"
    issue_request_subject: str = "issue_request"
    disclosure_result_subject: str = "disclosure_result"
    signature_result_subject: str = "abs_result"
    session_validity: int = 60
    session_timeout: int = 600
    issue_validity: int = 600
    store_disclosure_jwt: bool = False
    state_backend: str = "memory"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    supabase_state_table: str = "diva_state"
    cookie_name: str = "diva-session"
    http_timeout_seconds: float = 10
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

