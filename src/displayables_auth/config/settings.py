"""Configuration Settings for Displayables Auth

Manages environment variables and application configuration.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings
from typing import Optional


DEFAULT_SECRET_KEY = "dev-secret-change-in-production-displayables"


class Settings(BaseSettings):
    """Application settings"""

    # Service info
    service_name: str = "displayables-auth"
    service_version: str = "1.0.0"
    environment: str = "development"

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False

    # Database configuration
    database_url: str = "sqlite+aiosqlite:///./displayables.sqlite"
    sql_echo: bool = False

    # Session tokens (HS256, self-contained, no server-side revocation)
    secret_key: str = DEFAULT_SECRET_KEY
    jwt_algorithm: str = "HS256"
    session_token_expire_hours: int = 3

    # Credential vault (PBKDF2-HMAC-SHA512)
    password_hash_iterations: int = 28000
    password_hash_length: int = 512  # bytes
    password_salt_bytes: int = 128

    # Local account rules
    username_min_length: int = 3
    username_max_length: int = 20
    password_min_length: int = 6
    password_max_length: int = 64
    restricted_usernames: list[str] = ["admin", "administrator", "example"]

    # External identity providers
    provider_timeout_seconds: float = 10.0

    google_client_id: Optional[str] = None
    google_discovery_url: str = "https://accounts.google.com/.well-known/openid-configuration"
    google_issuers: list[str] = ["https://accounts.google.com", "accounts.google.com"]

    facebook_graph_url: str = "https://graph.facebook.com/v3.2"

    github_client_id: Optional[str] = None
    github_client_secret: Optional[str] = None
    github_api_url: str = "https://api.github.com"
    github_oauth_url: str = "https://github.com/login/oauth"
    github_redirect_uri: str = "http://localhost:8080/login"
    github_exchange_code_length: int = 20

    # Messages
    default_locale: str = "en"

    # CORS configuration
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]
    cors_expose_headers: list[str] = ["Authorization"]

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance

    Returns:
        Settings instance
    """
    return Settings()
