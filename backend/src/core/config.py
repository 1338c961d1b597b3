"""Application configuration using pydantic-settings."""
from functools import lru_cache
from urllib.parse import urlparse

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str
    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")
    # Role assumed inside identity-scoped transactions (row-security policies target it)
    db_role: str = Field(default="authenticated", validation_alias="DB_ROLE")

    # Identity provider - ISSUER is the name the frontend deployment already uses
    auth_issuer: str = Field(validation_alias=AliasChoices("AUTH_ISSUER", "ISSUER"))
    auth_jwks_url_override: str = Field(default="", validation_alias="AUTH_JWKS_URL")
    # Empty string disables the audience check
    auth_audience: str = Field(default="authenticated", validation_alias="AUTH_AUDIENCE")
    auth_algorithms_str: str = Field(default="RS256,ES256", validation_alias="AUTH_ALGORITHMS")
    jwks_cache_lifespan: int = Field(default=3600, validation_alias="JWKS_CACHE_LIFESPAN")
    jwks_fetch_timeout: float = Field(default=5.0, validation_alias="JWKS_FETCH_TIMEOUT")

    # Profiles
    default_avatar_url: str = Field(
        default="https://placehold.co/300x300",
        validation_alias="DEFAULT_AVATAR_URL",
    )

    # Page listing bounds
    page_list_default_limit: int = Field(default=50, validation_alias="PAGE_LIST_DEFAULT_LIMIT")
    page_list_max_limit: int = Field(default=100, validation_alias="PAGE_LIST_MAX_LIMIT")

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:5173",
        validation_alias="CORS_ORIGINS",
    )

    @field_validator("auth_issuer")
    @classmethod
    def validate_issuer_url(cls, v: str) -> str:
        """The issuer doubles as the key-set origin, so it must be an http(s) URL."""
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"AUTH_ISSUER must be an http(s) URL, got '{v}'")
        return v

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    @property
    def auth_algorithms(self) -> list[str]:
        """Parse comma-separated signing algorithms into a list."""
        return [alg.strip() for alg in self.auth_algorithms_str.split(",") if alg.strip()]

    @property
    def auth_jwks_url(self) -> str:
        """Get the JWKS URL for fetching public keys."""
        if self.auth_jwks_url_override:
            return self.auth_jwks_url_override
        return f"{self.auth_issuer.rstrip('/')}/.well-known/jwks.json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
