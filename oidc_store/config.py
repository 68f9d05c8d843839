"""
Store settings, loaded from the environment.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="OIDC_STORE_", env_file=".env", extra="ignore")

    # Database
    sqlalchemy: str = "sqlite+aiosqlite:///:memory:"
    db_echo: bool = False
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # Table names, fixed once the models are imported.
    applications_table: str = "oidc_applications"
    authorizations_table: str = "oidc_authorizations"
    scopes_table: str = "oidc_scopes"
    tokens_table: str = "oidc_tokens"

    # Decoded JSON column cache.
    decode_cache_size: int = Field(4096, ge=1)
    decode_cache_ttl: int = Field(60, ge=1)

    # Maximum number of tokens removed by a single prune pass.
    prune_batch_size: int = Field(1000, ge=1)


settings = Settings()
