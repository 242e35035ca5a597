"""Runtime settings loaded from environment variables."""

from functools import lru_cache
from typing import Annotated

from pydantic import Field, HttpUrl, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

NonEmptyStr = Annotated[str, Field(min_length=1)]
NonNegativeInt = Annotated[int, Field(ge=0)]
PositiveFloat = Annotated[float, Field(gt=0.0)]
PositiveInt = Annotated[int, Field(gt=0)]
SigningSecret = Annotated[str, Field(min_length=32)]


class Settings(BaseSettings):
    """Environment-driven application settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    database_url: NonEmptyStr = Field(validation_alias="DATABASE_URL")
    token_issuer: NonEmptyStr = Field(default="techbranch", validation_alias="TOKEN_ISSUER")
    token_secret: SigningSecret = Field(validation_alias="TOKEN_SECRET")
    access_token_ttl_seconds: PositiveInt = Field(
        default=3600,
        validation_alias="ACCESS_TOKEN_TTL_SECONDS",
    )
    refresh_token_ttl_seconds: PositiveInt = Field(
        default=30 * 24 * 3600,
        validation_alias="REFRESH_TOKEN_TTL_SECONDS",
    )
    redis_url: NonEmptyStr = Field(
        default="redis://localhost:6379",
        validation_alias="REDIS_URL",
    )
    access_session_db: NonNegativeInt = Field(default=0, validation_alias="ACCESS_SESSION_DB")
    refresh_session_db: NonNegativeInt = Field(default=1, validation_alias="REFRESH_SESSION_DB")
    google_client_id: NonEmptyStr = Field(validation_alias="GOOGLE_CLIENT_ID")
    google_client_secret: NonEmptyStr = Field(validation_alias="GOOGLE_CLIENT_SECRET")
    google_redirect_url: HttpUrl = Field(validation_alias="GOOGLE_REDIRECT_URL")
    google_oauth_state: NonEmptyStr = Field(validation_alias="GOOGLE_OAUTH_STATE")
    oauth_http_timeout_seconds: PositiveFloat = Field(
        default=10.0,
        validation_alias="OAUTH_HTTP_TIMEOUT_SECONDS",
    )
    request_timeout_seconds: PositiveFloat = Field(
        default=10.0,
        validation_alias="REQUEST_TIMEOUT_SECONDS",
    )
    grpc_server_address: NonEmptyStr = Field(
        default="0.0.0.0:50051",
        validation_alias="GRPC_SERVER_ADDRESS",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @model_validator(mode="after")
    def _validate_session_isolation(self) -> "Settings":
        """Access and refresh sessions must live in distinct logical databases."""

        if self.access_session_db == self.refresh_session_db:
            raise ValueError("ACCESS_SESSION_DB and REFRESH_SESSION_DB must differ")
        if self.refresh_token_ttl_seconds < self.access_token_ttl_seconds:
            raise ValueError("REFRESH_TOKEN_TTL_SECONDS must not be shorter than access TTL")
        return self


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load and cache application settings."""

    return Settings()  # type: ignore[call-arg]
