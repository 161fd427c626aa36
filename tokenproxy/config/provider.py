"""Identity provider configuration settings."""

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class ProviderSettings(BaseModel):
    """OAuth2 provider client credentials and token endpoint."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    client_id: str = Field(
        min_length=1,
        description="OAuth client id registered with the provider",
    )

    client_secret: SecretStr = Field(
        description="OAuth client secret; only ever sent to the token endpoint",
    )

    redirect_uri: str = Field(
        min_length=1,
        description="Redirect URI the authorization code was issued for",
    )

    token_url: str = Field(
        min_length=1,
        description="Provider token endpoint URL",
    )

    timeout: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Upper bound in seconds for the whole exchange, retries included",
    )

    max_retries: int = Field(
        default=2,
        ge=0,
        le=5,
        description="Retries for connection failures that happen before the provider answers",
    )

    retry_backoff: float = Field(
        default=0.2,
        ge=0,
        description="Exponential backoff multiplier in seconds between retries",
    )

    @field_validator("client_secret")
    @classmethod
    def validate_client_secret(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("client secret must not be empty")
        return v

    @field_validator("token_url")
    @classmethod
    def validate_token_url(cls, v: str) -> str:
        if not v.startswith(("https://", "http://")):
            raise ValueError("token url must be an http(s) URL")
        return v
