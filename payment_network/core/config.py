from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_HOSTED_URL = "https://commerce-api.handpoint.com/hosted/"
DEFAULT_MODAL_HOSTED_URL = "https://commerce-api.handpoint.com/hosted/modal/"
DEFAULT_DIRECT_URL = "https://commerce-api.handpoint.com/direct/"


class Settings(BaseSettings):
    APP_NAME: str = "Payment Network Gateway"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"

    CORS_ORIGINS: str = "*"
    CORS_CREDENTIALS: bool = True

    # ── Payment gateway settings ──
    # Required, no defaults for the signing identity
    GATEWAY_MERCHANT_ID: str
    GATEWAY_MERCHANT_SECRET: str
    # Endpoint overrides
    GATEWAY_HOSTED_URL: str = DEFAULT_HOSTED_URL
    GATEWAY_MODAL_HOSTED_URL: str = DEFAULT_MODAL_HOSTED_URL
    GATEWAY_DIRECT_URL: str = DEFAULT_DIRECT_URL
    # "hosted" (full page redirect) or "modal" (hosted modal variant)
    GATEWAY_INTEGRATION_TYPE: str = "hosted"
    # Direct API timeout in seconds
    GATEWAY_TIMEOUT: float = 30.0
    GATEWAY_DEBUG: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = ["development", "staging", "production"]
        if v.lower() not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of: {allowed}")
        return v.lower()

    @field_validator("GATEWAY_MERCHANT_ID", "GATEWAY_MERCHANT_SECRET")
    @classmethod
    def validate_merchant_credentials(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("merchant credentials must not be blank")
        return v

    @field_validator("GATEWAY_INTEGRATION_TYPE")
    @classmethod
    def validate_integration_type(cls, v: str) -> str:
        allowed = ["hosted", "modal"]
        if v.lower() not in allowed:
            raise ValueError(f"GATEWAY_INTEGRATION_TYPE must be one of: {allowed}")
        return v.lower()

    @field_validator("GATEWAY_TIMEOUT")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("GATEWAY_TIMEOUT must be greater than zero")
        return v

settings = Settings()
