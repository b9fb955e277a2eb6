"""Configuration using pydantic-settings."""
from typing import Literal, Optional

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_VIES_BASE_URL = "https://ec.europa.eu/taxation_customs/vies/rest-api"

RetryBackoff = Literal["constant", "exponential", "jittered"]


class Settings(BaseSettings):
    """VAT validation settings loaded from environment variables.

    Built once at startup and passed to ``VatValidator`` / the adapters;
    nothing reads the environment after that.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")

    # Adapter selection: "vies", "offline" or a dotted path ("pkg.module:Class")
    adapter: str = Field("vies", validation_alias="VAT_ADAPTER")
    fallback_adapter: Optional[str] = Field(None, validation_alias="VAT_FALLBACK_ADAPTER")

    # VIES REST API
    vies_base_url: str = Field(DEFAULT_VIES_BASE_URL, validation_alias="VIES_BASE_URL")
    vies_timeout_seconds: float = Field(30.0, gt=0, validation_alias="VIES_TIMEOUT_SECONDS")
    vies_recv_timeout_seconds: float = Field(15.0, gt=0, validation_alias="VIES_RECV_TIMEOUT_SECONDS")
    vies_max_retries: int = Field(3, ge=0, validation_alias="VIES_MAX_RETRIES")
    vies_retry_delay_seconds: float = Field(1.0, ge=0, validation_alias="VIES_RETRY_DELAY_SECONDS")
    vies_retry_backoff: RetryBackoff = Field("exponential", validation_alias="VIES_RETRY_BACKOFF")

    @field_validator("vies_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = (v or "").strip().rstrip("/")
        if not v:
            raise ValueError("VIES_BASE_URL must not be empty")
        return v

    @field_validator("adapter", "fallback_adapter")
    @classmethod
    def normalize_adapter_name(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        """Lower-case short names; keep dotted import paths as given."""
        if v is None:
            return None
        v = v.strip()
        if not v:
            if info.field_name == "adapter":
                raise ValueError("VAT_ADAPTER must not be empty")
            return None
        if "." not in v and ":" not in v:
            return v.lower()
        return v

    @field_validator("vies_retry_backoff", mode="before")
    @classmethod
    def lower_backoff(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


def get_settings() -> Settings:
    """Fresh Settings read from the environment (and .env when present)."""
    return Settings()
