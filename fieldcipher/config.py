"""Library configuration."""

from functools import lru_cache
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fieldcipher.errors import CryptoKeyError


class Settings(BaseSettings):
    """Settings loaded from SS_CRYPTO_* environment variables."""

    # Default secret key used when a call site does not pass one
    key: Optional[str] = None

    # Default number of encryption passes
    passes: int = 16

    # Logging (only applied by setup_logging / the CLI)
    log_level: str = "WARNING"
    log_json: bool = False

    model_config = SettingsConfigDict(
        env_prefix="SS_CRYPTO_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _check_passes(self) -> "Settings":
        """Reject a negative default pass count."""
        if self.passes < 0:
            raise ValueError(f"SS_CRYPTO_PASSES must be >= 0, got {self.passes}")
        return self

    def resolve_key(self, key: str | None = None) -> str:
        """Return the call-site key, falling back to the configured default.

        Raises:
            CryptoKeyError: If neither is a non-blank string
        """
        if key is None or not key.strip():
            key = self.key
        if key is None or not key.strip():
            raise CryptoKeyError(
                "No secret key supplied and SS_CRYPTO_KEY is not set"
            )
        return key

    def resolve_passes(self, passes: int | None = None) -> int:
        """Return the call-site pass count, or the default when unset or negative."""
        if passes is None or passes < 0:
            return self.passes
        return passes


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
