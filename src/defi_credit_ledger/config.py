"""Runtime settings loaded from the environment."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from defi_credit_ledger.core.models import ZERO_ADDRESS


class Settings(BaseSettings):
    """
    Ledger settings.

    Values come from ``CREDIT_LEDGER_*`` environment variables or a ``.env`` file.

    """

    admin_address: str = Field(default=ZERO_ADDRESS, description="Privileged principal for admin operations")
    trusted_provers: list[str] = Field(default_factory=list, description="Prover addresses whose claims are accepted")
    chain: str = Field(default="optimism", description="Active chain name")
    blocks_per_day: int = Field(default=43200, description="Average blocks per day on the active chain")
    price_exponent: int = Field(default=8, description="Fixed-point exponent of USD quotes")
    price_api_url: str = Field(default="https://coins.llama.fi", description="DeFiLlama coins API base URL")
    price_cache_ttl: int = Field(default=60, description="Seconds a fetched price stays valid")
    store_path: str | None = Field(default=None, description="JSON ledger file, in-memory when unset")

    model_config = SettingsConfigDict(env_prefix="CREDIT_LEDGER_", env_file=".env", env_file_encoding="utf-8")

    @field_validator("admin_address")
    @classmethod
    def _lower_admin(cls, value: str) -> str:
        return value.lower()

    @field_validator("trusted_provers")
    @classmethod
    def _lower_provers(cls, value: list[str]) -> list[str]:
        return [address.lower() for address in value]


@lru_cache
def get_settings() -> Settings:
    return Settings()
