"""
Configuration for the Spredd bridge.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .chains import CHAIN_IDS, RPC_URLS, TOKEN_DECIMALS, TOKENS
from .models import FeeConfig


class Settings(BaseSettings):
    """
    Environment-based settings.

    All settings can be overridden via environment variables or a .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Squid API
    squid_api_url: str = Field(
        default="https://v2.api.squidrouter.com",
        description="Squid API base URL",
    )
    squid_integrator_id: str = Field(
        default="",
        description="Integrator ID sent as x-integrator-id",
    )

    # Fees (basis points: 100 = 1%, 0 disables fee collection)
    fee_recipient_address: str = Field(default="", description="Integrator fee recipient")
    fee_basis_points: int = Field(default=0, ge=0, le=10_000)

    # EVM (source chain)
    rpc_url: str = Field(
        default=RPC_URLS[CHAIN_IDS["BASE"]],
        description="JSON-RPC URL of the source chain",
    )
    private_key: str = Field(default="", description="Signer private key")

    # Route
    from_chain_id: str = CHAIN_IDS["BASE"]
    to_chain_id: str = CHAIN_IDS["POLYGON"]
    from_token: str = TOKENS["USDC_BASE"]
    to_token: str = TOKENS["USDC_POLYGON"]
    token_decimals: int = TOKEN_DECIMALS["USDC"]
    slippage_bps: int = Field(default=100, ge=0, le=10_000)

    # HTTP / retry
    http_timeout_seconds: float = 30.0
    retry_max_attempts: int = Field(default=5, ge=1)
    retry_initial_delay_seconds: float = 1.0

    # Status monitoring (60 polls * 5s = 5 minutes)
    status_grace_delay_seconds: float = 3.0
    status_poll_interval_seconds: float = 5.0
    status_max_attempts: int = Field(default=60, ge=1)

    # Transaction receipts
    receipt_timeout_seconds: float = 180.0

    # API server
    host: str = Field(default="127.0.0.1", alias="HOST")
    port: int = Field(default=9000, validation_alias="PORT")
    api_token: Optional[str] = Field(
        default=None,
        description="API token for X-API-Key authentication (disabled when unset)",
    )
    allowed_origins: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        description="CORS allowed origins",
    )

    @property
    def fee_config(self) -> Optional[FeeConfig]:
        if self.fee_basis_points <= 0 or not self.fee_recipient_address:
            return None
        return FeeConfig(
            integrator_address=self.fee_recipient_address,
            fee_bps=self.fee_basis_points,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


@dataclass
class BridgeRoute:
    """Fixed leg of a bridge: chains, tokens and quoting parameters."""

    from_chain_id: str
    to_chain_id: str
    from_token: str
    to_token: str
    token_decimals: int
    slippage_bps: int = 100
    fee_config: Optional[FeeConfig] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "BridgeRoute":
        return cls(
            from_chain_id=settings.from_chain_id,
            to_chain_id=settings.to_chain_id,
            from_token=settings.from_token,
            to_token=settings.to_token,
            token_decimals=settings.token_decimals,
            slippage_bps=settings.slippage_bps,
            fee_config=settings.fee_config,
        )


def load_settings(env_path: Optional[Path] = None) -> Settings:
    """Load settings, optionally from an explicit .env file."""
    return Settings(_env_file=env_path) if env_path else get_settings()
