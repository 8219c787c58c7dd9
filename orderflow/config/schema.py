"""Pydantic v2 configuration schema with strict validation."""

from enum import StrEnum

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from web3 import Web3


class ExecutionMode(StrEnum):
    DRY_RUN = "dry-run"
    LIVE = "live"


class Environment(StrEnum):
    SANDBOX = "sandbox"
    PRODUCTION = "production"


def _check_address(value: str) -> str:
    if value and not Web3.is_address(value):
        raise ValueError(f"not a well-formed address: {value}")
    return value


class MarketplaceConfig(BaseModel):
    model_config = {"extra": "forbid"}

    environment: Environment = Environment.SANDBOX
    base_url: str = ""  # empty = environment default
    chain_name: str = ""  # empty = environment default
    publishable_key: str = ""
    timeout_s: float = Field(default=30.0, gt=0.0)


class NetworkConfig(BaseModel):
    model_config = {"extra": "forbid"}

    rpc_url: str = ""  # empty = environment default
    chain_id: int = Field(default=0, ge=0)  # 0 = environment default
    request_timeout_s: float = Field(default=30.0, gt=0.0)
    receipt_timeout_s: float = Field(default=120.0, gt=0.0)


class SeaportConfig(BaseModel):
    model_config = {"extra": "forbid"}

    seaport_address: str = ""  # empty = environment default
    zone_address: str = ""  # empty = environment default
    domain_name: str = "ImmutableSeaport"
    domain_version: str = "1.5"
    listing_duration_days: int = Field(default=730, ge=1)

    @field_validator("seaport_address", "zone_address")
    @classmethod
    def valid_contract_address(cls, value: str) -> str:
        return _check_address(value)


class GasPolicyConfig(BaseModel):
    """Fee overrides for every transaction.

    The network rejects transactions whose tip is below its minimum gas
    price, so the fee cap must be at least the tip.
    """

    model_config = {"extra": "forbid"}

    max_priority_fee_per_gas: int = Field(default=10_000_000_000, ge=0)
    max_fee_per_gas: int = Field(default=15_000_000_000, ge=0)
    gas_limit: int = Field(default=400_000, gt=0)

    @model_validator(mode="after")
    def fee_cap_covers_tip(self) -> "GasPolicyConfig":
        if self.max_fee_per_gas < self.max_priority_fee_per_gas:
            raise ValueError("max_fee_per_gas must be >= max_priority_fee_per_gas")
        return self


class ListingConfig(BaseModel):
    model_config = {"extra": "forbid"}

    collection_address: str = "0x5e2cd90375bfbc64e0b52fedfd854c9ec8afe37a"
    page_size: int = Field(default=50, ge=1, le=200)

    @field_validator("collection_address")
    @classmethod
    def valid_collection_address(cls, value: str) -> str:
        return _check_address(value)


class WalletConfig(BaseModel):
    model_config = {"extra": "forbid"}

    maker_private_key: SecretStr = SecretStr("")
    taker_private_key: SecretStr = SecretStr("")
    taker_address: str = ""

    @field_validator("taker_address")
    @classmethod
    def valid_taker_address(cls, value: str) -> str:
        return _check_address(value)


class ExecutionConfig(BaseModel):
    model_config = {"extra": "forbid"}

    mode: ExecutionMode = ExecutionMode.DRY_RUN


class OrderflowConfig(BaseModel):
    model_config = {"extra": "forbid"}

    execution: ExecutionConfig = ExecutionConfig()
    marketplace: MarketplaceConfig = MarketplaceConfig()
    network: NetworkConfig = NetworkConfig()
    seaport: SeaportConfig = SeaportConfig()
    gas: GasPolicyConfig = GasPolicyConfig()
    listing: ListingConfig = ListingConfig()
    wallet: WalletConfig = WalletConfig()
