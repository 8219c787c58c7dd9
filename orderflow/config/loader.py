"""YAML config loader with environment overrides and per-environment defaults."""

import hashlib
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from orderflow.config.defaults import (
    API_BASE_URLS,
    CHAIN_IDS,
    CHAIN_NAMES,
    RPC_URLS,
    SEAPORT_ADDRESSES,
    ZONE_ADDRESSES,
)
from orderflow.config.schema import OrderflowConfig
from orderflow.models.transaction import GasPolicy
from orderflow.models.workflow import WorkflowSettings

# Environment variable -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "CONTRACT_ADDRESS": ("listing", "collection_address"),
    "PUBLISHABLE_API_KEY": ("marketplace", "publishable_key"),
    "MINTER_PRIVATE_KEY": ("wallet", "maker_private_key"),
    "TAKER_PRIVATE_KEY": ("wallet", "taker_private_key"),
    "TAKER_ADDRESS": ("wallet", "taker_address"),
    "RPC_URL": ("network", "rpc_url"),
    "ORDERFLOW_MODE": ("execution", "mode"),
}


def load_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> OrderflowConfig:
    """Load and validate config from an optional YAML file plus the environment.

    Environment variables win over the file. Empty endpoint and contract
    fields are filled from the selected marketplace environment.
    """
    raw: dict[str, Any] = {}
    if path is not None:
        with open(Path(path)) as f:
            raw = yaml.safe_load(f) or {}

    env = os.environ if environ is None else environ
    for var, (section, key) in ENV_OVERRIDES.items():
        value = env.get(var, "").strip()
        if value:
            raw.setdefault(section, {})[key] = value

    return with_environment_defaults(OrderflowConfig(**raw))


def with_environment_defaults(config: OrderflowConfig) -> OrderflowConfig:
    """Return a copy with empty endpoint/contract fields resolved for the environment."""
    env = config.marketplace.environment
    marketplace = config.marketplace.model_copy(
        update={
            "base_url": config.marketplace.base_url or API_BASE_URLS[env],
            "chain_name": config.marketplace.chain_name or CHAIN_NAMES[env],
        }
    )
    network = config.network.model_copy(
        update={
            "rpc_url": config.network.rpc_url or RPC_URLS[env],
            "chain_id": config.network.chain_id or CHAIN_IDS[env],
        }
    )
    seaport = config.seaport.model_copy(
        update={
            "seaport_address": config.seaport.seaport_address or SEAPORT_ADDRESSES[env],
            "zone_address": config.seaport.zone_address or ZONE_ADDRESSES[env],
        }
    )
    return config.model_copy(
        update={"marketplace": marketplace, "network": network, "seaport": seaport}
    )


def config_hash(config: OrderflowConfig) -> str:
    """Compute a deterministic SHA256 hash of the config (secrets masked)."""
    data = config.model_dump_json(indent=None)
    return hashlib.sha256(data.encode()).hexdigest()[:16]


def redacted_dump(config: OrderflowConfig) -> str:
    """Pretty JSON with private keys masked."""
    return config.model_dump_json(indent=2)


def workflow_settings(config: OrderflowConfig) -> WorkflowSettings:
    return WorkflowSettings(
        gas_policy=GasPolicy(
            max_priority_fee_per_gas=config.gas.max_priority_fee_per_gas,
            max_fee_per_gas=config.gas.max_fee_per_gas,
            gas_limit=config.gas.gas_limit,
        ),
        collection_address=config.listing.collection_address,
        page_size=config.listing.page_size,
    )
