"""Per-environment endpoints and contract addresses for the Immutable zkEVM order book."""

from orderflow.config.schema import Environment

API_BASE_URLS: dict[Environment, str] = {
    Environment.SANDBOX: "https://api.sandbox.immutable.com",
    Environment.PRODUCTION: "https://api.immutable.com",
}

CHAIN_NAMES: dict[Environment, str] = {
    Environment.SANDBOX: "imtbl-zkevm-testnet",
    Environment.PRODUCTION: "imtbl-zkevm-mainnet",
}

RPC_URLS: dict[Environment, str] = {
    Environment.SANDBOX: "https://rpc.testnet.immutable.com",
    Environment.PRODUCTION: "https://rpc.immutable.com",
}

CHAIN_IDS: dict[Environment, int] = {
    Environment.SANDBOX: 13473,
    Environment.PRODUCTION: 13371,
}

SEAPORT_ADDRESSES: dict[Environment, str] = {
    Environment.SANDBOX: "0x7d117aa8bd6d31c4fa91722f246388f38ab1942c",
    Environment.PRODUCTION: "0x6c12ad6f0bd274191075eb2e78d7da5ba6453424",
}

ZONE_ADDRESSES: dict[Environment, str] = {
    Environment.SANDBOX: "0x1004f9615e79462c711ff05a386bdba91a7628c3",
    Environment.PRODUCTION: "0x00338b92bec262078b3e49bf12bbea058916bf91",
}

