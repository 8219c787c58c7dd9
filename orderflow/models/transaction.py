"""Transaction models: gas policy and receipts."""

from dataclasses import dataclass
from enum import StrEnum


class TxStatus(StrEnum):
    CONFIRMED = "CONFIRMED"
    DRY_RUN = "DRY_RUN"
    # broadcast, so the nonce is spent, but not confirmed
    REVERTED = "REVERTED"
    UNCONFIRMED = "UNCONFIRMED"


@dataclass(frozen=True)
class GasPolicy:
    """Fee overrides applied to every transaction to clear the network's minimum fee rules."""

    max_priority_fee_per_gas: int
    max_fee_per_gas: int
    gas_limit: int

    def __post_init__(self) -> None:
        if self.max_priority_fee_per_gas < 0 or self.gas_limit <= 0:
            raise ValueError("gas policy values must be positive")
        if self.max_fee_per_gas < self.max_priority_fee_per_gas:
            raise ValueError(
                f"max_fee_per_gas ({self.max_fee_per_gas}) must be >= "
                f"max_priority_fee_per_gas ({self.max_priority_fee_per_gas})"
            )

    def overrides(self) -> dict[str, int]:
        return {
            "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
            "maxFeePerGas": self.max_fee_per_gas,
            "gas": self.gas_limit,
        }


@dataclass(frozen=True)
class TxReceipt:
    tx_hash: str
    status: TxStatus
    block_number: int | None = None
    gas_used: int = 0

    @property
    def committed(self) -> bool:
        return self.status == TxStatus.CONFIRMED
