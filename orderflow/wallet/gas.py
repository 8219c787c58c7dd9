"""Apply the configured fee and gas overrides to a vendor-built transaction."""

from typing import Any

from orderflow.models.transaction import GasPolicy

# Legacy and EIP-1559 fields the policy replaces
VENDOR_FEE_FIELDS = ("gasPrice", "maxPriorityFeePerGas", "maxFeePerGas", "gas", "gasLimit")


def apply_gas_policy(tx: dict[str, Any], policy: GasPolicy) -> dict[str, Any]:
    """Return a copy of ``tx`` with the policy's fee fields.

    The policy always wins over whatever fee fields the vendor set, and a
    legacy ``gasPrice`` is dropped since it cannot be mixed with EIP-1559 fees.
    """
    merged = {k: v for k, v in tx.items() if k not in VENDOR_FEE_FIELDS}
    merged.update(policy.overrides())
    return merged
