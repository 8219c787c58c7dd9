"""Common types and helpers shared across models."""

from datetime import UTC, datetime
from typing import TypeAlias

from web3 import Web3

Address: TypeAlias = str
RunId: TypeAlias = str


def utc_now() -> datetime:
    return datetime.now(UTC)


def utc_now_iso() -> str:
    return utc_now().isoformat()


def to_epoch(iso_timestamp: str) -> int:
    """Convert an ISO-8601 timestamp (``Z`` suffix allowed) to epoch seconds."""
    dt = datetime.fromisoformat(iso_timestamp)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp())


def from_epoch(seconds: int) -> str:
    return datetime.fromtimestamp(seconds, UTC).isoformat().replace("+00:00", "Z")


def require_address(value: str, field_name: str = "address") -> Address:
    """Return ``value`` if it is a well-formed 20-byte hex address, else raise."""
    if not isinstance(value, str) or not Web3.is_address(value):
        raise ValueError(f"{field_name} is not a well-formed address: {value!r}")
    return value


def require_amount(value: str, field_name: str = "amount") -> str:
    """Return ``value`` if it is a non-negative base-10 integer string, else raise."""
    if not isinstance(value, str) or not (value.isascii() and value.isdigit()):
        raise ValueError(f"{field_name} must be a non-negative integer string: {value!r}")
    return value
