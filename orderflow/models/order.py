"""Order-book models: items, fees, listings, actions and prepared orders."""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, TypeAlias

from orderflow.models.common import require_address, require_amount


class ItemType(StrEnum):
    NATIVE = "NATIVE"
    ERC20 = "ERC20"
    ERC721 = "ERC721"
    ERC1155 = "ERC1155"


class ListingStatus(StrEnum):
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    INACTIVE = "INACTIVE"
    CANCELLED = "CANCELLED"
    FILLED = "FILLED"
    EXPIRED = "EXPIRED"


class FeeType(StrEnum):
    PROTOCOL = "PROTOCOL"
    ROYALTY = "ROYALTY"
    MAKER_ECOSYSTEM = "MAKER_ECOSYSTEM"
    TAKER_ECOSYSTEM = "TAKER_ECOSYSTEM"


class ActionType(StrEnum):
    TRANSACTION = "TRANSACTION"
    SIGNABLE = "SIGNABLE"


class ActionPurpose(StrEnum):
    APPROVAL = "APPROVAL"
    FULFILL_ORDER = "FULFILL_ORDER"
    CREATE_LISTING = "CREATE_LISTING"
    OFF_CHAIN_CANCELLATION = "OFF_CHAIN_CANCELLATION"


@dataclass(frozen=True)
class Item:
    """One side of an order: what is sold or what is asked in return."""

    type: ItemType
    amount: str = "1"
    contract_address: str = ""
    token_id: str = ""

    def __post_init__(self) -> None:
        require_amount(self.amount)
        if self.type != ItemType.NATIVE:
            require_address(self.contract_address, "contract_address")
        if self.type in (ItemType.ERC721, ItemType.ERC1155):
            require_amount(self.token_id, "token_id")

    @classmethod
    def native(cls, amount: str) -> "Item":
        return cls(type=ItemType.NATIVE, amount=amount)

    @classmethod
    def erc20(cls, contract_address: str, amount: str) -> "Item":
        return cls(type=ItemType.ERC20, amount=amount, contract_address=contract_address)

    @classmethod
    def erc721(cls, contract_address: str, token_id: str) -> "Item":
        return cls(
            type=ItemType.ERC721, contract_address=contract_address, token_id=token_id
        )

    @classmethod
    def erc1155(cls, contract_address: str, token_id: str, amount: str) -> "Item":
        return cls(
            type=ItemType.ERC1155,
            amount=amount,
            contract_address=contract_address,
            token_id=token_id,
        )

    @property
    def is_nft(self) -> bool:
        return self.type in (ItemType.ERC721, ItemType.ERC1155)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Item":
        item_type = ItemType(data["type"])
        return cls(
            type=item_type,
            amount=str(data.get("amount", "1")),
            contract_address=data.get("contract_address", ""),
            token_id=str(data.get("token_id", "")),
        )

    def to_api(self) -> dict[str, str]:
        body: dict[str, str] = {"type": self.type.value}
        if self.type != ItemType.NATIVE:
            body["contract_address"] = self.contract_address
        if self.is_nft:
            body["token_id"] = self.token_id
        if self.type != ItemType.ERC721:
            body["amount"] = self.amount
        return body

    def describe(self) -> str:
        if self.type == ItemType.NATIVE:
            return f"{self.amount} wei"
        if self.type == ItemType.ERC20:
            return f"{self.amount} of {self.contract_address}"
        return f"{self.type.value} {self.contract_address} #{self.token_id}"


@dataclass(frozen=True)
class Fee:
    amount: str
    recipient_address: str
    type: FeeType | None = None

    def __post_init__(self) -> None:
        require_amount(self.amount, "fee amount")
        require_address(self.recipient_address, "fee recipient_address")

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Fee":
        fee_type = data.get("type")
        return cls(
            amount=str(data["amount"]),
            recipient_address=data["recipient_address"],
            type=FeeType(fee_type) if fee_type else None,
        )

    def to_api(self, default_type: FeeType | None = None) -> dict[str, str]:
        body = {"amount": self.amount, "recipient_address": self.recipient_address}
        fee_type = self.type or default_type
        if fee_type is not None:
            body["type"] = fee_type.value
        return body


@dataclass(frozen=True)
class Listing:
    id: str
    account_address: str
    sell: list[Item]
    buy: list[Item]
    status: ListingStatus
    fees: list[Fee] = field(default_factory=list)
    order_hash: str = ""
    signature: str = ""
    salt: str = ""
    protocol_data: dict[str, Any] = field(default_factory=dict)
    start_at: str = ""
    end_at: str = ""
    created_at: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Listing":
        status = data.get("status", {})
        status_name = status.get("name") if isinstance(status, dict) else status
        return cls(
            id=data["id"],
            account_address=data.get("account_address", ""),
            sell=[Item.from_api(i) for i in data.get("sell", [])],
            buy=[Item.from_api(i) for i in data.get("buy", [])],
            status=ListingStatus(status_name or ListingStatus.ACTIVE),
            fees=[Fee.from_api(f) for f in data.get("fees", [])],
            order_hash=data.get("order_hash", ""),
            signature=data.get("signature", ""),
            salt=str(data.get("salt", "")),
            protocol_data=dict(data.get("protocol_data", {})),
            start_at=data.get("start_at", ""),
            end_at=data.get("end_at", ""),
            created_at=data.get("created_at", ""),
        )


@dataclass(frozen=True)
class ListingPage:
    result: list[Listing]
    next_cursor: str | None = None


@dataclass(frozen=True)
class TypedDataMessage:
    """EIP-712 payload: domain, struct type definitions and the value to sign."""

    domain: dict[str, Any]
    types: dict[str, list[dict[str, str]]]
    value: dict[str, Any]


@dataclass(frozen=True)
class TransactionAction:
    purpose: ActionPurpose
    builder: Callable[[], dict[str, Any]]
    type: ActionType = field(default=ActionType.TRANSACTION, init=False)

    def build_transaction(self) -> dict[str, Any]:
        return self.builder()


@dataclass(frozen=True)
class SignableAction:
    purpose: ActionPurpose
    message: TypedDataMessage
    type: ActionType = field(default=ActionType.SIGNABLE, init=False)


Action: TypeAlias = TransactionAction | SignableAction


@dataclass(frozen=True)
class PreparedOrder:
    order_components: dict[str, Any]
    order_hash: str
    actions: list[Action]


@dataclass(frozen=True)
class OrderRecord:
    listing: Listing


@dataclass(frozen=True)
class CancellationResult:
    successful: list[str]
    pending: list[str]
    failed: list[tuple[str, str]]  # (order_id, reason_code)


@dataclass(frozen=True)
class FulfillOrderResponse:
    actions: list[Action]
    expiration: str
    order: Listing
