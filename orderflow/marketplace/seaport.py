"""Seaport order construction, calldata encoding and chain reads.

Listings are Seaport orders: the maker offers the NFT and asks for the buy
item as the single original consideration item. Fees (protocol, royalty,
maker and taker ecosystem) are appended at fulfillment time as tips, which
Seaport accepts after ``totalOriginalConsiderationItems``.
"""

import logging
import secrets
import time
from typing import Any

from web3 import Web3

from orderflow.config.schema import SeaportConfig
from orderflow.models.common import from_epoch, to_epoch
from orderflow.models.order import Fee, Item, ItemType, Listing

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
ZERO_BYTES32 = "0x" + "00" * 32

ITEM_TYPE_CODES: dict[ItemType, int] = {
    ItemType.NATIVE: 0,
    ItemType.ERC20: 1,
    ItemType.ERC721: 2,
    ItemType.ERC1155: 3,
}
ITEM_TYPES_BY_CODE = {code: item_type for item_type, code in ITEM_TYPE_CODES.items()}

ORDER_TYPE_CODES: dict[str, int] = {
    "FULL_OPEN": 0,
    "PARTIAL_OPEN": 1,
    "FULL_RESTRICTED": 2,
    "PARTIAL_RESTRICTED": 3,
}
LISTING_ORDER_TYPE = "FULL_RESTRICTED"

# EIP-712 struct definitions for OrderComponents
ORDER_COMPONENTS_TYPES: dict[str, list[dict[str, str]]] = {
    "OrderComponents": [
        {"name": "offerer", "type": "address"},
        {"name": "zone", "type": "address"},
        {"name": "offer", "type": "OfferItem[]"},
        {"name": "consideration", "type": "ConsiderationItem[]"},
        {"name": "orderType", "type": "uint8"},
        {"name": "startTime", "type": "uint256"},
        {"name": "endTime", "type": "uint256"},
        {"name": "zoneHash", "type": "bytes32"},
        {"name": "salt", "type": "uint256"},
        {"name": "conduitKey", "type": "bytes32"},
        {"name": "counter", "type": "uint256"},
    ],
    "OfferItem": [
        {"name": "itemType", "type": "uint8"},
        {"name": "token", "type": "address"},
        {"name": "identifierOrCriteria", "type": "uint256"},
        {"name": "startAmount", "type": "uint256"},
        {"name": "endAmount", "type": "uint256"},
    ],
    "ConsiderationItem": [
        {"name": "itemType", "type": "uint8"},
        {"name": "token", "type": "address"},
        {"name": "identifierOrCriteria", "type": "uint256"},
        {"name": "startAmount", "type": "uint256"},
        {"name": "endAmount", "type": "uint256"},
        {"name": "recipient", "type": "address"},
    ],
}

_OFFER_ITEM_ABI = [
    {"name": "itemType", "type": "uint8"},
    {"name": "token", "type": "address"},
    {"name": "identifierOrCriteria", "type": "uint256"},
    {"name": "startAmount", "type": "uint256"},
    {"name": "endAmount", "type": "uint256"},
]
_CONSIDERATION_ITEM_ABI = _OFFER_ITEM_ABI + [{"name": "recipient", "type": "address"}]


def _order_parameters_abi(last_field: str) -> list[dict[str, Any]]:
    return [
        {"name": "offerer", "type": "address"},
        {"name": "zone", "type": "address"},
        {"name": "offer", "type": "tuple[]", "components": _OFFER_ITEM_ABI},
        {"name": "consideration", "type": "tuple[]", "components": _CONSIDERATION_ITEM_ABI},
        {"name": "orderType", "type": "uint8"},
        {"name": "startTime", "type": "uint256"},
        {"name": "endTime", "type": "uint256"},
        {"name": "zoneHash", "type": "bytes32"},
        {"name": "salt", "type": "uint256"},
        {"name": "conduitKey", "type": "bytes32"},
        {"name": last_field, "type": "uint256"},
    ]


SEAPORT_ABI: list[dict[str, Any]] = [
    {
        "inputs": [{"name": "offerer", "type": "address"}],
        "name": "getCounter",
        "outputs": [{"name": "counter", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {
                "name": "order",
                "type": "tuple",
                "components": _order_parameters_abi("counter"),
            }
        ],
        "name": "getOrderHash",
        "outputs": [{"name": "orderHash", "type": "bytes32"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {
                "name": "advancedOrder",
                "type": "tuple",
                "components": [
                    {
                        "name": "parameters",
                        "type": "tuple",
                        "components": _order_parameters_abi("totalOriginalConsiderationItems"),
                    },
                    {"name": "numerator", "type": "uint120"},
                    {"name": "denominator", "type": "uint120"},
                    {"name": "signature", "type": "bytes"},
                    {"name": "extraData", "type": "bytes"},
                ],
            },
            {
                "name": "criteriaResolvers",
                "type": "tuple[]",
                "components": [
                    {"name": "orderIndex", "type": "uint256"},
                    {"name": "side", "type": "uint8"},
                    {"name": "index", "type": "uint256"},
                    {"name": "identifier", "type": "uint256"},
                    {"name": "criteriaProof", "type": "bytes32[]"},
                ],
            },
            {"name": "fulfillerConduitKey", "type": "bytes32"},
            {"name": "recipient", "type": "address"},
        ],
        "name": "fulfillAdvancedOrder",
        "outputs": [{"name": "fulfilled", "type": "bool"}],
        "stateMutability": "payable",
        "type": "function",
    },
]

# isApprovedForAll / setApprovalForAll are shared by ERC721 and ERC1155
NFT_APPROVAL_ABI: list[dict[str, Any]] = [
    {
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "operator", "type": "address"},
        ],
        "name": "isApprovedForAll",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "operator", "type": "address"},
            {"name": "approved", "type": "bool"},
        ],
        "name": "setApprovalForAll",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

ERC20_ABI: list[dict[str, Any]] = [
    {
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


def offer_item(item: Item) -> dict[str, Any]:
    return {
        "itemType": ITEM_TYPE_CODES[item.type],
        "token": Web3.to_checksum_address(item.contract_address or ZERO_ADDRESS),
        "identifierOrCriteria": int(item.token_id or 0),
        "startAmount": int(item.amount),
        "endAmount": int(item.amount),
    }


def consideration_item(item: Item, recipient: str) -> dict[str, Any]:
    return {**offer_item(item), "recipient": Web3.to_checksum_address(recipient)}


def item_from_component(component: dict[str, Any]) -> Item:
    """Map an offer/consideration component back to an order-book item."""
    item_type = ITEM_TYPES_BY_CODE[int(component["itemType"])]
    token = component["token"]
    identifier = str(component["identifierOrCriteria"])
    amount = str(component["startAmount"])
    if item_type == ItemType.NATIVE:
        return Item.native(amount)
    if item_type == ItemType.ERC20:
        return Item.erc20(token, amount)
    if item_type == ItemType.ERC721:
        return Item.erc721(token, identifier)
    return Item.erc1155(token, identifier, amount)


def _parse_uint(value: str) -> int:
    if value.startswith(("0x", "0X")):
        return int(value, 16)
    return int(value)


def _parameters_tuple(params: dict[str, Any], last_field: str) -> tuple:
    return (
        Web3.to_checksum_address(params["offerer"]),
        Web3.to_checksum_address(params["zone"]),
        [
            (
                o["itemType"],
                Web3.to_checksum_address(o["token"]),
                int(o["identifierOrCriteria"]),
                int(o["startAmount"]),
                int(o["endAmount"]),
            )
            for o in params["offer"]
        ],
        [
            (
                c["itemType"],
                Web3.to_checksum_address(c["token"]),
                int(c["identifierOrCriteria"]),
                int(c["startAmount"]),
                int(c["endAmount"]),
                Web3.to_checksum_address(c["recipient"]),
            )
            for c in params["consideration"]
        ],
        int(params["orderType"]),
        int(params["startTime"]),
        int(params["endTime"]),
        Web3.to_bytes(hexstr=params["zoneHash"]),
        int(params["salt"]),
        Web3.to_bytes(hexstr=params["conduitKey"]),
        int(params[last_field]),
    )


class SeaportGateway:
    """Builds Seaport payloads and reads the chain state order preparation needs."""

    def __init__(self, web3: Web3, config: SeaportConfig, chain_id: int):
        self.web3 = web3
        self.config = config
        self.chain_id = chain_id
        self.seaport_address = Web3.to_checksum_address(config.seaport_address)
        self.zone_address = Web3.to_checksum_address(config.zone_address)
        self._seaport = web3.eth.contract(address=self.seaport_address, abi=SEAPORT_ABI)

    def _nft(self, contract_address: str):
        return self.web3.eth.contract(
            address=Web3.to_checksum_address(contract_address), abi=NFT_APPROVAL_ABI
        )

    def _erc20(self, contract_address: str):
        return self.web3.eth.contract(
            address=Web3.to_checksum_address(contract_address), abi=ERC20_ABI
        )

    def domain(self) -> dict[str, Any]:
        return {
            "name": self.config.domain_name,
            "version": self.config.domain_version,
            "chainId": self.chain_id,
            "verifyingContract": self.seaport_address,
        }

    # --- Chain reads ---

    def get_counter(self, offerer: str) -> int:
        return self._seaport.functions.getCounter(
            Web3.to_checksum_address(offerer)
        ).call()

    def get_order_hash(self, components: dict[str, Any]) -> str:
        order_hash = self._seaport.functions.getOrderHash(
            _parameters_tuple(components, "counter")
        ).call()
        order_hash_hex = Web3.to_hex(order_hash)
        logger.debug("Seaport order hash for %s: %s", components["offerer"], order_hash_hex)
        return order_hash_hex

    def is_approved(self, owner: str, item: Item, amount: int | None = None) -> bool:
        """Whether Seaport may move ``item`` (or ``amount`` of an ERC20) on behalf of owner."""
        owner = Web3.to_checksum_address(owner)
        if item.type == ItemType.NATIVE:
            return True
        if item.type == ItemType.ERC20:
            allowance = self._erc20(item.contract_address).functions.allowance(
                owner, self.seaport_address
            ).call()
            required = int(item.amount) if amount is None else amount
            return allowance >= required
        return self._nft(item.contract_address).functions.isApprovedForAll(
            owner, self.seaport_address
        ).call()

    # --- Calldata ---

    def approval_transaction(
        self, owner: str, item: Item, amount: int | None = None
    ) -> dict[str, Any]:
        if item.type == ItemType.ERC20:
            data = self._erc20(item.contract_address).encode_abi(
                "approve",
                args=[self.seaport_address, int(item.amount) if amount is None else amount],
            )
        elif item.is_nft:
            data = self._nft(item.contract_address).encode_abi(
                "setApprovalForAll", args=[self.seaport_address, True]
            )
        else:
            raise ValueError("native currency needs no approval")
        return {
            "from": Web3.to_checksum_address(owner),
            "to": Web3.to_checksum_address(item.contract_address),
            "data": data,
            "value": 0,
        }

    def build_listing_components(
        self,
        offerer: str,
        sell: Item,
        buy: Item,
        counter: int,
        start_time: int | None = None,
        salt: int | None = None,
    ) -> dict[str, Any]:
        start = int(time.time()) if start_time is None else start_time
        end = start + self.config.listing_duration_days * 86400
        return {
            "offerer": Web3.to_checksum_address(offerer),
            "zone": self.zone_address,
            "offer": [offer_item(sell)],
            "consideration": [consideration_item(buy, offerer)],
            "orderType": ORDER_TYPE_CODES[LISTING_ORDER_TYPE],
            "startTime": start,
            "endTime": end,
            "zoneHash": ZERO_BYTES32,
            "salt": secrets.randbits(64) if salt is None else salt,
            "conduitKey": ZERO_BYTES32,
            "counter": counter,
        }

    def listing_body(
        self,
        components: dict[str, Any],
        order_hash: str,
        signature: str,
        fees: list[dict[str, str]],
    ) -> dict[str, Any]:
        """Request body for creating a listing from signed order components."""
        return {
            "account_address": components["offerer"],
            "order_hash": order_hash,
            "buy": [item_from_component(components["consideration"][0]).to_api()],
            "sell": [item_from_component(components["offer"][0]).to_api()],
            "fees": fees,
            "start_at": from_epoch(int(components["startTime"])),
            "end_at": from_epoch(int(components["endTime"])),
            "protocol_data": {
                "order_type": LISTING_ORDER_TYPE,
                "zone_address": components["zone"],
                "counter": str(components["counter"]),
                "seaport_address": self.seaport_address,
                "seaport_version": self.config.domain_version,
            },
            "salt": str(components["salt"]),
            "signature": signature,
        }

    def fulfillment_payment(self, order: Listing, taker_fees: list[Fee]) -> int:
        """Total the taker pays in the buy currency: price plus every fee."""
        fees = order.fees + taker_fees
        return int(order.buy[0].amount) + sum(int(f.amount) for f in fees)

    def fulfill_transaction(
        self,
        fulfiller: str,
        order: Listing,
        extra_data: str,
        taker_fees: list[Fee],
    ) -> dict[str, Any]:
        buy = order.buy[0]
        consideration = [consideration_item(buy, order.account_address)]
        for fee in order.fees + taker_fees:
            fee_item = Item(
                type=buy.type, amount=fee.amount, contract_address=buy.contract_address
            )
            consideration.append(consideration_item(fee_item, fee.recipient_address))

        protocol = order.protocol_data
        parameters = {
            "offerer": order.account_address,
            "zone": protocol.get("zone_address", self.zone_address),
            "offer": [offer_item(order.sell[0])],
            "consideration": consideration,
            "orderType": ORDER_TYPE_CODES[protocol.get("order_type", LISTING_ORDER_TYPE)],
            "startTime": to_epoch(order.start_at),
            "endTime": to_epoch(order.end_at),
            "zoneHash": ZERO_BYTES32,
            "salt": _parse_uint(order.salt),
            "conduitKey": ZERO_BYTES32,
            "totalOriginalConsiderationItems": 1,
        }
        advanced_order = (
            _parameters_tuple(parameters, "totalOriginalConsiderationItems"),
            1,
            1,
            Web3.to_bytes(hexstr=order.signature),
            Web3.to_bytes(hexstr=extra_data or "0x"),
        )
        data = self._seaport.encode_abi(
            "fulfillAdvancedOrder",
            args=[
                advanced_order,
                [],
                Web3.to_bytes(hexstr=ZERO_BYTES32),
                Web3.to_checksum_address(fulfiller),
            ],
        )
        value = self.fulfillment_payment(order, taker_fees) if buy.type == ItemType.NATIVE else 0
        return {
            "from": Web3.to_checksum_address(fulfiller),
            "to": self.seaport_address,
            "data": data,
            "value": value,
        }
