"""Tests for Seaport order construction and calldata."""

from unittest.mock import MagicMock

import pytest
from web3 import Web3

from orderflow.config.schema import SeaportConfig
from orderflow.marketplace.seaport import (
    ZERO_ADDRESS,
    ZERO_BYTES32,
    SeaportGateway,
    consideration_item,
    item_from_component,
    offer_item,
)
from orderflow.models.order import Fee, Item, ItemType
from orderflow.tests.fakes import COLLECTION, FEE_RECIPIENT, MAKER, SEAPORT, TAKER, ZONE, make_listing

START = 1_767_225_600  # 2026-01-01T00:00:00Z


@pytest.fixture
def gateway():
    web3 = Web3(Web3.HTTPProvider("http://127.0.0.1:8545"))
    config = SeaportConfig(seaport_address=SEAPORT, zone_address=ZONE)
    return SeaportGateway(web3, config, chain_id=13473)


class TestItemComponents:
    def test_native_offer_item(self):
        component = offer_item(Item.native("5"))
        assert component["itemType"] == 0
        assert component["token"] == ZERO_ADDRESS
        assert component["startAmount"] == component["endAmount"] == 5

    def test_erc721_consideration_item(self):
        component = consideration_item(Item.erc721(COLLECTION, "4"), MAKER)
        assert component["itemType"] == 2
        assert component["identifierOrCriteria"] == 4
        assert component["startAmount"] == 1
        assert component["recipient"] == Web3.to_checksum_address(MAKER)

    def test_component_round_trip_erc1155(self):
        item = Item.erc1155(COLLECTION, "9", "3")
        back = item_from_component(offer_item(item))
        assert back.type == ItemType.ERC1155
        assert back.token_id == "9"
        assert back.amount == "3"


class TestListingComponents:
    def test_build_components(self, gateway):
        components = gateway.build_listing_components(
            MAKER, Item.erc721(COLLECTION, "4"), Item.native("1000"), counter=3,
            start_time=START, salt=99,
        )
        assert components["offerer"] == Web3.to_checksum_address(MAKER)
        assert components["zone"] == Web3.to_checksum_address(ZONE)
        assert components["orderType"] == 2
        assert components["endTime"] == START + 730 * 86400
        assert components["counter"] == 3
        assert components["salt"] == 99
        assert components["zoneHash"] == ZERO_BYTES32
        assert components["consideration"][0]["recipient"] == Web3.to_checksum_address(MAKER)

    def test_listing_body(self, gateway):
        components = gateway.build_listing_components(
            MAKER, Item.erc721(COLLECTION, "4"), Item.native("1000"), counter=0,
            start_time=START, salt=7,
        )
        body = gateway.listing_body(components, "0xhash", "0xsig", [])
        assert body["sell"] == [{
            "type": "ERC721",
            "contract_address": Web3.to_checksum_address(COLLECTION),
            "token_id": "4",
        }]
        assert body["buy"] == [{"type": "NATIVE", "amount": "1000"}]
        assert body["start_at"] == "2026-01-01T00:00:00Z"
        assert body["salt"] == "7"
        assert body["protocol_data"]["order_type"] == "FULL_RESTRICTED"
        assert body["protocol_data"]["seaport_address"] == Web3.to_checksum_address(SEAPORT)

    def test_domain(self, gateway):
        assert gateway.domain() == {
            "name": "ImmutableSeaport",
            "version": "1.5",
            "chainId": 13473,
            "verifyingContract": Web3.to_checksum_address(SEAPORT),
        }


class TestCalldata:
    def test_nft_approval(self, gateway):
        tx = gateway.approval_transaction(MAKER, Item.erc721(COLLECTION, "4"))
        assert tx["data"].startswith("0xa22cb465")
        assert tx["to"] == Web3.to_checksum_address(COLLECTION)
        assert tx["value"] == 0

    def test_erc20_approval(self, gateway):
        tx = gateway.approval_transaction(TAKER, Item.erc20(COLLECTION, "500"), amount=700)
        assert tx["data"].startswith("0x095ea7b3")
        assert tx["data"].endswith(f"{700:064x}")

    def test_native_needs_no_approval(self, gateway):
        with pytest.raises(ValueError):
            gateway.approval_transaction(MAKER, Item.native("1"))

    def test_fulfill_native_pays_price_and_fees(self, gateway):
        listing = make_listing(price="1000")
        fee = Fee(amount="10", recipient_address=FEE_RECIPIENT)
        tx = gateway.fulfill_transaction(TAKER, listing, "0x1234", [fee])

        assert tx["value"] == 1010
        assert tx["to"] == Web3.to_checksum_address(SEAPORT)
        func, params = gateway._seaport.decode_function_input(tx["data"])
        assert func.fn_name == "fulfillAdvancedOrder"
        assert params["recipient"] == Web3.to_checksum_address(TAKER)

    def test_fulfillment_payment_includes_listing_fees(self, gateway):
        listing = make_listing(price="1000")
        listing.fees.append(Fee(amount="20", recipient_address=FEE_RECIPIENT))
        assert gateway.fulfillment_payment(listing, []) == 1020


class TestChainReads:
    def test_counter(self, gateway):
        gateway._seaport = MagicMock()
        gateway._seaport.functions.getCounter.return_value.call.return_value = 5
        assert gateway.get_counter(MAKER) == 5

    def test_order_hash_hex(self, gateway):
        gateway._seaport = MagicMock()
        gateway._seaport.functions.getOrderHash.return_value.call.return_value = b"\xab" * 32
        components = gateway.build_listing_components(
            MAKER, Item.erc721(COLLECTION, "4"), Item.native("1"), counter=0,
            start_time=START, salt=1,
        )
        assert gateway.get_order_hash(components) == "0x" + "ab" * 32

    def test_nft_approval_check(self, gateway):
        gateway.web3 = MagicMock()
        contract = gateway.web3.eth.contract.return_value
        contract.functions.isApprovedForAll.return_value.call.return_value = False
        assert gateway.is_approved(MAKER, Item.erc721(COLLECTION, "4")) is False

    def test_erc20_allowance_check(self, gateway):
        gateway.web3 = MagicMock()
        contract = gateway.web3.eth.contract.return_value
        contract.functions.allowance.return_value.call.return_value = 500
        item = Item.erc20(COLLECTION, "400")
        assert gateway.is_approved(TAKER, item) is True
        assert gateway.is_approved(TAKER, item, amount=600) is False

    def test_native_always_approved(self, gateway):
        assert gateway.is_approved(TAKER, Item.native("1")) is True
