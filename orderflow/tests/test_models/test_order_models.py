"""Tests for order-book models."""

import pytest

from orderflow.models.common import from_epoch, to_epoch
from orderflow.models.order import Fee, FeeType, Item, ItemType, Listing, ListingStatus
from orderflow.tests.fakes import COLLECTION, FEE_RECIPIENT, MAKER


class TestItem:
    def test_erc721_defaults(self):
        item = Item.erc721(COLLECTION, "4")
        assert item.type == ItemType.ERC721
        assert item.amount == "1"
        assert item.is_nft

    def test_malformed_contract_rejected(self):
        with pytest.raises(ValueError, match="contract_address"):
            Item.erc721("0xnope", "4")

    @pytest.mark.parametrize("amount", ["-1", "1.5", "", "1e18", "١٢"])
    def test_amount_must_be_decimal_integer(self, amount):
        with pytest.raises(ValueError):
            Item.native(amount)

    def test_token_id_required_for_nft(self):
        with pytest.raises(ValueError, match="token_id"):
            Item.erc721(COLLECTION, "")

    def test_to_api_shapes(self):
        assert Item.native("5").to_api() == {"type": "NATIVE", "amount": "5"}
        assert Item.erc721(COLLECTION, "4").to_api() == {
            "type": "ERC721", "contract_address": COLLECTION, "token_id": "4",
        }
        assert Item.erc1155(COLLECTION, "4", "2").to_api() == {
            "type": "ERC1155", "contract_address": COLLECTION, "token_id": "4", "amount": "2",
        }

    def test_from_api(self):
        item = Item.from_api({"type": "ERC20", "contract_address": COLLECTION, "amount": 10})
        assert item == Item.erc20(COLLECTION, "10")


class TestFee:
    def test_valid_fee(self):
        fee = Fee(amount="0", recipient_address=FEE_RECIPIENT)
        assert fee.to_api(FeeType.TAKER_ECOSYSTEM)["type"] == "TAKER_ECOSYSTEM"

    def test_explicit_type_beats_default(self):
        fee = Fee(amount="1", recipient_address=FEE_RECIPIENT, type=FeeType.ROYALTY)
        assert fee.to_api(FeeType.MAKER_ECOSYSTEM)["type"] == "ROYALTY"

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError, match="fee amount"):
            Fee(amount="-5", recipient_address=FEE_RECIPIENT)

    def test_bad_recipient_rejected(self):
        with pytest.raises(ValueError, match="recipient_address"):
            Fee(amount="5", recipient_address="0x123")


class TestListing:
    def _data(self, status) -> dict:
        return {
            "id": "l-1",
            "account_address": MAKER,
            "sell": [{"type": "ERC721", "contract_address": COLLECTION, "token_id": "4"}],
            "buy": [{"type": "NATIVE", "amount": "100"}],
            "status": status,
        }

    def test_status_object(self):
        listing = Listing.from_api(self._data({"name": "FILLED"}))
        assert listing.status == ListingStatus.FILLED
        assert listing.fees == []

    def test_status_string(self):
        assert Listing.from_api(self._data("CANCELLED")).status == ListingStatus.CANCELLED


class TestTimestamps:
    def test_epoch_round_trip(self):
        assert from_epoch(0) == "1970-01-01T00:00:00Z"
        assert to_epoch("1970-01-01T00:00:10Z") == 10

    def test_naive_treated_as_utc(self):
        assert to_epoch("1970-01-01T00:01:00") == 60
