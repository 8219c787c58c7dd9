"""Marketplace collaborator contract consumed by the order workflow."""

from typing import Any, Protocol

from orderflow.models.order import (
    CancellationResult,
    Fee,
    FulfillOrderResponse,
    Item,
    ListingPage,
    ListingStatus,
    OrderRecord,
    PreparedOrder,
    SignableAction,
)


class Marketplace(Protocol):
    def list_listings(
        self,
        sell_item_contract_address: str,
        status: ListingStatus,
        page_size: int,
    ) -> ListingPage: ...

    def prepare_listing(self, maker_address: str, buy: Item, sell: Item) -> PreparedOrder: ...

    def create_listing(
        self,
        order_components: dict[str, Any],
        order_hash: str,
        order_signature: str,
        maker_fees: list[Fee],
    ) -> OrderRecord: ...

    def prepare_order_cancellations(self, order_ids: list[str]) -> SignableAction: ...

    def cancel_orders(
        self, order_ids: list[str], account_address: str, signature: str
    ) -> CancellationResult: ...

    def fulfill_order(
        self, listing_id: str, taker_address: str, taker_fees: list[Fee]
    ) -> FulfillOrderResponse: ...
