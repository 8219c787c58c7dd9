"""Order book: REST listings plus Seaport preparation for listing, cancelling and fulfilling."""

import logging
from typing import Any

from orderflow.marketplace.orderbook_client import OrderbookClient, MarketplaceRejectedError
from orderflow.marketplace.seaport import ORDER_COMPONENTS_TYPES, SeaportGateway
from orderflow.models.order import (
    Action,
    ActionPurpose,
    CancellationResult,
    Fee,
    FeeType,
    FulfillOrderResponse,
    Item,
    ItemType,
    Listing,
    ListingPage,
    ListingStatus,
    OrderRecord,
    PreparedOrder,
    SignableAction,
    TransactionAction,
    TypedDataMessage,
)

logger = logging.getLogger(__name__)

CANCELLATION_DOMAIN_NAME = "imtbl-order-book"
CANCELLATION_TYPES: dict[str, list[dict[str, str]]] = {
    "CancelPayload": [{"name": "orders", "type": "Order[]"}],
    "Order": [{"name": "id", "type": "string"}],
}


class Orderbook:
    """Marketplace implementation over the order-book API and Seaport.

    Preparation returns actions in the order they must run: an approval
    transaction first when Seaport cannot yet move the asset, then the
    signature or fulfillment step.
    """

    def __init__(self, client: OrderbookClient, seaport: SeaportGateway):
        self.client = client
        self.seaport = seaport

    def list_listings(
        self,
        sell_item_contract_address: str,
        status: ListingStatus = ListingStatus.ACTIVE,
        page_size: int = 50,
    ) -> ListingPage:
        data = self.client.list_listings(
            sell_item_contract_address=sell_item_contract_address,
            status=status.value,
            page_size=page_size,
        )
        listings = [Listing.from_api(item) for item in data.get("result", [])]
        page = data.get("page") or {}
        return ListingPage(result=listings, next_cursor=page.get("next_cursor"))

    # --- Listing ---

    def prepare_listing(self, maker_address: str, buy: Item, sell: Item) -> PreparedOrder:
        if not sell.is_nft:
            raise ValueError(f"sell item must be ERC721 or ERC1155, got {sell.type}")
        if buy.type not in (ItemType.NATIVE, ItemType.ERC20):
            raise ValueError(f"buy item must be NATIVE or ERC20, got {buy.type}")

        actions: list[Action] = []
        if not self.seaport.is_approved(maker_address, sell):
            logger.info("Seaport not approved for %s, adding approval", sell.contract_address)
            actions.append(TransactionAction(
                purpose=ActionPurpose.APPROVAL,
                builder=lambda: self.seaport.approval_transaction(maker_address, sell),
            ))

        counter = self.seaport.get_counter(maker_address)
        components = self.seaport.build_listing_components(maker_address, sell, buy, counter)
        order_hash = self.seaport.get_order_hash(components)
        actions.append(SignableAction(
            purpose=ActionPurpose.CREATE_LISTING,
            message=TypedDataMessage(
                domain=self.seaport.domain(),
                types=ORDER_COMPONENTS_TYPES,
                value=components,
            ),
        ))
        return PreparedOrder(order_components=components, order_hash=order_hash, actions=actions)

    def create_listing(
        self,
        order_components: dict[str, Any],
        order_hash: str,
        order_signature: str,
        maker_fees: list[Fee],
    ) -> OrderRecord:
        body = self.seaport.listing_body(
            order_components,
            order_hash,
            order_signature,
            [fee.to_api(FeeType.MAKER_ECOSYSTEM) for fee in maker_fees],
        )
        data = self.client.create_listing(body)
        return OrderRecord(listing=Listing.from_api(data["result"]))

    # --- Cancellation ---

    def prepare_order_cancellations(self, order_ids: list[str]) -> SignableAction:
        return SignableAction(
            purpose=ActionPurpose.OFF_CHAIN_CANCELLATION,
            message=TypedDataMessage(
                domain={
                    "name": CANCELLATION_DOMAIN_NAME,
                    "chainId": self.seaport.chain_id,
                    "verifyingContract": self.seaport.seaport_address,
                },
                types=CANCELLATION_TYPES,
                value={"orders": [{"id": order_id} for order_id in order_ids]},
            ),
        )

    def cancel_orders(
        self, order_ids: list[str], account_address: str, signature: str
    ) -> CancellationResult:
        data = self.client.cancel_orders(account_address, order_ids, signature)
        result = data.get("result", {})
        return CancellationResult(
            successful=list(result.get("successful_cancellations", [])),
            pending=list(result.get("pending_cancellations", [])),
            failed=[
                (f.get("order", ""), f.get("reason_code", ""))
                for f in result.get("failed_cancellations", [])
            ],
        )

    # --- Fulfillment ---

    def fulfill_order(
        self, listing_id: str, taker_address: str, taker_fees: list[Fee]
    ) -> FulfillOrderResponse:
        data = self.client.fulfillment_data([{
            "order_id": listing_id,
            "taker_address": taker_address,
            "fees": [fee.to_api(FeeType.TAKER_ECOSYSTEM) for fee in taker_fees],
        }])
        result = data.get("result", {})
        fulfillable = [
            entry for entry in result.get("fulfillable_orders", [])
            if entry.get("order", {}).get("id") == listing_id
        ]
        if not fulfillable:
            reasons = [
                entry.get("reason", "")
                for entry in result.get("unfulfillable_orders", [])
                if entry.get("order_id") == listing_id
            ]
            raise MarketplaceRejectedError(
                f"Listing {listing_id} is not fulfillable: {', '.join(reasons) or 'unknown reason'}",
                payload=result,
            )

        entry = fulfillable[0]
        order = Listing.from_api(entry["order"])
        extra_data = entry.get("extra_data", "0x")
        buy = order.buy[0]

        actions: list[Action] = []
        if buy.type == ItemType.ERC20:
            total = self.seaport.fulfillment_payment(order, taker_fees)
            if not self.seaport.is_approved(taker_address, buy, amount=total):
                actions.append(TransactionAction(
                    purpose=ActionPurpose.APPROVAL,
                    builder=lambda: self.seaport.approval_transaction(
                        taker_address, buy, amount=total
                    ),
                ))
        actions.append(TransactionAction(
            purpose=ActionPurpose.FULFILL_ORDER,
            builder=lambda: self.seaport.fulfill_transaction(
                taker_address, order, extra_data, taker_fees
            ),
        ))
        return FulfillOrderResponse(actions=actions, expiration=order.end_at, order=order)
