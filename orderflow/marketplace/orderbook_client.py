"""Order-book REST API client (Immutable zkEVM orderbook v1)."""

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

SANDBOX_API_BASE = "https://api.sandbox.immutable.com"
SANDBOX_CHAIN_NAME = "imtbl-zkevm-testnet"
PUBLISHABLE_KEY_HEADER = "x-immutable-publishable-key"


class MarketplaceError(Exception):
    """Raised when the order-book API errors or cannot be reached."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        payload: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class MarketplaceRejectedError(MarketplaceError):
    """The order book refused the request (4xx): stale order, bad signature, expired order."""


class OrderbookClient:
    """Thin wrapper around the order-book REST API.

    Listings are read with GET /orders/listings; writes go through
    POST /orders/listings, /orders/cancel and /orders/fulfillment-data.
    """

    def __init__(
        self,
        publishable_key: str = "",
        base_url: str = SANDBOX_API_BASE,
        chain_name: str = SANDBOX_CHAIN_NAME,
        timeout: float = 30.0,
    ):
        self.publishable_key = publishable_key
        self.base_url = base_url.rstrip("/")
        self.chain_name = chain_name
        self.timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.publishable_key:
            headers[PUBLISHABLE_KEY_HEADER] = self.publishable_key
        return headers

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}/v1/chains/{self.chain_name}{endpoint}"

    def _request(
        self,
        method: str,
        endpoint: str,
        params: dict | None = None,
        data: dict | None = None,
    ) -> dict:
        url = self._url(endpoint)
        try:
            resp = httpx.request(
                method,
                url,
                headers=self._headers(),
                params=params,
                json=data,
                timeout=self.timeout,
            )
        except httpx.RequestError as e:
            logger.error("Order book request failed: %s %s -> %s", method, endpoint, e)
            raise MarketplaceError(f"Request failed: {e}") from e

        if resp.status_code >= 400:
            payload = _error_payload(resp)
            logger.error(
                "Order book API %d: %s %s -> %s", resp.status_code, method, endpoint, payload
            )
            error_cls = MarketplaceRejectedError if resp.status_code < 500 else MarketplaceError
            raise error_cls(
                f"HTTP {resp.status_code}: {_error_message(payload)}",
                resp.status_code,
                payload,
            )
        return resp.json()

    # --- Listings ---

    def list_listings(
        self,
        sell_item_contract_address: str | None = None,
        status: str | None = None,
        page_size: int = 50,
        page_cursor: str | None = None,
    ) -> dict:
        """List listings, newest first.

        Returns:
            Dict with ``result`` (list of listings) and ``page`` cursors.
        """
        params: dict[str, Any] = {"page_size": page_size}
        if sell_item_contract_address:
            params["sell_item_contract_address"] = sell_item_contract_address
        if status:
            params["status"] = status
        if page_cursor:
            params["page_cursor"] = page_cursor
        return self._request("GET", "/orders/listings", params=params)

    def create_listing(self, body: dict) -> dict:
        return self._request("POST", "/orders/listings", data=body)

    # --- Cancellation ---

    def cancel_orders(
        self, account_address: str, order_ids: list[str], signature: str
    ) -> dict:
        return self._request("POST", "/orders/cancel", data={
            "account_address": account_address,
            "orders": order_ids,
            "signature": signature,
        })

    # --- Fulfillment ---

    def fulfillment_data(self, orders: list[dict]) -> dict:
        """Fetch the data needed to fulfill orders on chain.

        Args:
            orders: ``[{"order_id", "taker_address", "fees"}]``.

        Returns:
            Dict whose ``result`` has ``fulfillable_orders`` (each with
            ``extra_data`` and the ``order``) and ``unfulfillable_orders``.
        """
        return self._request("POST", "/orders/fulfillment-data", data={"orders": orders})


def _error_payload(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


def _error_message(payload: Any) -> str:
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("code") or payload)
    return str(payload)
