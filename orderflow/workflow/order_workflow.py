"""Order workflow: prepare -> act (sign / submit transactions) -> submit to the order book."""

import logging
import uuid
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager

from orderflow.marketplace.base import Marketplace
from orderflow.marketplace.orderbook_client import MarketplaceError, MarketplaceRejectedError
from orderflow.models.common import require_address, require_amount
from orderflow.models.order import (
    Action,
    ActionType,
    CancellationResult,
    Fee,
    Item,
    Listing,
    ListingStatus,
    OrderRecord,
    TransactionAction,
)
from orderflow.models.transaction import TxReceipt
from orderflow.models.workflow import (
    FulfillmentResult,
    SignedOrder,
    WorkflowFlow,
    WorkflowRun,
    WorkflowSettings,
    WorkflowState,
)
from orderflow.storage.journal import RunJournal
from orderflow.wallet.base import Signer
from orderflow.wallet.gas import apply_gas_policy
from orderflow.wallet.submitter import TransactionFailedError
from orderflow.workflow.errors import (
    CollaboratorError,
    MissingSignatureError,
    NotFoundError,
    RejectedByMarketplaceError,
    SubmissionFailedError,
)

logger = logging.getLogger(__name__)


class ActiveListings:
    """Active listings for one collection.

    Lazy and restartable: every iteration fetches the first page afresh and
    yields only listings whose status is ACTIVE.
    """

    def __init__(self, marketplace: Marketplace, sell_item_address: str, page_size: int):
        require_address(sell_item_address, "sell_item_address")
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.marketplace = marketplace
        self.sell_item_address = sell_item_address
        self.page_size = page_size

    def __iter__(self) -> Iterator[Listing]:
        page = self.marketplace.list_listings(
            self.sell_item_address, ListingStatus.ACTIVE, self.page_size
        )
        logger.debug(
            "Fetched %d listings for %s", len(page.result), self.sell_item_address
        )
        for listing in page.result:
            if listing.status == ListingStatus.ACTIVE:
                yield listing


def select_listing_for_action(listings: Iterable[Listing]) -> str:
    """Return the id of the first active listing, or raise NotFoundError."""
    for listing in listings:
        if listing.status == ListingStatus.ACTIVE:
            return listing.id
    raise NotFoundError("No active listings found")


def _validate_fees(fees: Iterable[Fee]) -> list[Fee]:
    checked = []
    for fee in fees:
        require_amount(fee.amount, "fee amount")
        require_address(fee.recipient_address, "fee recipient_address")
        checked.append(fee)
    return checked


class OrderWorkflow:
    """Drives listing, cancellation and purchase runs against a marketplace.

    Actions are processed strictly in the order the marketplace returns them.
    Each transaction waits for its receipt before the next action starts and
    gets the configured gas policy, which overrides any fee fields the
    marketplace set. A failing transaction stops the run; transactions that
    already landed stay on chain and are reported on the error.

    Runs sharing one signer must be serialized by the caller.
    """

    def __init__(
        self,
        marketplace: Marketplace,
        signer: Signer,
        settings: WorkflowSettings,
        journal: RunJournal | None = None,
    ):
        self.marketplace = marketplace
        self.signer = signer
        self.settings = settings
        self.journal = journal

    # --- Listing queries ---

    def list_active_listings(
        self,
        sell_item_address: str | None = None,
        page_size: int | None = None,
    ) -> ActiveListings:
        address = sell_item_address or self.settings.collection_address
        size = self.settings.page_size if page_size is None else page_size
        return ActiveListings(self.marketplace, address, size)

    def select_listing_for_action(self, listings: Iterable[Listing]) -> str:
        return select_listing_for_action(listings)

    # --- Listing creation ---

    def prepare_and_sign_order(
        self, sell: Item, buy: Item, require_signature: bool = True
    ) -> SignedOrder:
        run = self._start(WorkflowFlow.LIST)
        maker = self.signer.get_address()
        logger.info("Preparing listing of %s for %s", sell.describe(), buy.describe())

        with self._marketplace_call(run):
            prepared = self.marketplace.prepare_listing(maker, buy, sell)
        run.order_hash = prepared.order_hash

        signature, _ = self._process_actions(run, prepared.actions)
        if not signature and require_signature:
            self._missing_signature(run, "Listing preparation returned no signable action")
        return SignedOrder(prepared=prepared, signature=signature, run=run)

    def submit_order(self, signed_order: SignedOrder, fees: Iterable[Fee] = ()) -> OrderRecord:
        """Create the listing from a signed order. A signed order is submitted at most once."""
        run = signed_order.run
        if not signed_order.signature:
            self._missing_signature(run, "Cannot create a listing without an order signature")
        maker_fees = _validate_fees(fees)
        self._advance(run, WorkflowState.SUBMITTING)

        prepared = signed_order.prepared
        with self._marketplace_call(run):
            record = self.marketplace.create_listing(
                prepared.order_components,
                prepared.order_hash,
                signed_order.signature,
                maker_fees,
            )
        run.listing_id = record.listing.id
        self._advance(run, WorkflowState.COMPLETE)
        logger.info(
            "Created listing %s (status %s)", record.listing.id, record.listing.status
        )
        return record

    def list_asset(
        self, sell: Item, buy: Item, maker_fees: Iterable[Fee] = ()
    ) -> OrderRecord:
        signed = self.prepare_and_sign_order(sell, buy)
        return self.submit_order(signed, maker_fees)

    # --- Cancellation ---

    def cancel_listings(self, listing_ids: Sequence[str]) -> CancellationResult:
        ids = list(listing_ids)
        if not ids:
            raise ValueError("at least one listing id is required")
        run = self._start(WorkflowFlow.CANCEL)
        run.listing_id = ",".join(ids)

        with self._marketplace_call(run, run.listing_id):
            action = self.marketplace.prepare_order_cancellations(ids)
        signature, _ = self._process_actions(run, [action])
        if not signature:
            self._missing_signature(run, "Cancellation produced no signature")
        account = self.signer.get_address()

        self._advance(run, WorkflowState.SUBMITTING)
        with self._marketplace_call(run, run.listing_id):
            result = self.marketplace.cancel_orders(ids, account, signature)
        self._advance(run, WorkflowState.COMPLETE)
        logger.info(
            "Cancellation: %d successful, %d pending, %d failed",
            len(result.successful),
            len(result.pending),
            len(result.failed),
        )
        return result

    # --- Fulfillment ---

    def fulfill_listing(
        self, listing_id: str, taker_fees: Iterable[Fee] = ()
    ) -> FulfillmentResult:
        fees = _validate_fees(taker_fees)
        run = self._start(WorkflowFlow.FULFILL)
        run.listing_id = listing_id
        taker = self.signer.get_address()
        logger.info("Fulfilling listing %s for %s", listing_id, taker)

        with self._marketplace_call(run, listing_id):
            response = self.marketplace.fulfill_order(listing_id, taker, fees)
        _, receipts = self._process_actions(run, response.actions)
        self._advance(run, WorkflowState.COMPLETE)
        logger.info(
            "Fulfilled listing %s with %d transaction(s), order expires %s",
            listing_id,
            len(receipts),
            response.expiration,
        )
        return FulfillmentResult(
            order=response.order,
            expiration=response.expiration,
            receipts=receipts,
            run=run,
        )

    def purchase_first_active(
        self,
        sell_item_address: str | None = None,
        taker_fees: Iterable[Fee] = (),
    ) -> FulfillmentResult:
        listing_id = self.select_listing_for_action(
            self.list_active_listings(sell_item_address)
        )
        return self.fulfill_listing(listing_id, taker_fees)

    # --- Internals ---

    def _start(self, flow: WorkflowFlow) -> WorkflowRun:
        run = WorkflowRun(run_id=str(uuid.uuid4()), flow=flow)
        logger.debug("Starting %s run %s", flow, run.run_id)
        self._record(run)
        return run

    def _advance(
        self, run: WorkflowRun, state: WorkflowState, action_index: int | None = None
    ) -> None:
        run.advance(state, action_index)
        self._record(run)

    def _fail(
        self, run: WorkflowRun, error: BaseException, action_index: int | None = None
    ) -> None:
        run.fail(error, action_index)
        self._record(run)
        logger.error("Run %s (%s) failed: %s", run.run_id, run.flow, error)
        if run.partially_committed:
            logger.error(
                "Run %s left %d confirmed transaction(s) on chain: %s",
                run.run_id,
                len(run.committed_tx_hashes),
                ", ".join(run.committed_tx_hashes),
            )
        if run.failed_tx_hashes:
            logger.error(
                "Run %s broadcast unconfirmed transaction(s): %s",
                run.run_id,
                ", ".join(run.failed_tx_hashes),
            )

    def _missing_signature(self, run: WorkflowRun, message: str) -> None:
        error = MissingSignatureError(message, run=run)
        self._fail(run, error)
        raise error

    def _record(self, run: WorkflowRun) -> None:
        if self.journal is not None:
            self.journal.record(run)

    @contextmanager
    def _marketplace_call(self, run: WorkflowRun, listing_id: str = ""):
        try:
            yield
        except MarketplaceRejectedError as e:
            self._fail(run, e)
            raise RejectedByMarketplaceError(
                f"Order book rejected the request: {e}",
                status_code=e.status_code,
                payload=e.payload,
                listing_id=listing_id,
                run=run,
            ) from e
        except MarketplaceError as e:
            self._fail(run, e)
            raise
        except Exception as e:
            self._fail(run, e)
            raise CollaboratorError(
                f"{type(e).__name__}: {e}", listing_id=listing_id, run=run
            ) from e

    def _process_actions(
        self, run: WorkflowRun, actions: Sequence[Action]
    ) -> tuple[str, list[TxReceipt]]:
        """Run actions in order. Returns the latest signature and the transaction receipts."""
        signature = ""
        receipts: list[TxReceipt] = []
        for index, action in enumerate(actions):
            self._advance(run, WorkflowState.ACTING, index)
            if action.type == ActionType.TRANSACTION:
                receipts.append(self._submit_transaction(run, index, action))
                continue

            message = action.message
            try:
                signature = self.signer.sign_typed_data(
                    message.domain, message.types, message.value
                )
            except Exception as e:
                self._fail(run, e, index)
                raise CollaboratorError(
                    f"Signing {action.purpose} (action {index}) failed: {e}",
                    action_index=index,
                    run=run,
                ) from e
            self._advance(run, WorkflowState.SIGNED)
        return signature, receipts

    def _submit_transaction(
        self, run: WorkflowRun, index: int, action: TransactionAction
    ) -> TxReceipt:
        logger.info("Submitting %s transaction (action %d)", action.purpose, index)
        try:
            tx = apply_gas_policy(action.build_transaction(), self.settings.gas_policy)
            receipt = self.signer.send_transaction(tx)
        except TransactionFailedError as e:
            if e.receipt is not None:
                run.failed_tx_hashes.append(e.receipt.tx_hash)
                if self.journal is not None:
                    self.journal.record_transaction(run, index, action.purpose, e.receipt)
            raise self._submission_failed(run, index, action, e) from e
        except Exception as e:
            raise self._submission_failed(run, index, action, e) from e

        if receipt.committed:
            run.committed_tx_hashes.append(receipt.tx_hash)
        if self.journal is not None:
            self.journal.record_transaction(run, index, action.purpose, receipt)
        logger.info("%s transaction %s: %s", action.purpose, receipt.tx_hash, receipt.status)
        return receipt

    def _submission_failed(
        self, run: WorkflowRun, index: int, action: TransactionAction, error: Exception
    ) -> SubmissionFailedError:
        self._fail(run, error, index)
        return SubmissionFailedError(
            f"{action.purpose} transaction (action {index}) failed: {error}",
            action_index=index,
            committed_tx_hashes=run.committed_tx_hashes,
            run=run,
        )
