"""CLI entry point for the order workflow."""

import argparse
import logging

from dotenv import find_dotenv, load_dotenv

from orderflow.config.loader import load_config, redacted_dump
from orderflow.config.schema import ExecutionMode, OrderflowConfig
from orderflow.marketplace.orderbook_client import MarketplaceError
from orderflow.models.order import Fee, Item
from orderflow.reporting.formatters import (
    format_cancellation,
    format_listing_line,
    format_run_text,
)
from orderflow.storage import run_repo
from orderflow.storage.database import open_database
from orderflow.workflow.errors import NotFoundError, SubmissionFailedError, WorkflowError
from orderflow.workflow.factory import build_orderbook, build_web3, build_workflow
from orderflow.workflow.order_workflow import ActiveListings, OrderWorkflow

DEFAULT_DB = "data/orderflow.db"

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_NOTHING_TO_DO = 2

logger = logging.getLogger(__name__)


def _fee(value: str) -> Fee:
    amount, sep, recipient = value.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError("use AMOUNT:RECIPIENT")
    try:
        return Fee(amount=amount.strip(), recipient_address=recipient.strip())
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="orderflow",
        description="List, purchase and cancel NFT listings on the order book",
    )
    parser.add_argument("--config", default=None, help="Config YAML path")
    parser.add_argument("--db", default=DEFAULT_DB, help="SQLite run journal path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command")

    # listings
    listings_p = sub.add_parser("listings", help="Show active listings")
    listings_p.add_argument("--collection", help="NFT contract address")
    listings_p.add_argument("--page-size", type=int, default=None)

    # list-asset
    list_p = sub.add_parser("list-asset", help="List an ERC721 token for sale")
    list_p.add_argument("--token-id", required=True)
    list_p.add_argument("--price", required=True, help="Price in wei (native currency)")
    list_p.add_argument("--collection", help="NFT contract address")
    list_p.add_argument(
        "--maker-fee", type=_fee, action="append", default=[], metavar="AMOUNT:RECIPIENT"
    )
    list_p.add_argument("--live", action="store_true", help="Broadcast transactions")

    # purchase
    buy_p = sub.add_parser("purchase", help="Fulfill a listing")
    buy_p.add_argument("--listing-id", help="Defaults to the first active listing")
    buy_p.add_argument(
        "--taker-fee", type=_fee, action="append", default=[], metavar="AMOUNT:RECIPIENT"
    )
    buy_p.add_argument("--live", action="store_true", help="Broadcast transactions")

    # cancel
    cancel_p = sub.add_parser("cancel", help="Cancel listings")
    cancel_p.add_argument("ids", nargs="*", help="Defaults to the first active listing")

    # runs
    runs_p = sub.add_parser("runs", help="Show journaled workflow runs")
    runs_p.add_argument("--limit", type=int, default=10)

    # config show
    config_p = sub.add_parser("config", help="Config operations")
    config_sub = config_p.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Display current config (secrets masked)")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_FAILED

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    load_dotenv(find_dotenv(usecwd=True), override=False)
    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        print(f"Error: invalid configuration: {e}")
        return EXIT_FAILED

    if args.command == "config":
        return _cmd_config(config, args)
    if args.command == "runs":
        return _cmd_runs(args)

    try:
        if args.command == "listings":
            return _cmd_listings(config, args)
        elif args.command == "list-asset":
            return _cmd_list_asset(config, args)
        elif args.command == "purchase":
            return _cmd_purchase(config, args)
        elif args.command == "cancel":
            return _cmd_cancel(config, args)
    except NotFoundError as e:
        print(f"Nothing to do: {e}")
        return EXIT_NOTHING_TO_DO
    except SubmissionFailedError as e:
        print(f"Error: {e}")
        if e.committed_tx_hashes:
            print("PARTIALLY COMMITTED: these transactions are already on chain:")
            for tx_hash in e.committed_tx_hashes:
                print(f"  {tx_hash}")
        if e.run is not None and e.run.failed_tx_hashes:
            print("Broadcast but not confirmed:")
            for tx_hash in e.run.failed_tx_hashes:
                print(f"  {tx_hash}")
        return EXIT_FAILED
    except (WorkflowError, MarketplaceError, ValueError) as e:
        logger.error("%s failed: %s", args.command, e)
        print(f"Error: {e}")
        return EXIT_FAILED

    parser.print_help()
    return EXIT_FAILED


def _with_mode(config: OrderflowConfig, live: bool) -> OrderflowConfig:
    if not live:
        return config
    execution = config.execution.model_copy(update={"mode": ExecutionMode.LIVE})
    return config.model_copy(update={"execution": execution})


def _workflow(config: OrderflowConfig, private_key: str, args) -> OrderWorkflow:
    if config.execution.mode == ExecutionMode.LIVE:
        print("WARNING: Running in LIVE mode, transactions will be broadcast")
    conn = open_database(args.db)
    return build_workflow(config, private_key, conn=conn)


def _print_listings(listings) -> int:
    count = 0
    for listing in listings:
        print(format_listing_line(listing))
        count += 1
    print(f"Active listings: {count}")
    return count


def _cmd_listings(config: OrderflowConfig, args) -> int:
    collection = args.collection or config.listing.collection_address
    page_size = config.listing.page_size if args.page_size is None else args.page_size
    listings = ActiveListings(
        build_orderbook(config, build_web3(config)), collection, page_size
    )
    _print_listings(listings)
    return EXIT_OK


def _cmd_list_asset(config: OrderflowConfig, args) -> int:
    config = _with_mode(config, args.live)
    workflow = _workflow(config, config.wallet.maker_private_key.get_secret_value(), args)
    collection = args.collection or config.listing.collection_address

    record = workflow.list_asset(
        sell=Item.erc721(collection, args.token_id),
        buy=Item.native(args.price),
        maker_fees=args.maker_fee,
    )
    print(f"Listing created: {record.listing.id} ({record.listing.status})")
    _print_listings(workflow.list_active_listings(collection))
    return EXIT_OK


def _cmd_purchase(config: OrderflowConfig, args) -> int:
    config = _with_mode(config, args.live)
    workflow = _workflow(config, config.wallet.taker_private_key.get_secret_value(), args)
    taker = config.wallet.taker_address
    if taker and taker.lower() != workflow.signer.get_address().lower():
        raise ValueError(f"taker key does not belong to configured taker address {taker}")

    if args.listing_id:
        result = workflow.fulfill_listing(args.listing_id, args.taker_fee)
    else:
        result = workflow.purchase_first_active(taker_fees=args.taker_fee)
    print(f"Purchased listing {result.order.id}, order expires {result.expiration}")
    for receipt in result.receipts:
        print(f"  {receipt.status} {receipt.tx_hash}")
    _print_listings(workflow.list_active_listings())
    return EXIT_OK


def _cmd_cancel(config: OrderflowConfig, args) -> int:
    workflow = _workflow(config, config.wallet.maker_private_key.get_secret_value(), args)
    ids = args.ids or [workflow.select_listing_for_action(workflow.list_active_listings())]
    result = workflow.cancel_listings(ids)
    print(format_cancellation(result))
    return EXIT_OK if not result.failed else EXIT_FAILED


def _cmd_runs(args) -> int:
    conn = open_database(args.db)
    runs = run_repo.get_recent_runs(conn, args.limit)
    if not runs:
        print("No runs recorded")
    for run in runs:
        print(format_run_text(run))
    conn.close()
    return EXIT_OK


def _cmd_config(config: OrderflowConfig, args) -> int:
    if args.config_command == "show":
        print(redacted_dump(config))
        return EXIT_OK
    print("Use: config show")
    return EXIT_FAILED

