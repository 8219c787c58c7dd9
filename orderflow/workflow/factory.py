"""Wire an OrderWorkflow from configuration."""

import logging
import sqlite3

from web3 import Web3

from orderflow.config.loader import config_hash, workflow_settings
from orderflow.config.schema import ExecutionMode, OrderflowConfig
from orderflow.marketplace.orderbook import Orderbook
from orderflow.marketplace.orderbook_client import OrderbookClient
from orderflow.marketplace.seaport import SeaportGateway
from orderflow.storage.journal import RunJournal
from orderflow.wallet.base import TransactionSubmitter
from orderflow.wallet.signer import WalletSigner
from orderflow.wallet.submitter import DryRunSubmitter, Web3Submitter
from orderflow.workflow.order_workflow import OrderWorkflow

logger = logging.getLogger(__name__)


def build_web3(config: OrderflowConfig) -> Web3:
    return Web3(
        Web3.HTTPProvider(
            config.network.rpc_url,
            request_kwargs={"timeout": config.network.request_timeout_s},
        )
    )


def build_orderbook(config: OrderflowConfig, web3: Web3) -> Orderbook:
    client = OrderbookClient(
        publishable_key=config.marketplace.publishable_key,
        base_url=config.marketplace.base_url,
        chain_name=config.marketplace.chain_name,
        timeout=config.marketplace.timeout_s,
    )
    seaport = SeaportGateway(web3, config.seaport, config.network.chain_id)
    return Orderbook(client, seaport)


def build_submitter(config: OrderflowConfig, web3: Web3) -> TransactionSubmitter:
    if config.execution.mode == ExecutionMode.LIVE:
        return Web3Submitter(web3, config.network.chain_id, config.network.receipt_timeout_s)
    return DryRunSubmitter(config.network.chain_id)


def build_workflow(
    config: OrderflowConfig,
    private_key: str,
    conn: sqlite3.Connection | None = None,
    web3: Web3 | None = None,
) -> OrderWorkflow:
    """Build a workflow signing with ``private_key``.

    Dry-run mode still talks to the order book and reads the chain; only
    transaction broadcast is replaced.
    """
    if not private_key:
        raise ValueError("a private key is required to sign orders")
    web3 = web3 or build_web3(config)
    signer = WalletSigner(private_key, build_submitter(config, web3))
    journal = RunJournal(conn, config_hash(config)) if conn is not None else None
    logger.info(
        "Workflow for %s on %s (%s mode)",
        signer.address,
        config.marketplace.chain_name,
        config.execution.mode,
    )
    return OrderWorkflow(
        marketplace=build_orderbook(config, web3),
        signer=signer,
        settings=workflow_settings(config),
        journal=journal,
    )
