"""Transaction submitters: broadcast over JSON-RPC, or log and discard."""

import logging
from itertools import count

from web3 import Web3
from web3.exceptions import TimeExhausted, Web3Exception

from orderflow.models.transaction import TxReceipt, TxStatus

logger = logging.getLogger(__name__)


class TransactionFailedError(Exception):
    """Raised when a transaction is rejected, reverts, or its receipt never arrives.

    ``tx_hash`` is set once the node accepted the transaction; ``receipt``
    then describes what happened to it on chain.
    """

    def __init__(
        self,
        message: str,
        tx_hash: str | None = None,
        status: TxStatus = TxStatus.REVERTED,
        block_number: int | None = None,
        gas_used: int = 0,
    ):
        super().__init__(message)
        self.tx_hash = tx_hash
        self.status = status
        self.block_number = block_number
        self.gas_used = gas_used

    @property
    def receipt(self) -> TxReceipt | None:
        if self.tx_hash is None:
            return None
        return TxReceipt(
            tx_hash=self.tx_hash,
            status=self.status,
            block_number=self.block_number,
            gas_used=self.gas_used,
        )


class Web3Submitter:
    """Broadcast signed transactions and block until each is mined."""

    def __init__(self, web3: Web3, chain_id: int, receipt_timeout_s: float = 120.0):
        self.web3 = web3
        self.chain_id = chain_id
        self.receipt_timeout_s = receipt_timeout_s

    def get_nonce(self, address: str) -> int:
        return self.web3.eth.get_transaction_count(
            Web3.to_checksum_address(address), "pending"
        )

    def submit(self, raw_transaction: bytes) -> TxReceipt:
        try:
            tx_hash = Web3.to_hex(self.web3.eth.send_raw_transaction(raw_transaction))
        except (Web3Exception, ValueError) as e:
            logger.error("Transaction rejected by node: %s", e)
            raise TransactionFailedError(f"Transaction rejected: {e}") from e

        logger.info("Broadcast %s, waiting for receipt", tx_hash)
        try:
            receipt = self.web3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout_s
            )
        except TimeExhausted as e:
            logger.error("No receipt for %s after %.0fs", tx_hash, self.receipt_timeout_s)
            raise TransactionFailedError(
                f"Timed out waiting for receipt of {tx_hash}",
                tx_hash,
                status=TxStatus.UNCONFIRMED,
            ) from e

        if receipt["status"] != 1:
            logger.error("Transaction %s reverted in block %s", tx_hash, receipt["blockNumber"])
            raise TransactionFailedError(
                f"Transaction {tx_hash} reverted",
                tx_hash,
                block_number=receipt["blockNumber"],
                gas_used=receipt["gasUsed"],
            )

        logger.info("Transaction %s mined in block %s", tx_hash, receipt["blockNumber"])
        return TxReceipt(
            tx_hash=tx_hash,
            status=TxStatus.CONFIRMED,
            block_number=receipt["blockNumber"],
            gas_used=receipt["gasUsed"],
        )


class DryRunSubmitter:
    """Never broadcasts: logs the signed transaction and returns a simulated receipt."""

    def __init__(self, chain_id: int):
        self.chain_id = chain_id
        self._nonces = count()

    def get_nonce(self, address: str) -> int:
        return next(self._nonces)

    def submit(self, raw_transaction: bytes) -> TxReceipt:
        tx_hash = Web3.to_hex(Web3.keccak(raw_transaction))
        logger.info(
            "DRY-RUN: would broadcast %s (%d bytes) on chain %d",
            tx_hash,
            len(raw_transaction),
            self.chain_id,
        )
        return TxReceipt(tx_hash=tx_hash, status=TxStatus.DRY_RUN)
