"""Local private-key signer for typed data and transactions."""

import logging
from typing import Any

from eth_account import Account
from eth_account.messages import encode_typed_data

from orderflow.models.transaction import TxReceipt
from orderflow.wallet.base import TransactionSubmitter

logger = logging.getLogger(__name__)

EIP712_DOMAIN = "EIP712Domain"


class WalletSigner:
    """Signs EIP-712 messages and transactions with one account.

    Transactions are signed locally and handed to ``submitter``, which either
    broadcasts them or, in dry-run mode, only logs them.
    """

    def __init__(self, private_key: str, submitter: TransactionSubmitter):
        self._account = Account.from_key(private_key)
        self.submitter = submitter

    @property
    def address(self) -> str:
        return self._account.address

    def get_address(self) -> str:
        return self._account.address

    def sign_typed_data(
        self,
        domain: dict[str, Any],
        types: dict[str, list[dict[str, str]]],
        value: dict[str, Any],
    ) -> str:
        message_types = {k: v for k, v in types.items() if k != EIP712_DOMAIN}
        signable = encode_typed_data(
            domain_data=domain, message_types=message_types, message_data=value
        )
        signed = self._account.sign_message(signable)
        logger.debug("Signed typed data for %s", domain.get("name", ""))
        return "0x" + signed.signature.hex().removeprefix("0x")

    def send_transaction(self, tx: dict[str, Any]) -> TxReceipt:
        unsigned = {k: v for k, v in tx.items() if k != "from"}
        unsigned["nonce"] = self.submitter.get_nonce(self.address)
        unsigned.setdefault("chainId", self.submitter.chain_id)
        unsigned.setdefault("value", 0)
        signed = self._account.sign_transaction(unsigned)
        return self.submitter.submit(bytes(signed.raw_transaction))
