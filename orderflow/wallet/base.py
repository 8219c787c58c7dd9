"""Signer and transaction submitter contracts used by the workflow."""

from typing import Any, Protocol

from orderflow.models.transaction import TxReceipt


class Signer(Protocol):
    def get_address(self) -> str: ...

    def sign_typed_data(
        self,
        domain: dict[str, Any],
        types: dict[str, list[dict[str, str]]],
        value: dict[str, Any],
    ) -> str: ...

    def send_transaction(self, tx: dict[str, Any]) -> TxReceipt: ...


class TransactionSubmitter(Protocol):
    chain_id: int

    def get_nonce(self, address: str) -> int: ...

    def submit(self, raw_transaction: bytes) -> TxReceipt: ...
