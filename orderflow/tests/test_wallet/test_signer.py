"""Tests for WalletSigner with a real development key."""

from eth_account import Account
from eth_account.messages import encode_typed_data
from web3 import Web3

from orderflow.models.transaction import TxReceipt, TxStatus
from orderflow.tests.fakes import COLLECTION, DEV_ADDRESS, DEV_PRIVATE_KEY
from orderflow.wallet.signer import WalletSigner
from orderflow.wallet.submitter import DryRunSubmitter

DOMAIN = {
    "name": "imtbl-order-book",
    "chainId": 13473,
    "verifyingContract": "0x" + "5e" * 20,
}
TYPES = {
    "CancelPayload": [{"name": "orders", "type": "Order[]"}],
    "Order": [{"name": "id", "type": "string"}],
}
VALUE = {"orders": [{"id": "listing-1"}]}


class RecordingSubmitter:
    chain_id = 13473

    def __init__(self):
        self.raw: list[bytes] = []

    def get_nonce(self, address: str) -> int:
        return 7

    def submit(self, raw_transaction: bytes) -> TxReceipt:
        self.raw.append(raw_transaction)
        return TxReceipt(tx_hash="0x" + "00" * 32, status=TxStatus.CONFIRMED, block_number=1)


def _tx() -> dict:
    return {
        "from": DEV_ADDRESS,
        "to": Web3.to_checksum_address(COLLECTION),
        "data": "0xa22cb465",
        "maxPriorityFeePerGas": 10_000_000_000,
        "maxFeePerGas": 15_000_000_000,
        "gas": 400_000,
    }


class TestWalletSigner:
    def test_address_from_key(self):
        signer = WalletSigner(DEV_PRIVATE_KEY, DryRunSubmitter(13473))
        assert signer.get_address() == DEV_ADDRESS
        assert signer.address == DEV_ADDRESS

    def test_typed_data_signature_recovers(self):
        signer = WalletSigner(DEV_PRIVATE_KEY, DryRunSubmitter(13473))
        signature = signer.sign_typed_data(DOMAIN, TYPES, VALUE)

        assert signature.startswith("0x")
        assert len(signature) == 2 + 65 * 2
        message = encode_typed_data(domain_data=DOMAIN, message_types=TYPES, message_data=VALUE)
        assert Account.recover_message(message, signature=signature) == DEV_ADDRESS

    def test_domain_type_entry_ignored(self):
        signer = WalletSigner(DEV_PRIVATE_KEY, DryRunSubmitter(13473))
        with_domain = {
            **TYPES,
            "EIP712Domain": [
                {"name": "name", "type": "string"},
                {"name": "chainId", "type": "uint256"},
                {"name": "verifyingContract", "type": "address"},
            ],
        }
        assert signer.sign_typed_data(DOMAIN, with_domain, VALUE) == signer.sign_typed_data(
            DOMAIN, TYPES, VALUE
        )

    def test_send_transaction_signs_locally(self):
        submitter = RecordingSubmitter()
        signer = WalletSigner(DEV_PRIVATE_KEY, submitter)
        receipt = signer.send_transaction(_tx())

        assert receipt.committed
        assert len(submitter.raw) == 1
        assert Account.recover_transaction(submitter.raw[0]) == DEV_ADDRESS

    def test_dry_run_never_broadcasts(self):
        signer = WalletSigner(DEV_PRIVATE_KEY, DryRunSubmitter(13473))
        first = signer.send_transaction(_tx())
        second = signer.send_transaction(_tx())

        assert first.status == TxStatus.DRY_RUN
        assert not first.committed
        assert len(first.tx_hash) == 66
        # nonces advance, so the two transactions differ
        assert first.tx_hash != second.tx_hash
