"""Tests for workflow wiring from configuration."""

import pytest
from web3 import Web3

from orderflow.config.loader import load_config
from orderflow.storage.journal import RunJournal
from orderflow.tests.fakes import DEV_ADDRESS, DEV_PRIVATE_KEY
from orderflow.wallet.submitter import DryRunSubmitter, Web3Submitter
from orderflow.workflow.factory import build_orderbook, build_submitter, build_workflow


@pytest.fixture
def web3():
    return Web3(Web3.HTTPProvider("http://127.0.0.1:8545"))


class TestFactory:
    def test_dry_run_submitter_by_default(self, web3):
        config = load_config(None, environ={})
        assert isinstance(build_submitter(config, web3), DryRunSubmitter)

    def test_live_submitter(self, web3):
        config = load_config(None, environ={"ORDERFLOW_MODE": "live"})
        submitter = build_submitter(config, web3)
        assert isinstance(submitter, Web3Submitter)
        assert submitter.chain_id == 13473

    def test_orderbook_uses_environment(self, web3):
        config = load_config(None, environ={"PUBLISHABLE_API_KEY": "pk"})
        orderbook = build_orderbook(config, web3)
        assert orderbook.client.chain_name == "imtbl-zkevm-testnet"
        assert orderbook.client.publishable_key == "pk"
        assert orderbook.seaport.chain_id == 13473

    def test_workflow_requires_key(self, web3):
        with pytest.raises(ValueError, match="private key"):
            build_workflow(load_config(None, environ={}), "", web3=web3)

    def test_workflow_with_journal(self, web3, tmp_db):
        workflow = build_workflow(
            load_config(None, environ={}), DEV_PRIVATE_KEY, conn=tmp_db, web3=web3
        )
        assert workflow.signer.get_address() == DEV_ADDRESS
        assert isinstance(workflow.journal, RunJournal)
        assert workflow.settings.page_size == 50
