"""Shared test fixtures."""

import sqlite3
from pathlib import Path

import pytest
import yaml

from orderflow.config.schema import OrderflowConfig
from orderflow.models.transaction import GasPolicy
from orderflow.models.workflow import WorkflowSettings
from orderflow.storage.database import connect, run_migrations
from orderflow.tests.fakes import COLLECTION, FakeMarketplace, FakeSigner


@pytest.fixture
def tmp_db(tmp_path: Path) -> sqlite3.Connection:
    """Migrated temporary SQLite database."""
    conn = connect(tmp_path / "test.db")
    run_migrations(conn)
    yield conn
    conn.close()


@pytest.fixture
def default_config() -> OrderflowConfig:
    return OrderflowConfig()


@pytest.fixture
def config_yaml_path(tmp_path: Path) -> Path:
    """Write a minimal valid config YAML and return its path."""
    data = {
        "execution": {"mode": "dry-run"},
        "marketplace": {"environment": "sandbox", "publishable_key": "pk_test"},
        "gas": {"max_priority_fee_per_gas": 10_000_000_000, "max_fee_per_gas": 15_000_000_000},
        "listing": {"page_size": 25},
    }
    path = tmp_path / "test_config.yaml"
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path


@pytest.fixture
def settings() -> WorkflowSettings:
    return WorkflowSettings(
        gas_policy=GasPolicy(
            max_priority_fee_per_gas=10_000_000_000,
            max_fee_per_gas=15_000_000_000,
            gas_limit=400_000,
        ),
        collection_address=COLLECTION,
        page_size=50,
    )


@pytest.fixture
def marketplace() -> FakeMarketplace:
    return FakeMarketplace()


@pytest.fixture
def signer() -> FakeSigner:
    return FakeSigner()
