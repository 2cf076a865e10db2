"""Pytest configuration for defi-credit-ledger tests."""

import pytest

from defi_credit_ledger.config import get_settings
from defi_credit_ledger.core.ledger import ActivityLedger
from defi_credit_ledger.core.store import MemoryStore
from defi_credit_ledger.data import AddressRegistry
from defi_credit_ledger.pricing import StaticPriceNormalizer
from tests.factories import ADMIN, OPTIMISM, PRICES


@pytest.fixture
def registry():
    return AddressRegistry.from_contracts()


@pytest.fixture
def prices():
    return StaticPriceNormalizer(PRICES)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def ledger(store, registry, prices):
    """Ledger on Optimism with static prices and in-memory storage."""
    return ActivityLedger(store=store, registry=registry, price_normalizer=prices, admin=ADMIN, chain_id=OPTIMISM)


@pytest.fixture(autouse=True)
def reset_settings():
    """Clear cached settings so environment changes apply per test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
