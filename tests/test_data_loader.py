"""Tests for data loading and configuration."""

import pytest

from defi_credit_ledger.data import (
    get_all_supported_chains,
    get_chain_config,
    get_chain_id,
    get_chain_name,
    get_protocol_addresses,
    get_stable_assets,
)


def test_get_all_supported_chains():
    """Test getting all supported chain names."""
    chains = get_all_supported_chains()

    assert isinstance(chains, list)
    assert "ethereum" in chains
    assert "optimism" in chains
    assert len(chains) >= 2


def test_get_chain_config():
    """Test getting chain configuration."""
    config = get_chain_config("optimism")

    assert "chain_id" in config
    assert "stable_assets" in config
    assert "protocols" in config
    assert config["chain_id"] == 10


def test_get_chain_config_unknown():
    """Test that an unknown chain raises KeyError."""
    with pytest.raises(KeyError):
        get_chain_config("solana")


def test_get_chain_id():
    """Test getting chain ID."""
    assert get_chain_id("ethereum") == 1
    assert get_chain_id("optimism") == 10
    assert get_chain_id("base") == 8453


def test_get_chain_name():
    """Test reverse lookup of chain name by ID."""
    assert get_chain_name(10) == "optimism"

    with pytest.raises(KeyError):
        get_chain_name(999)


def test_get_stable_assets():
    """Test getting reference stable assets for a chain."""
    stables = get_stable_assets("optimism")

    assert "0x7f5c764cbc14f9669b88837ca1490cca17c31607" in stables
    assert all(address.startswith("0x") for address in stables)


def test_get_protocol_addresses():
    """Test getting protocol addresses."""
    aave_op = get_protocol_addresses("optimism", "aave_v3")
    assert "pool" in aave_op
    assert "reserves" in aave_op

    compound_base = get_protocol_addresses("base", "compound_v3")
    assert "markets" in compound_base

    # Aave is not configured on Base
    assert get_protocol_addresses("base", "aave_v3") == {}

    # Non-existent chain or protocol should return empty dict
    assert get_protocol_addresses("ethereum", "nonexistent") == {}
    assert get_protocol_addresses("solana", "aave_v3") == {}


def test_chain_config_structure():
    """Test that chain config has required structure."""
    for chain in get_all_supported_chains():
        config = get_chain_config(chain)

        assert isinstance(config["chain_id"], int)
        assert isinstance(config["stable_assets"], dict)
        assert isinstance(config["protocols"], dict)
        assert len(config["stable_assets"]) > 0


def test_addresses_are_lowercase():
    """Test that every configured address is stored lowercased."""
    for chain in get_all_supported_chains():
        config = get_chain_config(chain)
        for address in config["stable_assets"].values():
            assert address == address.lower()
        for market, spec in config["protocols"].get("compound_v3", {}).get("markets", {}).items():
            assert market == market.lower()
            assert all(c == c.lower() for c in spec["collaterals"])
