"""Contract address and chain configuration loader."""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml


@lru_cache
def load_contracts() -> dict[str, Any]:
    """
    Load token bindings from the packaged contracts.yaml.

    Returns
    -------
    dict[str, Any]
        Contract configuration keyed by chain name

    """
    path = Path(__file__).parent / "contracts.yaml"
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def get_chain_config(chain: str) -> dict[str, Any]:
    """
    Get configuration for a specific chain.

    Parameters
    ----------
    chain : str
        Chain name (e.g., 'ethereum', 'optimism')

    Returns
    -------
    dict[str, Any]
        Chain configuration including stable assets and protocols

    Raises
    ------
    KeyError
        If chain is not found in configuration

    """
    contracts = load_contracts()
    return contracts["chains"][chain]


def get_chain_id(chain: str) -> int:
    """Get numeric chain ID for a chain name."""
    return get_chain_config(chain)["chain_id"]


def get_chain_name(chain_id: int) -> str:
    """
    Get chain name for a numeric chain ID.

    Raises
    ------
    KeyError
        If no configured chain has this ID

    """
    for name, config in load_contracts()["chains"].items():
        if config["chain_id"] == chain_id:
            return name
    msg = f"No chain configured with id {chain_id}"
    raise KeyError(msg)


def get_stable_assets(chain: str) -> list[str]:
    """Get the reference stable assets treated as already USD-denominated."""
    return list(get_chain_config(chain).get("stable_assets", {}).values())


def get_protocol_addresses(chain: str, protocol: str) -> dict[str, Any]:
    """
    Get the binding table for a protocol on a chain.

    Parameters
    ----------
    chain : str
        Chain name
    protocol : str
        Protocol name (e.g., 'aave_v3', 'compound_v3')

    Returns
    -------
    dict[str, Any]
        Protocol bindings, empty when the protocol is not deployed there

    """
    try:
        return get_chain_config(chain)["protocols"].get(protocol, {})
    except KeyError:
        return {}


def get_all_supported_chains() -> list[str]:
    """Get list of all configured chain names."""
    return list(load_contracts()["chains"].keys())
