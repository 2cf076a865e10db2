"""Data loading and token binding lookups."""

from defi_credit_ledger.data.addresses import AaveReserve, AddressRegistry, CompoundMarket
from defi_credit_ledger.data.loader import (
    get_all_supported_chains,
    get_chain_config,
    get_chain_id,
    get_chain_name,
    get_protocol_addresses,
    get_stable_assets,
    load_contracts,
)

__all__ = [
    "AaveReserve",
    "AddressRegistry",
    "CompoundMarket",
    "get_all_supported_chains",
    "get_chain_config",
    "get_chain_id",
    "get_chain_name",
    "get_protocol_addresses",
    "get_stable_assets",
    "load_contracts",
]
