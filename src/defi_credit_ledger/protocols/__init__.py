"""Protocol handlers for supported money markets."""

# Import all handlers to trigger auto-registration
from defi_credit_ledger.protocols.aave import AaveHandler
from defi_credit_ledger.protocols.base import BaseProtocolHandler
from defi_credit_ledger.protocols.compound import CompoundHandler

__all__ = [
    "AaveHandler",
    "BaseProtocolHandler",
    "CompoundHandler",
]
