"""Price normalizers converting token amounts to USD."""

from defi_credit_ledger.pricing.base import PriceNormalizer, StaticPriceNormalizer
from defi_credit_ledger.pricing.defillama import DeFiLlamaNormalizer

__all__ = [
    "DeFiLlamaNormalizer",
    "PriceNormalizer",
    "StaticPriceNormalizer",
]
