"""Replay-safe ledger of attested DeFi lending activity with deterministic credit scoring."""

__version__ = "0.1.0"
