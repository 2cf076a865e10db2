"""Core functionality including models, errors, registry, scoring, and storage."""

from defi_credit_ledger.core.credit import compute_score, score_record, tier_for
from defi_credit_ledger.core.errors import (
    ConfigurationError,
    CreditLedgerError,
    InvalidAttestation,
    InvalidTokenBinding,
    PriceUnavailable,
    Unauthorized,
    UnsupportedObservationRole,
)
from defi_credit_ledger.core.events import EventBus
from defi_credit_ledger.core.models import (
    ActionKind,
    ActivityEvent,
    ActivityRecord,
    Claim,
    ConfigChanged,
    CreditScore,
    LiquidationRecorded,
    Observation,
    ObservationRole,
    Protocol,
    Tier,
    TotalActivity,
    UserLedger,
)
from defi_credit_ledger.core.registry import HandlerRegistry
from defi_credit_ledger.core.store import JsonFileStore, LedgerStore, MemoryStore

# ActivityLedger and ClaimDispatcher import the protocol handlers, which import
# this package; load them from their modules directly.

__all__ = [
    "ActionKind",
    "ActivityEvent",
    "ActivityRecord",
    "Claim",
    "ConfigChanged",
    "ConfigurationError",
    "CreditLedgerError",
    "CreditScore",
    "EventBus",
    "HandlerRegistry",
    "InvalidAttestation",
    "InvalidTokenBinding",
    "JsonFileStore",
    "LedgerStore",
    "LiquidationRecorded",
    "MemoryStore",
    "Observation",
    "ObservationRole",
    "PriceUnavailable",
    "Protocol",
    "Tier",
    "TotalActivity",
    "Unauthorized",
    "UnsupportedObservationRole",
    "UserLedger",
    "compute_score",
    "score_record",
    "tier_for",
]
