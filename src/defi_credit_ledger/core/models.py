"""Data models for observations, activity records, events, and scores."""

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field, field_validator

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class Protocol(StrEnum):
    """Supported money-market protocol."""

    AAVE = "aave_v3"
    MORPHO = "morpho"
    COMPOUND = "compound_v3"

    @classmethod
    def from_id(cls, protocol_id: int) -> "Protocol":
        """
        Resolve the numeric protocol id used on the wire.

        Parameters
        ----------
        protocol_id : int
            0 = Aave, 1 = Morpho, 2 = Compound

        Returns
        -------
        Protocol
            Matching protocol

        Raises
        ------
        ValueError
            If the id is unknown

        """
        try:
            return _PROTOCOL_IDS[protocol_id]
        except KeyError:
            msg = f"Unknown protocol id: {protocol_id}"
            raise ValueError(msg) from None


_PROTOCOL_IDS = {0: Protocol.AAVE, 1: Protocol.MORPHO, 2: Protocol.COMPOUND}


class ObservationRole(StrEnum):
    """Position kind an observed balance belongs to."""

    AAVE_RESERVE = "aave_reserve"
    AAVE_VARIABLE_DEBT = "aave_variable_debt"
    AAVE_STABLE_DEBT = "aave_stable_debt"
    COMPOUND_BASE = "compound_base"
    COMPOUND_COLLATERAL = "compound_collateral"


class ActionKind(StrEnum):
    """Classified action emitted as an event."""

    BORROWED = "borrowed"
    REPAID = "repaid"
    SUPPLIED = "supplied"


class Tier(StrEnum):
    """Coarse credit bucket."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"


class Observation(BaseModel):
    """
    Attested snapshot of a user's balance in one position at one block.

    Attributes
    ----------
    underlying_asset : str
        Underlying ERC-20 (e.g. USDC for aUSDC)
    role_token_address : str
        Position token (aToken, debt token, or Comet market)
    chain_id : int
        Chain the balance was read on
    block_height : int
        Block the balance was read at
    balance : int
        Cumulative raw balance in token units
    role : ObservationRole
        Position kind

    """

    underlying_asset: str
    role_token_address: str
    chain_id: int
    block_height: int = Field(ge=0)
    balance: int = Field(ge=0)
    role: ObservationRole

    @field_validator("underlying_asset", "role_token_address")
    @classmethod
    def _lower(cls, value: str) -> str:
        return value.lower()


class ActivityRecord(BaseModel):
    """
    Cumulative lending activity for one user, per protocol or aggregated.

    All USD amounts are integers. Counters never decrease. ``latest_balance``
    is the raw token balance of the last folded observation on a protocol
    record and stays 0 on the cross-protocol aggregate.

    """

    borrowed_total: int = 0
    supplied_total: int = 0
    repaid_total: int = 0
    borrow_count: int = 0
    supply_count: int = 0
    repay_count: int = 0
    latest_processed_height: int = 0
    first_activity_height: int = 0
    liquidation_count: int = 0
    latest_balance: int = 0

    @property
    def has_activity(self) -> bool:
        """Whether any amount or count has been recorded."""
        return any(
            (
                self.borrowed_total,
                self.supplied_total,
                self.repaid_total,
                self.borrow_count,
                self.supply_count,
                self.repay_count,
            )
        )


class UserLedger(BaseModel):
    """
    All persisted state for one user.

    Attributes
    ----------
    user : str
        Lowercased user address
    records : dict[Protocol, ActivityRecord]
        Per-protocol records, created lazily
    aggregate : ActivityRecord
        Cross-protocol record
    seen : set[str]
        Dedup keys of folded observations
    balances : dict[str, int]
        Last known balance per balance-cache key

    """

    user: str
    records: dict[Protocol, ActivityRecord] = Field(default_factory=dict)
    aggregate: ActivityRecord = Field(default_factory=ActivityRecord)
    seen: set[str] = Field(default_factory=set)
    balances: dict[str, int] = Field(default_factory=dict)

    def record(self, protocol: Protocol) -> ActivityRecord:
        """Return the record for a protocol, creating it on first use."""
        if protocol not in self.records:
            self.records[protocol] = ActivityRecord()
        return self.records[protocol]


class ActivityEvent(BaseModel):
    """Notification emitted for each classified borrow, repay, or supply."""

    type: Literal["activity"] = "activity"
    user: str
    protocol: Protocol
    kind: ActionKind
    amount: int
    new_total: int
    new_count: int
    block_height: int


class ConfigChanged(BaseModel):
    """Notification emitted when an admin swaps a dependency."""

    type: Literal["config_changed"] = "config_changed"
    key: str
    old_value: str
    new_value: str


class LiquidationRecorded(BaseModel):
    """Notification emitted when a liquidation signal is recorded."""

    type: Literal["liquidation"] = "liquidation"
    user: str
    protocol: Protocol
    liquidation_count: int


class ScoreFactors(BaseModel):
    """Per-factor sub-scores on a 0-100 scale."""

    repay_rate: int
    utilization: int
    cushion: int
    history: int
    recency: int


class CreditScore(BaseModel):
    """
    Score and tier for a record.

    Attributes
    ----------
    score : int
        Score in [0, 100]
    tier : Tier
        A-D bucket
    factors : ScoreFactors | None
        Factor breakdown, None when the liquidation override applied

    """

    score: int
    tier: Tier
    factors: ScoreFactors | None = None


class TotalActivity(BaseModel):
    """Per-protocol breakdown and cross-protocol aggregate for one user."""

    user: str
    by_protocol: dict[Protocol, ActivityRecord] = Field(default_factory=dict)
    aggregate: ActivityRecord = Field(default_factory=ActivityRecord)


class Claim(BaseModel):
    """
    Verified-calldata boundary: an attested batch submitted by a user.

    Attributes
    ----------
    claimant : str
        User the observations belong to
    protocol : Protocol
        Protocol the observations were collected from
    selector : str
        Prover function that produced the attestation
    prover : str
        Address of the prover contract that produced the attestation
    seal : str
        Opaque attestation seal (hex)
    observations : list[Observation]
        Attested balances

    """

    claimant: str
    protocol: Protocol
    selector: str
    prover: str
    seal: str
    observations: list[Observation] = Field(default_factory=list)

    @field_validator("claimant", "prover")
    @classmethod
    def _lower(cls, value: str) -> str:
        return value.lower()
