"""Activity ledger: folds attested balance observations into per-user records."""

import logging
import threading
from collections.abc import Callable
from typing import Any

# Import all handlers to trigger auto-registration
from defi_credit_ledger import protocols  # noqa: F401
from defi_credit_ledger.core.credit import BLOCKS_PER_DAY, score_record
from defi_credit_ledger.core.errors import (
    ConfigurationError,
    InvalidTokenBinding,
    Unauthorized,
    UnsupportedObservationRole,
)
from defi_credit_ledger.core.events import EventBus
from defi_credit_ledger.core.models import (
    ZERO_ADDRESS,
    ActionKind,
    ActivityEvent,
    ActivityRecord,
    ConfigChanged,
    CreditScore,
    LiquidationRecorded,
    Observation,
    Protocol,
    TotalActivity,
    UserLedger,
)
from defi_credit_ledger.core.registry import HandlerRegistry
from defi_credit_ledger.core.store import LedgerStore
from defi_credit_ledger.data.addresses import AddressRegistry
from defi_credit_ledger.pricing.base import PriceNormalizer
from defi_credit_ledger.protocols.base import BaseProtocolHandler

logger = logging.getLogger(__name__)

_COUNTERS = {
    ActionKind.BORROWED: ("borrowed_total", "borrow_count"),
    ActionKind.REPAID: ("repaid_total", "repay_count"),
    ActionKind.SUPPLIED: ("supplied_total", "supply_count"),
}


def dedup_key(protocol: Protocol, balance_key: str, height: int) -> str:
    """Key recording that a position has been folded at a height for a user."""
    return f"{protocol}:{balance_key}:{height}"


def _apply(record: ActivityRecord, action: ActionKind, amount: int) -> tuple[int, int]:
    total_field, count_field = _COUNTERS[action]
    total = getattr(record, total_field) + amount
    count = getattr(record, count_field) + 1
    setattr(record, total_field, total)
    setattr(record, count_field, count)
    return total, count


def _normalizer_name(normalizer: Any) -> str:
    return getattr(normalizer, "name", type(normalizer).__name__)


class ActivityLedger:
    """
    Replay-safe ledger of lending activity per user and protocol.

    Each ingest either commits fully or not at all, with one exception: an
    unsupported observation role halts the batch after committing the
    observations before it. Ingests for the same user are serialized.

    Parameters
    ----------
    store : LedgerStore
        Keyed storage for user ledgers
    registry : AddressRegistry
        Authoritative token bindings
    price_normalizer : PriceNormalizer
        USD quoting service
    admin : str
        Address allowed to call admin operations
    chain_id : int
        Active chain, selects the reference stable assets
    blocks_per_day : int
        Average blocks per day, used by scoring
    bus : EventBus | None
        Event channel, created when None

    """

    def __init__(
        self,
        store: LedgerStore,
        registry: AddressRegistry,
        price_normalizer: PriceNormalizer,
        admin: str,
        chain_id: int,
        blocks_per_day: int = BLOCKS_PER_DAY,
        bus: EventBus | None = None,
    ) -> None:
        if not admin or admin.lower() == ZERO_ADDRESS:
            msg = "Ledger admin address must be set"
            raise ConfigurationError(msg)
        if price_normalizer is None:
            msg = "Price normalizer must be set"
            raise ConfigurationError(msg)

        self.store = store
        self.registry = registry
        self.admin = admin.lower()
        self.chain_id = chain_id
        self.blocks_per_day = blocks_per_day
        self.bus = bus or EventBus()
        self._price_normalizer = price_normalizer
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @property
    def price_normalizer(self) -> PriceNormalizer:
        return self._price_normalizer

    def subscribe(self, callback: Callable[[Any], None]) -> Callable[[], None]:
        """Register an observer for ledger events. Returns an unsubscribe function."""
        return self.bus.subscribe(callback)

    def ingest(
        self,
        caller: str,
        user: str,
        protocol: Protocol,
        observations: list[Observation],
    ) -> list[ActivityEvent]:
        """
        Fold a batch of attested observations into the user's records.

        Observations are processed in order. An observation below the
        protocol's latest processed height, or one already folded, is skipped
        silently.

        Parameters
        ----------
        caller : str
            Authenticated submitter, must be ``user``
        user : str
            Owner of the observations
        protocol : Protocol
            Protocol the observations were collected from
        observations : list[Observation]
            Attested balances

        Returns
        -------
        list[ActivityEvent]
            One event per borrow, repay, or supply recorded

        Raises
        ------
        Unauthorized
            If caller is not user
        InvalidTokenBinding
            If any observation's token is not genuine; nothing is committed
        PriceUnavailable
            If a quote fails; nothing is committed
        UnsupportedObservationRole
            If an observation's role cannot be classified; observations
            before it stay committed

        """
        user = user.lower()
        if caller.lower() != user:
            msg = f"{caller} cannot submit activity for {user}"
            raise Unauthorized(msg)

        handler = self._handler_for(protocol)
        self._validate_bindings(handler, observations)
        normalizer = self._price_normalizer

        events: list[ActivityEvent] = []
        halted: UnsupportedObservationRole | None = None

        with self._lock_for(user):
            ledger = self.store.load(user)
            for index, observation in enumerate(observations):
                if not handler.supports(observation.role):
                    msg = f"{protocol} cannot classify role {observation.role}; halting at observation {index}"
                    halted = UnsupportedObservationRole(msg, index=index, applied_events=events)
                    break
                event = self._fold(ledger, protocol, handler, observation, normalizer)
                if event is not None:
                    events.append(event)
            self.store.save(ledger)

        logger.info(
            "Ingested %d/%d %s observations for %s: %d events",
            halted.index if halted else len(observations),
            len(observations),
            protocol,
            user,
            len(events),
        )
        self.bus.publish(events)

        if halted is not None:
            logger.warning("%s", halted)
            raise halted
        return events

    def _handler_for(self, protocol: Protocol) -> BaseProtocolHandler:
        handler_class = HandlerRegistry.get_handler(protocol)
        if handler_class is None:
            msg = f"No handler for protocol {protocol}"
            raise UnsupportedObservationRole(msg, index=0)
        return handler_class()

    def _validate_bindings(self, handler: BaseProtocolHandler, observations: list[Observation]) -> None:
        for index, observation in enumerate(observations):
            # Unsupported roles halt the batch when reached, not here.
            if not handler.supports(observation.role):
                continue
            try:
                handler.validate_binding(self.registry, observation)
            except InvalidTokenBinding as e:
                e.index = index
                raise

    def _fold(
        self,
        ledger: UserLedger,
        protocol: Protocol,
        handler: BaseProtocolHandler,
        observation: Observation,
        normalizer: PriceNormalizer,
    ) -> ActivityEvent | None:
        record = ledger.record(protocol)
        aggregate = ledger.aggregate
        height = observation.block_height

        if height < record.latest_processed_height:
            logger.debug(
                "Skipping stale %s observation at %d (latest %d)", protocol, height, record.latest_processed_height
            )
            return None

        balance_key = handler.balance_key(observation)
        key = dedup_key(protocol, balance_key, height)
        if key in ledger.seen:
            logger.debug("Skipping already folded observation %s", key)
            return None

        last_balance = ledger.balances.get(balance_key, 0)
        increased = observation.balance >= last_balance
        delta = abs(observation.balance - last_balance)
        action = handler.classify(observation, increased)

        event = None
        if action is None:
            logger.debug("Ignoring %s decrease of %d on %s", observation.role, delta, balance_key)
        else:
            amount = self._to_usd(observation, delta, normalizer)
            total, count = _apply(record, action, amount)
            _apply(aggregate, action, amount)
            event = ActivityEvent(
                user=ledger.user,
                protocol=protocol,
                kind=action,
                amount=amount,
                new_total=total,
                new_count=count,
                block_height=height,
            )

        ledger.balances[balance_key] = observation.balance
        record.latest_balance = observation.balance

        record.latest_processed_height = max(record.latest_processed_height, height)
        aggregate.latest_processed_height = max(aggregate.latest_processed_height, height)

        ledger.seen.add(key)

        if record.first_activity_height == 0:
            record.first_activity_height = height
            if aggregate.first_activity_height == 0 or height < aggregate.first_activity_height:
                aggregate.first_activity_height = height

        return event

    def _to_usd(self, observation: Observation, delta: int, normalizer: PriceNormalizer) -> int:
        """Convert a raw delta to USD; reference stable assets pass through unchanged."""
        if observation.underlying_asset in self.registry.stable_assets(self.chain_id):
            return delta
        if delta == 0:
            return 0
        quoted = normalizer.quote(observation.chain_id, observation.underlying_asset, delta)
        return quoted // 10**normalizer.exponent

    def _lock_for(self, user: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(user)
            if lock is None:
                lock = self._locks[user] = threading.Lock()
            return lock

    def _require_admin(self, caller: str, operation: str) -> None:
        if caller.lower() != self.admin:
            msg = f"{caller} is not allowed to {operation}"
            raise Unauthorized(msg)

    def set_price_normalizer(self, caller: str, normalizer: PriceNormalizer | None) -> ConfigChanged:
        """
        Swap the price normalizer.

        Parameters
        ----------
        caller : str
            Must be the admin
        normalizer : PriceNormalizer | None
            Replacement normalizer

        Returns
        -------
        ConfigChanged
            The published change event

        Raises
        ------
        Unauthorized
            If caller is not the admin
        ConfigurationError
            If normalizer is None

        """
        self._require_admin(caller, "set the price normalizer")
        if normalizer is None:
            msg = "Price normalizer must not be empty"
            raise ConfigurationError(msg)

        event = ConfigChanged(
            key="price_normalizer",
            old_value=_normalizer_name(self._price_normalizer),
            new_value=_normalizer_name(normalizer),
        )
        self._price_normalizer = normalizer
        logger.info("Price normalizer changed from %s to %s", event.old_value, event.new_value)
        self.bus.publish([event])
        return event

    def record_liquidation(self, caller: str, user: str, protocol: Protocol) -> LiquidationRecorded:
        """
        Record a liquidation signal for a user on a protocol.

        Raises
        ------
        Unauthorized
            If caller is not the admin

        """
        self._require_admin(caller, "record liquidations")
        user = user.lower()
        with self._lock_for(user):
            ledger = self.store.load(user)
            record = ledger.record(protocol)
            record.liquidation_count += 1
            ledger.aggregate.liquidation_count += 1
            self.store.save(ledger)

        event = LiquidationRecorded(user=user, protocol=protocol, liquidation_count=record.liquidation_count)
        logger.info("Recorded liquidation for %s on %s (%d total)", user, protocol, record.liquidation_count)
        self.bus.publish([event])
        return event

    def get_record(self, user: str, protocol: Protocol) -> ActivityRecord:
        """Get a user's record for one protocol, empty if never active there."""
        return self.store.load(user).records.get(protocol, ActivityRecord())

    def get_aggregate(self, user: str) -> ActivityRecord:
        """Get a user's cross-protocol record."""
        return self.store.load(user).aggregate

    def total_activity(self, user: str) -> TotalActivity:
        """Get every protocol record and the aggregate from one snapshot."""
        ledger = self.store.load(user)
        return TotalActivity(user=ledger.user, by_protocol=ledger.records, aggregate=ledger.aggregate)

    def score(self, user: str, current_height: int) -> CreditScore:
        """Score a user's aggregate activity at a reference height."""
        return score_record(self.get_aggregate(user), current_height, self.blocks_per_day)

    def protocol_score(self, user: str, protocol: Protocol, current_height: int) -> CreditScore:
        """Score a user's activity on one protocol at a reference height."""
        return score_record(self.get_record(user, protocol), current_height, self.blocks_per_day)
