"""Compound v3 (Comet) lending protocol handler."""

from defi_credit_ledger.core.models import ActionKind, Observation, ObservationRole, Protocol
from defi_credit_ledger.core.registry import HandlerRegistry
from defi_credit_ledger.data.addresses import AddressRegistry
from defi_credit_ledger.protocols.base import BaseProtocolHandler


@HandlerRegistry.register
class CompoundHandler(BaseProtocolHandler):
    """
    Handler for Compound v3 positions.

    The role token is always the Comet market. Base observations carry the
    borrowed balance of the market's base token. Collateral observations
    carry the balance of one collateral asset, so a market holds one cached
    balance per collateral.

    """

    protocol = Protocol.COMPOUND
    roles = frozenset({ObservationRole.COMPOUND_BASE, ObservationRole.COMPOUND_COLLATERAL})

    increase_actions = {
        ObservationRole.COMPOUND_BASE: ActionKind.BORROWED,
        ObservationRole.COMPOUND_COLLATERAL: ActionKind.SUPPLIED,
    }
    # Collateral withdrawals never reduce the supplied total.
    decrease_actions = {
        ObservationRole.COMPOUND_BASE: ActionKind.REPAID,
        ObservationRole.COMPOUND_COLLATERAL: None,
    }

    def balance_key(self, observation: Observation) -> str:
        if observation.role == ObservationRole.COMPOUND_COLLATERAL:
            return f"{observation.role_token_address}:{observation.underlying_asset}"
        return observation.role_token_address

    def validate_binding(self, registry: AddressRegistry, observation: Observation) -> None:
        """
        Check the market exists and accepts the observed asset in its role.

        Raises
        ------
        InvalidTokenBinding
            If the market is unknown, the base token differs, or the
            collateral is not listed

        """
        market = registry.compound_market(observation.chain_id, observation.role_token_address)
        if market is None:
            self._reject(observation, "unknown market")
            return

        if observation.role == ObservationRole.COMPOUND_BASE:
            if observation.underlying_asset != market.base_token:
                self._reject(observation, f"base token is {market.base_token}")
        elif observation.underlying_asset not in market.collaterals:
            self._reject(observation, f"{observation.underlying_asset} is not a listed collateral")
