"""Aave v3 lending protocol handler."""

from defi_credit_ledger.core.models import ActionKind, Observation, ObservationRole, Protocol
from defi_credit_ledger.core.registry import HandlerRegistry
from defi_credit_ledger.data.addresses import AddressRegistry
from defi_credit_ledger.protocols.base import BaseProtocolHandler


@HandlerRegistry.register
class AaveHandler(BaseProtocolHandler):
    """
    Handler for Aave v3 positions.

    aToken balances track supply, variable debt token balances track
    borrowing. Stable-rate debt is not classified: observing it halts the
    rest of the batch.

    """

    protocol = Protocol.AAVE
    roles = frozenset({ObservationRole.AAVE_RESERVE, ObservationRole.AAVE_VARIABLE_DEBT})

    increase_actions = {
        ObservationRole.AAVE_RESERVE: ActionKind.SUPPLIED,
        ObservationRole.AAVE_VARIABLE_DEBT: ActionKind.BORROWED,
    }
    # Withdrawals never reduce the supplied total.
    decrease_actions = {
        ObservationRole.AAVE_RESERVE: None,
        ObservationRole.AAVE_VARIABLE_DEBT: ActionKind.REPAID,
    }

    def validate_binding(self, registry: AddressRegistry, observation: Observation) -> None:
        """
        Check the token is the reserve's aToken or variable debt token.

        Parameters
        ----------
        registry : AddressRegistry
            Address lookup service
        observation : Observation
            Observation to validate

        Raises
        ------
        InvalidTokenBinding
            If the reserve is unknown or the token does not match its role

        """
        reserve = registry.aave_reserve(observation.chain_id, observation.underlying_asset)
        if reserve is None:
            self._reject(observation, f"no reserve for underlying {observation.underlying_asset}")
            return

        if observation.role == ObservationRole.AAVE_RESERVE:
            expected = reserve.a_token
        else:
            expected = reserve.variable_debt_token

        if observation.role_token_address != expected:
            self._reject(observation, f"expected {expected}")
