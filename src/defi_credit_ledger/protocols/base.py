"""Base protocol handler class with common functionality."""

from abc import ABC, abstractmethod
from typing import ClassVar

from defi_credit_ledger.core.errors import InvalidTokenBinding
from defi_credit_ledger.core.models import ActionKind, Observation, ObservationRole, Protocol
from defi_credit_ledger.data.addresses import AddressRegistry


class BaseProtocolHandler(ABC):
    """
    Abstract base class for protocol handlers.

    A handler knows one protocol's position model: which roles it can
    classify, how a balance change in each role maps to an action, and which
    registry binding makes an observed token genuine.

    Attributes
    ----------
    protocol : Protocol
        Protocol identifier (must be set in subclass)
    roles : frozenset[ObservationRole]
        Roles the handler can classify (must be set in subclass)
    increase_actions : dict[ObservationRole, ActionKind]
        Action recorded when the balance of a role grows
    decrease_actions : dict[ObservationRole, ActionKind | None]
        Action recorded when the balance of a role shrinks, None for a no-op

    """

    protocol: ClassVar[Protocol | None] = None
    roles: ClassVar[frozenset[ObservationRole]] = frozenset()
    increase_actions: ClassVar[dict[ObservationRole, ActionKind]] = {}
    decrease_actions: ClassVar[dict[ObservationRole, ActionKind | None]] = {}

    def __init__(self) -> None:
        if not self.protocol:
            msg = f"{self.__class__.__name__} must define 'protocol' attribute"
            raise ValueError(msg)
        if not self.roles:
            msg = f"{self.__class__.__name__} must define 'roles' attribute"
            raise ValueError(msg)

    def supports(self, role: ObservationRole) -> bool:
        """Check if this handler can classify a role."""
        return role in self.roles

    def classify(self, observation: Observation, increased: bool) -> ActionKind | None:
        """
        Map a balance change to an action.

        Parameters
        ----------
        observation : Observation
            Observation being folded (role must be supported)
        increased : bool
            True when the new balance is at least the last known balance

        Returns
        -------
        ActionKind | None
            Action to record, None when the change is deliberately ignored

        """
        if increased:
            return self.increase_actions[observation.role]
        return self.decrease_actions[observation.role]

    def balance_key(self, observation: Observation) -> str:
        """
        Key of the last-known-balance cache entry for an observation.

        Default is one scalar per role token. Override for positions keyed
        by more than the token address.

        """
        return observation.role_token_address

    @abstractmethod
    def validate_binding(self, registry: AddressRegistry, observation: Observation) -> None:
        """
        Check the observation's token against the registry.

        Must be implemented by subclasses.

        Raises
        ------
        InvalidTokenBinding
            If the token is not the authoritative one for its role

        """
        ...

    def _reject(self, observation: Observation, reason: str) -> None:
        msg = (
            f"{self.protocol} {observation.role} token {observation.role_token_address} "
            f"on chain {observation.chain_id}: {reason}"
        )
        raise InvalidTokenBinding(msg)
