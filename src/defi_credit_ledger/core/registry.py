"""Protocol handler registry with auto-registration pattern."""

from typing import TYPE_CHECKING, Protocol as TypingProtocol

from defi_credit_ledger.core.models import ActionKind, Observation, ObservationRole, Protocol

if TYPE_CHECKING:
    from defi_credit_ledger.data.addresses import AddressRegistry


class ProtocolHandlerInterface(TypingProtocol):
    """
    Interface that all protocol handlers must implement.

    Attributes
    ----------
    protocol : Protocol
        Protocol this handler classifies observations for
    roles : frozenset[ObservationRole]
        Roles the handler knows how to classify

    Methods
    -------
    validate_binding(registry, observation)
        Check the observation's token against the address registry
    balance_key(observation)
        Key of the last-known-balance cache entry for the observation
    classify(observation, increased)
        Action for a balance increase or decrease, None for a no-op

    """

    protocol: Protocol
    roles: frozenset[ObservationRole]

    def validate_binding(self, registry: "AddressRegistry", observation: Observation) -> None: ...

    def balance_key(self, observation: Observation) -> str: ...

    def classify(self, observation: Observation, increased: bool) -> ActionKind | None: ...


class HandlerRegistry:
    """
    Registry for protocol handlers with auto-registration.

    Handlers register themselves using the @HandlerRegistry.register decorator.
    The ledger then looks handlers up by protocol when folding a batch.

    """

    _handlers: dict[Protocol, type] = {}

    @classmethod
    def register(cls, handler_class: type) -> type:
        """
        Decorator to register a protocol handler.

        Parameters
        ----------
        handler_class : type
            Handler class to register

        Returns
        -------
        type
            The handler class (for decorator chaining)

        Examples
        --------
        >>> @HandlerRegistry.register
        ... class AaveHandler(BaseProtocolHandler):
        ...     protocol = Protocol.AAVE
        ...     roles = frozenset({ObservationRole.AAVE_RESERVE})

        """
        if not getattr(handler_class, "protocol", None):
            msg = f"Handler {handler_class.__name__} must define 'protocol' attribute"
            raise ValueError(msg)

        cls._handlers[handler_class.protocol] = handler_class
        return handler_class

    @classmethod
    def get_handler(cls, protocol: Protocol) -> type | None:
        """
        Get handler class by protocol.

        Parameters
        ----------
        protocol : Protocol
            Protocol identifier

        Returns
        -------
        type | None
            Handler class or None if not found

        """
        return cls._handlers.get(protocol)

    @classmethod
    def get_all_handlers(cls) -> list[type]:
        """Get all registered handler classes."""
        return list(cls._handlers.values())

    @classmethod
    def list_protocols(cls) -> list[Protocol]:
        """Get all protocols that have a registered handler."""
        return list(cls._handlers.keys())

    @classmethod
    def clear(cls) -> None:
        """Clear all registered handlers (useful for testing)."""
        cls._handlers.clear()
