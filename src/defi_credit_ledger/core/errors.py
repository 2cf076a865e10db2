"""Exception hierarchy for the credit ledger."""

from typing import Any


class CreditLedgerError(Exception):
    """Base class for all ledger errors."""


class Unauthorized(CreditLedgerError):
    """Caller is not the claimed user, or not the admin for an admin-only operation."""


class InvalidTokenBinding(CreditLedgerError):
    """
    Observation token address does not match the registry binding.

    Parameters
    ----------
    message : str
        Human readable description
    index : int | None
        Position of the offending observation in its batch

    """

    def __init__(self, message: str, index: int | None = None) -> None:
        super().__init__(message)
        self.index = index


class UnsupportedObservationRole(CreditLedgerError):
    """
    Observation role the ledger cannot classify.

    Raised after the observations preceding the offending one have been
    committed. The remaining observations of the batch are not processed.

    Parameters
    ----------
    message : str
        Human readable description
    index : int | None
        Position of the offending observation in its batch
    applied_events : list | None
        Events emitted by observations committed before the abort

    """

    def __init__(self, message: str, index: int | None = None, applied_events: list[Any] | None = None) -> None:
        super().__init__(message)
        self.index = index
        self.applied_events = applied_events or []


class ConfigurationError(CreditLedgerError):
    """Admin attempted to set a missing or zero-address dependency."""


class InvalidAttestation(CreditLedgerError):
    """Claim attestation did not verify, or was produced by the wrong prover function."""


class PriceUnavailable(CreditLedgerError):
    """Price normalizer could not quote a token. Callers may retry."""
