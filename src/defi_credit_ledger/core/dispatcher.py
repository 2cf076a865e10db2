"""Claim dispatcher: gates attested batches before they reach the ledger."""

import logging
from typing import Protocol as TypingProtocol

from defi_credit_ledger.core.errors import ConfigurationError, InvalidAttestation, Unauthorized
from defi_credit_ledger.core.ledger import ActivityLedger
from defi_credit_ledger.core.models import ActivityEvent, Claim, Protocol

logger = logging.getLogger(__name__)

# Prover function whose output is accepted for each protocol.
PROVER_SELECTORS = {
    Protocol.AAVE: "proveAaveData",
    Protocol.COMPOUND: "proveCompoundData",
    Protocol.MORPHO: "proveMorphoData",
}


class AttestationVerifier(TypingProtocol):
    """Checks that a claim's observations were attested by a trusted source."""

    def verify(self, claim: Claim) -> bool: ...


class TrustedProverVerifier:
    """
    Accepts claims produced by a configured set of prover contracts.

    Seal validation belongs to the proof system; this verifier only checks
    provenance and that a seal is present.

    Parameters
    ----------
    trusted_provers : list[str]
        Prover contract addresses

    """

    def __init__(self, trusted_provers: list[str]) -> None:
        if not trusted_provers:
            msg = "At least one trusted prover is required"
            raise ConfigurationError(msg)
        self.trusted_provers = {address.lower() for address in trusted_provers}

    def verify(self, claim: Claim) -> bool:
        return claim.prover in self.trusted_provers and bool(claim.seal.removeprefix("0x"))


class ClaimDispatcher:
    """
    Validates claims and forwards them to the ledger.

    Parameters
    ----------
    ledger : ActivityLedger
        Ledger receiving accepted observations
    verifier : AttestationVerifier
        Attestation check

    """

    def __init__(self, ledger: ActivityLedger, verifier: AttestationVerifier) -> None:
        self.ledger = ledger
        self.verifier = verifier

    def submit(self, caller: str, claim: Claim) -> list[ActivityEvent]:
        """
        Submit a claim on behalf of its claimant.

        Parameters
        ----------
        caller : str
            Authenticated submitter
        claim : Claim
            Attested batch

        Returns
        -------
        list[ActivityEvent]
            Events recorded by the ledger

        Raises
        ------
        Unauthorized
            If caller is not the claimant
        InvalidAttestation
            If the selector does not match the protocol or the attestation fails

        """
        if caller.lower() != claim.claimant:
            msg = f"{caller} cannot submit a claim for {claim.claimant}"
            raise Unauthorized(msg)

        expected = PROVER_SELECTORS[claim.protocol]
        if claim.selector != expected:
            msg = f"{claim.protocol} claims must come from {expected}, got {claim.selector}"
            raise InvalidAttestation(msg)

        if not self.verifier.verify(claim):
            msg = f"Attestation from {claim.prover} did not verify"
            raise InvalidAttestation(msg)

        logger.debug("Accepted %s claim from %s with %d observations", claim.protocol, caller, len(claim.observations))
        return self.ledger.ingest(caller, claim.claimant, claim.protocol, claim.observations)
