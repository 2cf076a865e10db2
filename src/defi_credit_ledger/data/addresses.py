"""Read-only lookup of authoritative token bindings per chain."""

from typing import Any

from pydantic import BaseModel, Field

from defi_credit_ledger.data.loader import load_contracts


class AaveReserve(BaseModel):
    """Token addresses Aave derives from one underlying asset."""

    a_token: str
    variable_debt_token: str
    stable_debt_token: str | None = None


class CompoundMarket(BaseModel):
    """Compound v3 (Comet) market and the collaterals it accepts."""

    base_token: str
    collaterals: list[str] = Field(default_factory=list)


def _lower_keys(mapping: dict[str, Any]) -> dict[str, Any]:
    return {key.lower(): value for key, value in mapping.items()}


class AddressRegistry:
    """
    Resolves, per chain, the addresses each protocol considers genuine.

    Parameters
    ----------
    chains : dict[str, Any]
        Chain configuration keyed by chain name, shaped like contracts.yaml

    """

    def __init__(self, chains: dict[str, Any]) -> None:
        self._names: dict[int, str] = {}
        self._stables: dict[int, tuple[str, ...]] = {}
        self._aave: dict[int, dict[str, AaveReserve]] = {}
        self._compound: dict[int, dict[str, CompoundMarket]] = {}

        for name, config in chains.items():
            chain_id = config["chain_id"]
            self._names[chain_id] = name
            self._stables[chain_id] = tuple(addr.lower() for addr in config.get("stable_assets", {}).values())

            protocols = config.get("protocols", {})
            reserves = protocols.get("aave_v3", {}).get("reserves", {})
            self._aave[chain_id] = {
                underlying: AaveReserve(**{k: v.lower() for k, v in tokens.items()})
                for underlying, tokens in _lower_keys(reserves).items()
            }
            markets = protocols.get("compound_v3", {}).get("markets", {})
            self._compound[chain_id] = {
                market: CompoundMarket(
                    base_token=spec["base_token"].lower(),
                    collaterals=[addr.lower() for addr in spec.get("collaterals", [])],
                )
                for market, spec in _lower_keys(markets).items()
            }

    @classmethod
    def from_contracts(cls) -> "AddressRegistry":
        """Build a registry from the packaged contracts.yaml."""
        return cls(load_contracts()["chains"])

    def chain_name(self, chain_id: int) -> str | None:
        return self._names.get(chain_id)

    def supported_chain_ids(self) -> list[int]:
        return list(self._names)

    def stable_assets(self, chain_id: int) -> tuple[str, ...]:
        """
        Get the reference stable assets for a chain.

        Parameters
        ----------
        chain_id : int
            Chain ID

        Returns
        -------
        tuple[str, ...]
            Lowercased addresses, empty for an unknown chain

        """
        return self._stables.get(chain_id, ())

    def aave_reserve(self, chain_id: int, underlying: str) -> AaveReserve | None:
        """Get the Aave token set derived from an underlying asset."""
        return self._aave.get(chain_id, {}).get(underlying.lower())

    def compound_market(self, chain_id: int, market: str) -> CompoundMarket | None:
        """Get a Compound v3 market by its Comet address."""
        return self._compound.get(chain_id, {}).get(market.lower())
