"""DeFiLlama price normalizer for converting token amounts to USD."""

import logging
from decimal import ROUND_FLOOR, Decimal

import httpx

from defi_credit_ledger.core.errors import PriceUnavailable
from defi_credit_ledger.data.loader import get_chain_name
from defi_credit_ledger.pricing.cache import PriceCache

logger = logging.getLogger(__name__)


class DeFiLlamaNormalizer:
    """
    Quotes token amounts in USD using the DeFiLlama coins API.

    Prices and token decimals come from the API and are converted to
    fixed-point integers once, so quotes never touch floating point.

    Parameters
    ----------
    base_url : str
        DeFiLlama API base URL
    exponent : int
        Fixed-point exponent of quotes
    cache_ttl : int
        Seconds a fetched price stays valid
    client : httpx.Client | None
        HTTP client, created when None

    """

    name = "defillama"

    def __init__(
        self,
        base_url: str = "https://coins.llama.fi",
        exponent: int = 8,
        cache_ttl: int = 60,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url
        self.exponent = exponent
        self.client = client or httpx.Client(timeout=30.0)
        self.cache = PriceCache(default_ttl=cache_ttl)

    def quote(self, chain_id: int, token: str, amount: int) -> int:
        """
        Quote a raw token amount in USD.

        Parameters
        ----------
        chain_id : int
            Chain the token lives on
        token : str
            Token contract address
        amount : int
            Raw amount in token units

        Returns
        -------
        int
            USD value scaled by ``10**exponent``

        Raises
        ------
        PriceUnavailable
            If the API fails or has no price for the token

        """
        coin_id = self._format_coin_id(chain_id, token)
        price, decimals = self._get_price(coin_id)
        return amount * price // 10**decimals

    def _get_price(self, coin_id: str) -> tuple[int, int]:
        cached = self.cache.get(coin_id)
        if cached is not None:
            return cached

        coins = self._fetch_prices([coin_id])
        info = coins.get(coin_id)
        if not info or "price" not in info:
            msg = f"DeFiLlama has no price for {coin_id}"
            raise PriceUnavailable(msg)

        scale = Decimal(10) ** self.exponent
        price = int((Decimal(str(info["price"])) * scale).to_integral_value(rounding=ROUND_FLOOR))
        decimals = int(info.get("decimals", 18))
        self.cache.set(coin_id, (price, decimals))
        logger.debug("Fetched price for %s: %d (decimals %d)", coin_id, price, decimals)
        return price, decimals

    def _fetch_prices(self, coin_ids: list[str]) -> dict:
        """
        Fetch prices from DeFiLlama API.

        Parameters
        ----------
        coin_ids : list[str]
            Coin identifiers in "chain:address" format

        Returns
        -------
        dict
            Price data keyed by coin id

        Raises
        ------
        PriceUnavailable
            On any HTTP failure

        """
        url = f"{self.base_url}/prices/current/{','.join(coin_ids)}"
        try:
            response = self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            msg = f"DeFiLlama request failed: {e}"
            raise PriceUnavailable(msg) from e

        return response.json().get("coins", {})

    def _format_coin_id(self, chain_id: int, address: str) -> str:
        """
        Format coin identifier for DeFiLlama API.

        Returns
        -------
        str
            Formatted coin ID (e.g., "optimism:0x...")

        Raises
        ------
        PriceUnavailable
            If the chain is not configured

        """
        try:
            chain = get_chain_name(chain_id)
        except KeyError as e:
            msg = f"Cannot price tokens on unconfigured chain {chain_id}"
            raise PriceUnavailable(msg) from e
        return f"{chain}:{address.lower()}"

    def close(self) -> None:
        """Close HTTP client."""
        self.client.close()

    def __enter__(self) -> "DeFiLlamaNormalizer":
        return self

    def __exit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        self.close()
