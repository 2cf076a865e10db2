"""Price normalizer interface and a fixed-table implementation."""

from typing import Protocol

from defi_credit_ledger.core.errors import PriceUnavailable


class PriceNormalizer(Protocol):
    """
    Converts a raw token amount into USD.

    Attributes
    ----------
    exponent : int
        Quotes are USD scaled by ``10**exponent``

    Methods
    -------
    quote(chain_id, token, amount)
        USD value of ``amount`` raw units of ``token``, fixed-point

    """

    exponent: int
    name: str

    def quote(self, chain_id: int, token: str, amount: int) -> int: ...


class StaticPriceNormalizer:
    """
    Quotes from a fixed table of prices.

    Parameters
    ----------
    prices : dict[str, int]
        Token address to USD price of one whole token, scaled by ``10**exponent``
    decimals : dict[str, int] | None
        Token address to decimals, 18 when missing
    exponent : int
        Fixed-point exponent of prices and quotes

    Examples
    --------
    >>> weth = "0x4200000000000000000000000000000000000006"
    >>> normalizer = StaticPriceNormalizer({weth: 2000 * 10**8})
    >>> normalizer.quote(10, weth, 10**18) // 10**8
    2000

    """

    name = "static"

    def __init__(self, prices: dict[str, int], decimals: dict[str, int] | None = None, exponent: int = 8) -> None:
        self.prices = {token.lower(): price for token, price in prices.items()}
        self.decimals = {token.lower(): value for token, value in (decimals or {}).items()}
        self.exponent = exponent

    def quote(self, chain_id: int, token: str, amount: int) -> int:
        """
        Quote an amount against the table.

        Raises
        ------
        PriceUnavailable
            If the token has no price in the table

        """
        token = token.lower()
        if token not in self.prices:
            msg = f"No static price for {token} on chain {chain_id}"
            raise PriceUnavailable(msg)
        return amount * self.prices[token] // 10 ** self.decimals.get(token, 18)
