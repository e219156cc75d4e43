"""UniswapV2 AMM implementation.

UniswapV2 uses the constant product formula: x * y = k
With a 0.3% fee on input amounts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from aggregator.amm.base import AMM, SwapResult
from aggregator.errors import InvalidSwapInput
from aggregator.safe_int import S

if TYPE_CHECKING:
    from aggregator.models.pool import PoolReserves

# Standard constant-product fee: 0.3% (997/1000 of the input is priced)
FEE_NUMERATOR = 997
FEE_DENOMINATOR = 1000


class UniswapV2(AMM):
    """UniswapV2 AMM math.

    Formula: amount_out = (amount_in * 997 * reserve_out) / (reserve_in * 1000 + amount_in * 997)

    The 997/1000 factor accounts for the 0.3% fee. The result is floored,
    so a quote never exceeds what the pool would actually pay.
    """

    def __init__(
        self,
        fee_numerator: int = FEE_NUMERATOR,
        fee_denominator: int = FEE_DENOMINATOR,
    ) -> None:
        if fee_denominator <= 0 or not 0 < fee_numerator <= fee_denominator:
            raise ValueError(
                f"Invalid fee {fee_numerator}/{fee_denominator}: "
                "need 0 < numerator <= denominator"
            )
        self.fee_numerator = fee_numerator
        self.fee_denominator = fee_denominator

    def get_amount_out(
        self,
        amount_in: int,
        reserve_in: int,
        reserve_out: int,
        fee_numerator: int | None = None,
        fee_denominator: int | None = None,
    ) -> int:
        """Calculate output amount using constant product formula.

        Formula: amount_out = (in * fee_num * res_out) / (res_in * fee_den + in * fee_num)

        Args:
            amount_in: Input token amount (base units)
            reserve_in: Reserve of input token in pool
            reserve_out: Reserve of output token in pool
            fee_numerator: Override for this call (default from instance, 997)
            fee_denominator: Override for this call (default from instance, 1000)

        Returns:
            Output token amount (base units, floored)

        Raises:
            InvalidSwapInput: If amount_in, reserve_in or reserve_out is not positive
        """
        if amount_in is None or reserve_in is None or reserve_out is None:
            raise InvalidSwapInput("nil input/reserves")
        if amount_in <= 0:
            raise InvalidSwapInput("input amount must be positive")
        if reserve_in <= 0:
            raise InvalidSwapInput("invalid reserve in: must be positive")
        if reserve_out <= 0:
            raise InvalidSwapInput("invalid reserve out: must be positive")

        fee_num = self.fee_numerator if fee_numerator is None else fee_numerator
        fee_den = self.fee_denominator if fee_denominator is None else fee_denominator

        amount_in_with_fee = S(amount_in) * S(fee_num)
        numerator = amount_in_with_fee * S(reserve_out)
        denominator = S(reserve_in) * S(fee_den) + amount_in_with_fee

        return (numerator // denominator).value

    def simulate_swap(
        self,
        reserves: PoolReserves,
        token_in: str,
        amount_in: int,
    ) -> SwapResult:
        """Simulate a swap through a pool (exact input).

        Args:
            reserves: Current pool reserves
            token_in: Input token address (any case)
            amount_in: Amount to swap, in base units

        Returns:
            SwapResult with amounts and pool info

        Raises:
            TokenNotInPoolError: If token_in is not one of the pool's tokens
            InvalidSwapInput: If the amount or either reserve is not positive
        """
        reserve_in, reserve_out = reserves.get_reserves(token_in)
        token_out = reserves.get_token_out(token_in)
        amount_out = self.get_amount_out(amount_in, reserve_in, reserve_out)

        return SwapResult(
            amount_in=amount_in,
            amount_out=amount_out,
            token_in=token_in,
            token_out=token_out,
            pool_address=reserves.address,
        )


# Singleton instance
uniswap_v2 = UniswapV2()


def price(
    input_amount: int,
    reserve_in: int,
    reserve_out: int,
    fee_numerator: int = FEE_NUMERATOR,
    fee_denominator: int = FEE_DENOMINATOR,
) -> int:
    """Constant-product output for input_amount. Pure; see UniswapV2.get_amount_out."""
    return uniswap_v2.get_amount_out(
        input_amount, reserve_in, reserve_out, fee_numerator, fee_denominator
    )


__all__ = [
    "FEE_NUMERATOR",
    "FEE_DENOMINATOR",
    "UniswapV2",
    "uniswap_v2",
    "price",
]
