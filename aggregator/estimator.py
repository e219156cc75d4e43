"""Single-pool output estimation.

Orients a pool's reserves for the requested input token and prices the swap.
Used directly by the point-estimate endpoint and, through the chain client's
get_quote_for_pool, by the multi-pool aggregator.
"""

from __future__ import annotations

import asyncio

import structlog

from aggregator.amm.uniswap_v2 import UniswapV2, uniswap_v2
from aggregator.chain.base import ChainClient
from aggregator.errors import InvalidAddressError, QuoteCancelledError, TokenNotInPoolError
from aggregator.models.pool import PoolReserves
from aggregator.models.types import is_valid_address, same_address

logger = structlog.get_logger()


def estimate_from_reserves(
    reserves: PoolReserves,
    token_in: str,
    amount_in: int,
    amm: UniswapV2 = uniswap_v2,
    token_out: str | None = None,
) -> int:
    """Price amount_in of token_in against the pool's current reserves.

    Args:
        reserves: Pool reserves with token0/token1 ordering
        token_in: Input token address (matched case-insensitively)
        amount_in: Input amount in base units
        amm: Pricing implementation (fee terms)
        token_out: If given, must be the pool's other token

    Returns:
        Output amount in base units

    Raises:
        TokenNotInPoolError: If token_in (or token_out) does not belong to the pool
        InvalidSwapInput: If amount_in or a reserve is not positive
    """
    result = amm.simulate_swap(reserves, token_in, amount_in)
    if token_out is not None and not same_address(token_out, result.token_out):
        raise TokenNotInPoolError(token_out, reserves.address)
    return result.amount_out


class Estimator:
    """Point estimate for one explicitly addressed pool.

    Any failure fails the whole call; there is nothing to degrade to.
    """

    def __init__(
        self,
        chain: ChainClient,
        amm: UniswapV2 | None = None,
        timeout: float | None = None,
    ) -> None:
        self.chain = chain
        self.amm = amm if amm is not None else uniswap_v2
        self.timeout = timeout

    async def estimate(
        self,
        pool_address: str,
        src_token: str,
        dst_token: str,
        src_amount: int,
        *,
        timeout: float | None = None,
    ) -> int:
        """Output in base units of dst_token for src_amount of src_token.

        Args:
            pool_address: Pool contract address
            src_token: Input token address
            dst_token: Output token address
            src_amount: Input amount in base units
            timeout: Deadline override in seconds; defaults to the instance timeout

        Raises:
            InvalidAddressError: If any address is malformed
            QuoteCancelledError: If the deadline expires
        """
        for label, address in (("pool", pool_address), ("src", src_token), ("dst", dst_token)):
            if not is_valid_address(address):
                raise InvalidAddressError(f"invalid {label} address: {address}")

        deadline = timeout if timeout is not None else self.timeout
        try:
            async with asyncio.timeout(deadline) as scope:
                reserves = await self.chain.get_pool_reserves(pool_address)
        except TimeoutError as err:
            if not scope.expired():
                raise
            logger.warning("estimate_timeout", pool=pool_address, timeout_seconds=deadline)
            raise QuoteCancelledError(f"estimate exceeded {deadline}s deadline") from err

        dst_amount = estimate_from_reserves(
            reserves, src_token, src_amount, amm=self.amm, token_out=dst_token
        )

        logger.debug(
            "estimate_completed",
            pool=pool_address,
            block=reserves.observed_at_block,
            src_amount=src_amount,
            dst_amount=dst_amount,
        )
        return dst_amount


__all__ = ["estimate_from_reserves", "Estimator"]
