"""Static token registry.

Maps uppercase symbols to canonical mainnet addresses. The native asset
(ETH) is rewritten to its wrapped form before lookup, since constant-product
pools only hold the wrapped token.
"""

from aggregator.errors import UnknownTokenError
from aggregator.models.types import is_valid_address

NATIVE_SYMBOL = "ETH"
WRAPPED_NATIVE_SYMBOL = "WETH"


def _validate_token_address(name: str, address: str) -> str:
    """Validate and return a token address.

    Raises:
        ValueError: If the address is invalid
    """
    if not is_valid_address(address):
        raise ValueError(f"Invalid {name} address: {address} (must be 0x + 40 hex chars)")
    return address


# Well-known token addresses on mainnet, validated at import time
TOKEN_ADDRESSES: dict[str, str] = {
    symbol: _validate_token_address(symbol, address)
    for symbol, address in {
        "WETH": "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
        "USDC": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
        "USDT": "0xdAC17F958D2ee523a2206206994597C13D831ec7",
        "DAI": "0x6B175474E89094C44Da98b954EedeAC495271d0F",
        "WBTC": "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599",
        "UNI": "0x1f9840a85d5aF5bf1D1762F925BDADdC4201F984",
    }.items()
}


def canonical_symbol(symbol: str) -> str:
    """Uppercase the symbol and rewrite the native asset to its wrapper."""
    canonical = symbol.strip().upper()
    if canonical == NATIVE_SYMBOL:
        return WRAPPED_NATIVE_SYMBOL
    return canonical


def resolve_token_address(symbol: str) -> str:
    """Resolve a token symbol (any case) to its canonical address.

    Args:
        symbol: Token symbol, e.g. "eth", "USDC"

    Returns:
        Checksummed mainnet address

    Raises:
        UnknownTokenError: If the symbol is not in the registry
    """
    address = TOKEN_ADDRESSES.get(canonical_symbol(symbol))
    if address is None:
        raise UnknownTokenError(symbol)
    return address


def is_known_symbol(symbol: str) -> bool:
    return canonical_symbol(symbol) in TOKEN_ADDRESSES


__all__ = [
    "NATIVE_SYMBOL",
    "WRAPPED_NATIVE_SYMBOL",
    "TOKEN_ADDRESSES",
    "canonical_symbol",
    "resolve_token_address",
    "is_known_symbol",
]
