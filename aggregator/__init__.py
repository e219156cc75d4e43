"""DEX quote aggregator for Uniswap V2 style constant-product pools."""

__version__ = "0.1.0"
