"""Known constant-product venues on Ethereum mainnet.

Declaration order is the enumeration order of the aggregator, and so the
tie-break order when two pools quote the same output.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Venue:
    """A constant-product exchange deployment, identified by its factory."""

    name: str
    factory: str


UNISWAP_V2 = Venue(name="UniswapV2", factory="0x5C69bEe701ef814a2B6a3EDD4B1652CB9cc5aA6f")
SUSHISWAP = Venue(name="Sushiswap", factory="0xC0AEe478e3658e2610c5F7A4A2E1777cE9e4f2Ac")

DEFAULT_VENUES: tuple[Venue, ...] = (UNISWAP_V2, SUSHISWAP)


def venue_by_name(venues: tuple[Venue, ...], name: str) -> Venue | None:
    for venue in venues:
        if venue.name == name:
            return venue
    return None


__all__ = ["Venue", "UNISWAP_V2", "SUSHISWAP", "DEFAULT_VENUES", "venue_by_name"]
